"""Document intelligence pipeline: routed AI extraction and office document review."""

__version__ = "0.1.0"
