from typing import Optional

from docintel.models.extraction import LocaleMetadata
from docintel.utils.logging import get_logger
from docintel.utils.swedish_formats import detect_swedish_formats

LOGGER = get_logger(__name__)


def enrich_locale_metadata(text: Optional[str]) -> Optional[LocaleMetadata]:
    """Detect Swedish reference numbers in a provider response.

    Best effort: a detector failure is logged and yields None, as does text
    with nothing to report. Callers never see an exception from here.
    """
    if not text:
        return None
    try:
        metadata = detect_swedish_formats(text)
    except Exception:
        LOGGER.warning("Locale enrichment failed", exc_info=True, extra={"text_length": len(text)})
        return None
    if metadata.is_empty:
        return None
    return metadata
