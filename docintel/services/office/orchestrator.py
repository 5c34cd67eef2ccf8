"""One office document, end to end."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.exceptions import NotFoundError, ValidationError
from docintel.models.config import ResolvedConfig
from docintel.models.office import (
    DOCUMENT_DOMAIN,
    ClassificationDecision,
    OfficeExtractionResult,
    OfficeProcessingOutcome,
    ResolvedSchema,
    ReviewTaskStatus,
)
from docintel.repositories.document_repository import DocumentRepository
from docintel.services.base_service import BaseService
from docintel.services.events import (
    DOCUMENT_CLASSIFIED,
    DOCUMENT_PROCESSED,
    EVENT_VERSION,
    AuditEntry,
    AuditLogger,
    EventDispatcher,
    LoggingAuditLogger,
    LoggingEventDispatcher,
    LoggingNotifier,
    Notifier,
)
from docintel.services.office.classification import ClassificationService
from docintel.services.office.schema_store import SchemaStoreService
from docintel.services.office.sla import SlaEvaluator
from docintel.services.office.structured_extractor import (
    TableExtractionStrategy,
    extract_office_structured_data,
)
from docintel.services.office.validation import validate_office_extraction
from docintel.services.office.workflow import ReviewWorkflowService, task_summary

STATUS_APPROVED = "approved"
STATUS_NEEDS_REVIEW = "needs_review"


def should_auto_approve(result: OfficeExtractionResult, config: ResolvedConfig) -> bool:
    """No blocking issues, complete enough and confident enough."""
    validation = result.validation
    return (
        not validation.blocking_issues
        and validation.completeness >= config.auto_approve_threshold
        and validation.confidence >= config.high_confidence_percent
    )


def _schema_id(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value else None


class OfficeDocumentOrchestrator(BaseService):
    """Classify, pick a schema, extract, validate, decide, then track review.

    Thresholds come from the ``ResolvedConfig`` passed to each run; nothing
    here reads user settings on its own. Every decision made along the way is
    returned in the ``OfficeProcessingOutcome``.
    """

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: Optional[EventDispatcher] = None,
        audit_logger: Optional[AuditLogger] = None,
        notifier: Optional[Notifier] = None,
        table_strategy: Optional[TableExtractionStrategy] = None,
    ):
        super().__init__(session)
        self.dispatcher = dispatcher or LoggingEventDispatcher()
        self.audit_logger = audit_logger or LoggingAuditLogger()
        self.notifier = notifier or LoggingNotifier()
        self.table_strategy = table_strategy

        self.classification_service = ClassificationService(session)
        self.schema_store = SchemaStoreService(session)
        self.workflow = ReviewWorkflowService(session, self.dispatcher, self.audit_logger)
        self.sla_evaluator = SlaEvaluator(session, self.dispatcher, self.notifier)
        self.document_repository = DocumentRepository(session)

    def validate(
        self,
        document_id: UUID,
        user_id: str,
        filename: str,
        raw_text: str,
        config: ResolvedConfig,
    ) -> None:
        if not user_id:
            raise ValidationError("user_id is required")
        if not filename:
            raise ValidationError("filename is required")
        if raw_text is None:
            raise ValidationError("raw_text is required")
        if config.user_id != user_id:
            raise ValidationError("Resolved config belongs to another user")

    async def run(
        self,
        document_id: UUID,
        user_id: str,
        filename: str,
        raw_text: str,
        config: ResolvedConfig,
    ) -> OfficeProcessingOutcome:
        """Process one document and commit everything it recorded.

        Args:
            document_id: Document being processed
            user_id: Owner of the document
            filename: Original filename, used by classification
            raw_text: Text content of the document
            config: Thresholds, review deadline and contact email for this run

        Returns:
            OfficeProcessingOutcome: Classification, schema selection,
            validated result, approval, review task and SLA evaluation
        """
        owner = await self.document_repository.get_owner(document_id)
        if owner is not None and owner != user_id:
            raise NotFoundError("Document", document_id)

        decision = await self.classification_service.classify(user_id, filename, raw_text)
        schema = await self.schema_store.get_published_schema(user_id, decision.final_doc_type, decision.schema_id)

        await self.classification_service.persist(document_id, user_id, decision, schema_id=schema.schema_id)
        await self._audit_classification(document_id, user_id, decision)

        result = extract_office_structured_data(
            doc_type=decision.final_doc_type,
            schema=schema.definition,
            raw_text=raw_text,
            classification=decision,
            schema_id=schema.schema_id,
            schema_version=schema.version,
            home_currency=config.home_currency,
            raw_text_limit=config.raw_text_sample_limit,
            table_strategy=self.table_strategy,
        )
        result = validate_office_extraction(result, schema.definition)

        approve = should_auto_approve(result, config)
        status = STATUS_APPROVED if approve else STATUS_NEEDS_REVIEW

        task = await self.workflow.upsert_task(
            document_id=document_id,
            user_id=user_id,
            status=ReviewTaskStatus.APPROVED if approve else ReviewTaskStatus.NEW,
            due_at=config.review_due_at,
        )

        created_at = await self.document_repository.get_created_at(document_id, user_id)
        sla = await self.sla_evaluator.evaluate(
            document_id=document_id,
            user_id=user_id,
            doc_type=decision.final_doc_type.value,
            created_at=created_at or datetime.now(timezone.utc),
            task_id=task.id,
            contact_email=config.contact_email,
        )

        await self.document_repository.save_office_result(
            document_id,
            user_id,
            status=status,
            document_domain=DOCUMENT_DOMAIN,
            doc_type=decision.final_doc_type.value,
            extracted_data=result.model_dump(mode="json"),
        )

        await self._audit_processing(document_id, user_id, schema, result, approve)
        await self._dispatch_events(document_id, user_id, decision, schema, status)
        await self.commit()

        self.logger.info(
            "Office document processed",
            extra={
                "document_id": str(document_id),
                "doc_type": decision.final_doc_type.value,
                "status": status,
                "completeness": result.validation.completeness,
                "confidence": result.validation.confidence,
                "blocking_issues": len(result.validation.blocking_issues),
            },
        )

        return OfficeProcessingOutcome(
            document_id=document_id,
            status=status,
            should_approve=approve,
            classification=decision,
            schema_selection=schema,
            result=result,
            review_task=task_summary(task),
            sla=sla,
        )

    async def _audit_classification(self, document_id: UUID, user_id: str, decision: ClassificationDecision) -> None:
        await self.audit_logger.log(
            AuditEntry(
                user_id=user_id,
                document_id=document_id,
                action=DOCUMENT_CLASSIFIED,
                description=f"Classified as {decision.final_doc_type.value}",
                metadata={
                    "modelDocType": decision.model_doc_type.value,
                    "modelConfidence": decision.model_confidence,
                    "ruleDocType": decision.rule_doc_type.value if decision.rule_doc_type else None,
                    "finalDocType": decision.final_doc_type.value,
                    "decisionSource": decision.decision_source.value,
                },
            )
        )

    async def _audit_processing(
        self,
        document_id: UUID,
        user_id: str,
        schema: ResolvedSchema,
        result: OfficeExtractionResult,
        approved: bool,
    ) -> None:
        await self.audit_logger.log(
            AuditEntry(
                user_id=user_id,
                document_id=document_id,
                action=DOCUMENT_PROCESSED,
                description=f"Office/IT extraction ({result.doc_type.value})",
                metadata={
                    "documentDomain": DOCUMENT_DOMAIN,
                    "docType": result.doc_type.value,
                    "schemaId": _schema_id(schema.schema_id),
                    "schemaVersion": schema.version,
                    "confidence": result.validation.confidence,
                    "completeness": result.validation.completeness,
                    "autoApproved": approved,
                },
            )
        )

    async def _dispatch_events(
        self,
        document_id: UUID,
        user_id: str,
        decision: ClassificationDecision,
        schema: ResolvedSchema,
        status: str,
    ) -> None:
        classification: Dict[str, Any] = decision.model_dump(mode="json")
        await self.dispatcher.dispatch(
            user_id,
            DOCUMENT_PROCESSED,
            {
                "eventVersion": EVENT_VERSION,
                "documentId": str(document_id),
                "documentDomain": DOCUMENT_DOMAIN,
                "docType": decision.final_doc_type.value,
                "schemaId": _schema_id(schema.schema_id),
                "schemaVersion": schema.version,
                "classification": classification,
                "status": status,
            },
        )
        await self.dispatcher.dispatch(
            user_id,
            DOCUMENT_CLASSIFIED,
            {
                "eventVersion": EVENT_VERSION,
                "documentId": str(document_id),
                "documentDomain": DOCUMENT_DOMAIN,
                "docType": decision.final_doc_type.value,
                "schemaId": _schema_id(schema.schema_id),
                "classification": classification,
            },
        )
