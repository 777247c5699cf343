from collections.abc import Sequence

from invoice_worker.config.settings import Settings
from invoice_worker.database.repositories.base import BaseDocumentRepository
from invoice_worker.database.repositories.document_repository import PostgresDocumentRepository
from invoice_worker.documents.models import Document, ProcessingStatus
from invoice_worker.documents.state_machine import DocumentStateMachine
from invoice_worker.extraction.factory import FieldExtractorFactory
from invoice_worker.logging.logger import Log
from invoice_worker.processor.exceptions import (
    DocumentNotFoundError,
    InvalidTransitionError,
    PipelineFatalError,
)
from invoice_worker.processor.pipeline import PipelineContext, PipelineStep
from invoice_worker.processor.steps import (
    ExtractFieldsStep,
    FinalizeStep,
    LoadContentStep,
    RecognizeStep,
    ValidateStep,
)
from invoice_worker.recognition.factory import RecognizerFactory
from invoice_worker.storage.base import BaseContentStorage
from invoice_worker.storage.local_storage import LocalFileStorage
from invoice_worker.validation.models import ValidationConfig
from invoice_worker.validation.validator import DocumentValidator


class Processor:
    """Drives one document from ``uploaded`` to ``validated`` or ``failed``.

    Pipeline: claim (uploaded -> processing) -> load content -> recognize ->
    extract -> validate -> finalize. Any exception raised by a step is
    recorded on the document as a failure; only a failure to record that
    failure escapes, as PipelineFatalError.
    """

    def __init__(
        self,
        repository: BaseDocumentRepository,
        state_machine: DocumentStateMachine,
        steps: Sequence[PipelineStep],
    ) -> None:
        self._repository = repository
        self._state_machine = state_machine
        self._steps = list(steps)

    def process(self, document_id: int) -> Document:
        """Run the pipeline and return the final persisted document.

        Raises:
            DocumentNotFoundError: if the document does not exist.
            InvalidTransitionError: if the document cannot enter processing,
                including losing the claim to another worker.
            PipelineFatalError: if a step failed and the failure could not
                be persisted.
        """
        Log.info("Processing document", document_id=document_id)
        document = self._repository.find_by_id(document_id)
        claimed = self._state_machine.transition(document, ProcessingStatus.PROCESSING)
        try:
            claimed = self._repository.save(claimed, document.status)
        except (DocumentNotFoundError, InvalidTransitionError):
            raise
        except Exception as exc:
            return self._recover(document_id, exc)

        context = PipelineContext(document_id=document_id, document=claimed)
        try:
            for step in self._steps:
                context = step.run(context)
        except Exception as exc:
            return self._recover(document_id, exc)
        return context.document

    def _recover(self, document_id: int, cause: Exception) -> Document:
        reason = str(cause) or type(cause).__name__
        Log.error("Pipeline step failed", document_id=document_id, error=reason)
        try:
            current = self._repository.find_by_id(document_id)
            if current.status.is_terminal:
                Log.warning(
                    "Document already finalized, keeping stored status",
                    document_id=document_id,
                    status=current.status.value,
                )
                return current
            failed = self._state_machine.transition(current, ProcessingStatus.FAILED, reason)
            return self._repository.save(failed, current.status)
        except Exception as exc:
            raise PipelineFatalError(
                f"Could not record failure for document {document_id}: {exc}"
            ) from exc


def build_processor(
    settings: Settings,
    repository: BaseDocumentRepository | None = None,
    storage: BaseContentStorage | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    repository = repository if repository is not None else PostgresDocumentRepository()
    storage = (
        storage
        if storage is not None
        else LocalFileStorage(settings.storage_upload_dir, create_dirs=settings.storage_create_dirs)
    )
    state_machine = DocumentStateMachine(clear_errors_on_reset=settings.clear_errors_on_reset)
    recognizer = RecognizerFactory.create(settings)
    extractor = FieldExtractorFactory.create(settings)
    validator = DocumentValidator(ValidationConfig.from_settings(settings))
    return Processor(
        repository=repository,
        state_machine=state_machine,
        steps=[
            LoadContentStep(storage),
            RecognizeStep(recognizer),
            ExtractFieldsStep(extractor),
            ValidateStep(validator),
            FinalizeStep(state_machine, repository),
        ],
    )
