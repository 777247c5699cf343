from dataclasses import replace

from invoice_worker.database.repositories.base import BaseDocumentRepository
from invoice_worker.documents.models import ProcessingStatus
from invoice_worker.documents.state_machine import DocumentStateMachine
from invoice_worker.extraction.base import BaseFieldExtractor
from invoice_worker.logging.logger import Log
from invoice_worker.processor.exceptions import EmptyContentError
from invoice_worker.processor.pipeline import PipelineContext, PipelineStep
from invoice_worker.recognition.base import BaseRecognizer
from invoice_worker.storage.base import BaseContentStorage
from invoice_worker.validation.validator import DocumentValidator

RECOGNITION_FAILED_REASON = "Recognition failed to extract text"


class LoadContentStep(PipelineStep):
    def __init__(self, storage: BaseContentStorage) -> None:
        self._storage = storage

    def run(self, context: PipelineContext) -> PipelineContext:
        raw_bytes = self._storage.read(context.document.content_ref)
        if not raw_bytes:
            raise EmptyContentError(
                f"Stored content for document {context.document_id} is empty"
            )
        context.raw_bytes = raw_bytes
        Log.info("Loaded content", document_id=context.document_id, size=len(raw_bytes))
        return context


class RecognizeStep(PipelineStep):
    def __init__(self, recognizer: BaseRecognizer) -> None:
        self._recognizer = recognizer

    def run(self, context: PipelineContext) -> PipelineContext:
        result = self._recognizer.recognize(context.raw_bytes, context.document.filename)
        context.recognition_result = result
        context.document = replace(context.document, recognition_result=result)
        Log.info(
            "Recognized text",
            document_id=context.document_id,
            engine=result.processing_engine,
            chars=result.text_length,
            confidence=result.confidence_percentage,
        )
        return context


class ExtractFieldsStep(PipelineStep):
    def __init__(self, extractor: BaseFieldExtractor) -> None:
        self._extractor = extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.recognition_result is None:
            raise ValueError("PipelineContext.recognition_result must be set before extraction")
        if not context.has_text:
            return context
        metadata = self._extractor.extract(context.recognition_result.text)
        context.metadata = metadata
        context.document = replace(context.document, metadata=metadata)
        Log.info(
            "Extracted fields",
            document_id=context.document_id,
            invoice_number=metadata.invoice_number,
            items=metadata.item_count,
        )
        return context


class ValidateStep(PipelineStep):
    def __init__(self, validator: DocumentValidator) -> None:
        self._validator = validator

    def run(self, context: PipelineContext) -> PipelineContext:
        if not context.has_text:
            return context
        verdict = self._validator.validate(context.document)
        context.verdict = verdict
        for warning in verdict.warnings:
            Log.warning("Validation warning", document_id=context.document_id, warning=warning)
        return context


class FinalizeStep(PipelineStep):
    """Moves the document out of ``processing`` and persists it."""

    def __init__(
        self,
        state_machine: DocumentStateMachine,
        repository: BaseDocumentRepository,
    ) -> None:
        self._state_machine = state_machine
        self._repository = repository

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.document
        if not context.has_text:
            final = self._state_machine.transition(
                document, ProcessingStatus.FAILED, RECOGNITION_FAILED_REASON
            )
        elif context.verdict is not None and context.verdict.is_valid:
            final = self._state_machine.transition(document, ProcessingStatus.VALIDATED)
        else:
            errors = context.verdict.errors if context.verdict is not None else []
            final = self._state_machine.transition(
                document, ProcessingStatus.FAILED, ", ".join(errors) or None
            )

        context.document = self._repository.save(final, ProcessingStatus.PROCESSING)
        Log.info(
            "Document finalized",
            document_id=context.document_id,
            status=context.document.status.value,
        )
        return context
