from abc import ABC, abstractmethod
from dataclasses import dataclass

from invoice_worker.documents.models import Document
from invoice_worker.extraction.models import ExtractedMetadata
from invoice_worker.recognition.models import RecognitionResult
from invoice_worker.validation.models import ValidationVerdict


@dataclass(slots=True)
class PipelineContext:
    document_id: int
    document: Document
    raw_bytes: bytes = b""
    recognition_result: RecognitionResult | None = None
    metadata: ExtractedMetadata | None = None
    verdict: ValidationVerdict | None = None

    @property
    def has_text(self) -> bool:
        result = self.recognition_result
        return result is not None and bool(result.text and result.text.strip())


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
