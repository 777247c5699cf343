import io
import time

import pdfplumber

from invoice_worker.recognition.base import BaseRecognizer
from invoice_worker.recognition.exceptions import RecognitionError
from invoice_worker.recognition.models import RecognitionResult, text_layer_result


class PdfPlumberRecognizer(BaseRecognizer):
    """Reads the embedded text layer of a PDF using pdfplumber."""

    ENGINE = "pdfplumber"

    def __init__(self, language: str | None = "en-US") -> None:
        self._language = language

    def recognize(self, content: bytes, filename: str) -> RecognitionResult:
        started = time.perf_counter()
        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise RecognitionError(f"pdfplumber extraction failed for {filename}: {exc}") from exc
        return text_layer_result(
            "\n".join(pages).strip(),
            engine=self.ENGINE,
            language=self._language,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
        )
