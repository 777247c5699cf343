import time

import pymupdf

from invoice_worker.recognition.base import BaseRecognizer
from invoice_worker.recognition.exceptions import RecognitionError
from invoice_worker.recognition.models import RecognitionResult, text_layer_result


class PyMuPdfRecognizer(BaseRecognizer):
    """Reads the embedded text layer of a PDF using PyMuPDF."""

    ENGINE = "pymupdf"

    def __init__(self, language: str | None = "en-US") -> None:
        self._language = language

    def recognize(self, content: bytes, filename: str) -> RecognitionResult:
        started = time.perf_counter()
        try:
            with pymupdf.open(stream=content, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
        except Exception as exc:
            raise RecognitionError(f"pymupdf extraction failed for {filename}: {exc}") from exc
        return text_layer_result(
            "\n".join(pages).strip(),
            engine=self.ENGINE,
            language=self._language,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
        )
