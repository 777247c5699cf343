"""Tesseract OCR engine.

Images are decoded with Pillow. PDFs are rasterized page by page with
PyMuPDF first. Word confidences reported by Tesseract (0-100, -1 for
non-words) are averaged into a single 0.0-1.0 confidence.
"""

import io
import time
from datetime import UTC, datetime
from typing import Any

import pymupdf
import pytesseract
from PIL import Image

from invoice_worker.logging.logger import Log
from invoice_worker.recognition.base import BaseRecognizer
from invoice_worker.recognition.exceptions import (
    RecognitionEngineNotAvailableError,
    RecognitionError,
)
from invoice_worker.recognition.models import RecognitionResult, describe_signals

_PDF_MAGIC = b"%PDF"

# Tesseract language codes mapped to the tags stored on results.
_LANGUAGE_TAGS = {
    "eng": "en",
    "por": "pt",
    "deu": "de",
    "fra": "fr",
    "spa": "es",
    "ita": "it",
}


class TesseractRecognizer(BaseRecognizer):
    """OCR via pytesseract."""

    ENGINE = "tesseract"

    def __init__(
        self,
        *,
        lang: str = "eng",
        psm: int = 3,
        oem: int = 3,
        pdf_dpi: int = 200,
    ) -> None:
        self._lang = lang
        self._psm = psm
        self._oem = oem
        self._pdf_dpi = pdf_dpi

    def check_available(self) -> str:
        """Return the Tesseract version or raise if the binary is missing."""
        try:
            return str(pytesseract.get_tesseract_version())
        except Exception as exc:
            raise RecognitionEngineNotAvailableError(
                f"Tesseract OCR not installed or not in PATH: {exc}"
            ) from exc

    def recognize(self, content: bytes, filename: str) -> RecognitionResult:
        started = time.perf_counter()
        try:
            images = self._load_images(content, filename)
            pages = [self._ocr_image(image) for image in images]
        except RecognitionError:
            raise
        except Exception as exc:
            raise RecognitionError(f"Tesseract OCR failed for {filename}: {exc}") from exc

        text = "\n".join(page_text for page_text, _ in pages).strip()
        confidences = [conf for _, page_confs in pages for conf in page_confs]
        confidence = round(sum(confidences) / len(confidences) / 100, 4) if confidences else 0.0
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        Log.info(
            "OCR completed",
            filename=filename,
            pages=len(pages),
            words=len(confidences),
            confidence=f"{confidence:.2f}",
            elapsed_ms=elapsed_ms,
        )
        return RecognitionResult(
            text=text,
            confidence=confidence,
            language=_LANGUAGE_TAGS.get(self._lang.split("+")[0]),
            processing_engine=f"{self.ENGINE} psm={self._psm} oem={self._oem}",
            processing_time_ms=elapsed_ms,
            extracted_data=describe_signals(text),
            processed_at=datetime.now(UTC),
        )

    def _load_images(self, content: bytes, filename: str) -> list[Image.Image]:
        if content.startswith(_PDF_MAGIC) or filename.lower().endswith(".pdf"):
            return self._rasterize_pdf(content)
        image = Image.open(io.BytesIO(content))
        return [image.convert("RGB") if image.mode != "RGB" else image]

    def _rasterize_pdf(self, content: bytes) -> list[Image.Image]:
        images: list[Image.Image] = []
        with pymupdf.open(stream=content, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
            for page in doc:
                pixmap = page.get_pixmap(dpi=self._pdf_dpi)
                images.append(Image.open(io.BytesIO(pixmap.tobytes("png"))).convert("RGB"))
        if not images:
            raise RecognitionError("PDF has no pages")
        return images

    def _ocr_image(self, image: Image.Image) -> tuple[str, list[float]]:
        data: dict[str, list[Any]] = pytesseract.image_to_data(
            image,
            lang=self._lang,
            config=f"--psm {self._psm} --oem {self._oem}",
            output_type=pytesseract.Output.DICT,
        )
        lines: dict[tuple[int, int, int], list[str]] = {}
        confidences: list[float] = []
        for i, word in enumerate(data["text"]):
            word = (word or "").strip()
            conf = float(data["conf"][i])
            if not word or conf < 0:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)
            confidences.append(conf)
        text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
        return text, confidences
