import io
from unittest.mock import patch

import pytest
from PIL import Image

from invoice_worker.recognition.exceptions import (
    RecognitionEngineNotAvailableError,
    RecognitionError,
)
from invoice_worker.recognition.tesseract_adapter import TesseractRecognizer


def _png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (40, 20), "white").save(buf, format="PNG")
    return buf.getvalue()


def _ocr_data() -> dict[str, list[object]]:
    return {
        "text": ["", "Invoice", "#:", "INV-1", "Total:", "$10.00"],
        "conf": ["-1", "90", "80", "95", "85", "90"],
        "block_num": [0, 1, 1, 1, 1, 1],
        "par_num": [0, 1, 1, 1, 1, 1],
        "line_num": [0, 1, 1, 1, 2, 2],
    }


class TestTesseractRecognizer:
    def test_groups_words_into_lines_and_averages_confidence(self) -> None:
        recognizer = TesseractRecognizer(lang="eng", psm=6, oem=1)
        with patch(
            "invoice_worker.recognition.tesseract_adapter.pytesseract.image_to_data",
            return_value=_ocr_data(),
        ) as mock_ocr:
            result = recognizer.recognize(_png_bytes(), "scan.png")

        assert result.text == "Invoice #: INV-1\nTotal: $10.00"
        assert result.confidence == pytest.approx(0.88)
        assert result.language == "en"
        assert result.processing_engine == "tesseract psm=6 oem=1"
        assert mock_ocr.call_args.kwargs["config"] == "--psm 6 --oem 1"

    def test_rasterizes_pdf_pages(self, multi_page_pdf_bytes: bytes) -> None:
        recognizer = TesseractRecognizer(pdf_dpi=50)
        with patch(
            "invoice_worker.recognition.tesseract_adapter.pytesseract.image_to_data",
            return_value=_ocr_data(),
        ) as mock_ocr:
            result = recognizer.recognize(multi_page_pdf_bytes, "scan.pdf")

        assert mock_ocr.call_count == 2
        assert result.text.count("INV-1") == 2

    def test_no_words_gives_zero_confidence(self) -> None:
        empty = {"text": [""], "conf": ["-1"], "block_num": [0], "par_num": [0], "line_num": [0]}
        with patch(
            "invoice_worker.recognition.tesseract_adapter.pytesseract.image_to_data",
            return_value=empty,
        ):
            result = TesseractRecognizer().recognize(_png_bytes(), "blank.png")

        assert result.text == ""
        assert result.confidence == 0.0

    def test_undecodable_image_raises(self) -> None:
        with pytest.raises(RecognitionError, match="junk.png"):
            TesseractRecognizer().recognize(b"not an image", "junk.png")

    def test_check_available_wraps_missing_binary(self) -> None:
        with (
            patch(
                "invoice_worker.recognition.tesseract_adapter.pytesseract.get_tesseract_version",
                side_effect=OSError("tesseract not found"),
            ),
            pytest.raises(RecognitionEngineNotAvailableError, match="not installed"),
        ):
            TesseractRecognizer().check_available()
