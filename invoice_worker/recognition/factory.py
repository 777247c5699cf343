from invoice_worker.config.settings import Settings
from invoice_worker.recognition.base import BaseRecognizer
from invoice_worker.recognition.pdfplumber_adapter import PdfPlumberRecognizer
from invoice_worker.recognition.pymupdf_adapter import PyMuPdfRecognizer
from invoice_worker.recognition.sample_adapter import SampleRecognizer
from invoice_worker.recognition.tesseract_adapter import TesseractRecognizer


class RecognizerFactory:
    """Creates the recognition engine named by settings."""

    ENGINES = ("sample", "pdfplumber", "pymupdf", "tesseract")

    @classmethod
    def create(cls, settings: Settings) -> BaseRecognizer:
        engine = settings.recognition_engine.lower()
        if engine == "sample":
            return SampleRecognizer(
                language=settings.recognition_language,
                delay_ms=settings.recognition_sample_delay_ms,
            )
        if engine == "pdfplumber":
            return PdfPlumberRecognizer(language=settings.recognition_language)
        if engine == "pymupdf":
            return PyMuPdfRecognizer(language=settings.recognition_language)
        if engine == "tesseract":
            return TesseractRecognizer(
                lang=settings.tesseract_lang,
                psm=settings.tesseract_psm,
                oem=settings.tesseract_oem,
                pdf_dpi=settings.tesseract_pdf_dpi,
            )
        raise ValueError(
            f"Unknown recognition engine '{engine}'. Choose from: {list(cls.ENGINES)}"
        )
