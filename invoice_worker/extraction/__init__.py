from invoice_worker.extraction.base import BaseFieldExtractor
from invoice_worker.extraction.factory import FieldExtractorFactory
from invoice_worker.extraction.models import ExtractedMetadata, LineItem
from invoice_worker.extraction.pattern_extractor import PatternFieldExtractor

__all__ = [
    "BaseFieldExtractor",
    "ExtractedMetadata",
    "FieldExtractorFactory",
    "LineItem",
    "PatternFieldExtractor",
]
