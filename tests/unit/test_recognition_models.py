import pytest

from invoice_worker.recognition.models import (
    ConfidenceLevel,
    RecognitionResult,
    describe_signals,
    text_layer_result,
)


class TestRecognitionResult:
    @pytest.mark.parametrize(
        ("confidence", "level"),
        [
            (0.95, ConfidenceLevel.HIGH),
            (0.8, ConfidenceLevel.HIGH),
            (0.65, ConfidenceLevel.MEDIUM),
            (0.3, ConfidenceLevel.LOW),
            (None, ConfidenceLevel.UNKNOWN),
        ],
    )
    def test_confidence_level(self, confidence: float | None, level: ConfidenceLevel) -> None:
        result = RecognitionResult(text="x", confidence=confidence, language="en")
        assert result.confidence_level is level

    def test_confidence_percentage(self) -> None:
        result = RecognitionResult(text="x", confidence=0.8766, language="en")
        assert result.confidence_percentage == "87.7%"

    def test_missing_confidence_percentage(self) -> None:
        result = RecognitionResult(text="x", confidence=None, language="en")
        assert result.confidence_percentage == "0%"

    def test_text_length(self) -> None:
        assert RecognitionResult(text="abc", confidence=1.0, language=None).text_length == 3
        assert RecognitionResult(text="", confidence=1.0, language=None).text_length == 0


class TestDescribeSignals:
    def test_empty_text(self) -> None:
        signals = describe_signals("")

        assert signals["word_count"] == 0
        assert signals["line_count"] == 0
        assert signals["has_invoice_number"] is False

    def test_counts_words_and_lines(self) -> None:
        signals = describe_signals("one two\nthree")

        assert signals["word_count"] == 3
        assert signals["line_count"] == 2
        assert signals["character_count"] == 13


class TestTextLayerResult:
    def test_text_gives_full_confidence(self) -> None:
        result = text_layer_result("Hello", engine="e", language="en", processing_time_ms=3)

        assert result.confidence == 1.0
        assert result.processing_engine == "e"
        assert result.has_extracted_data

    def test_blank_text_gives_zero_confidence(self) -> None:
        result = text_layer_result("  ", engine="e", language="en", processing_time_ms=0)
        assert result.confidence == 0.0
