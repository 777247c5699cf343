"""Simulated recognition engine.

Answers with one of the bundled sample invoice texts and a plausible
confidence. No image is decoded. Useful for local development and demos;
production deployments configure a real engine.
"""

import random
import time
from datetime import UTC, datetime
from pathlib import Path

from invoice_worker.logging.logger import Log
from invoice_worker.recognition.base import BaseRecognizer
from invoice_worker.recognition.exceptions import RecognitionError
from invoice_worker.recognition.models import RecognitionResult, describe_signals

_DEFAULT_SAMPLES_DIR = Path(__file__).parent / "samples"


def load_sample_texts(samples_dir: Path | None = None) -> list[str]:
    """Read every ``*.txt`` sample, sorted by filename.

    Raises:
        RecognitionError: if the directory holds no samples.
    """
    directory = samples_dir if samples_dir is not None else _DEFAULT_SAMPLES_DIR
    texts = [path.read_text(encoding="utf-8").strip() for path in sorted(directory.glob("*.txt"))]
    if not texts:
        raise RecognitionError(f"No sample invoice texts found in {directory}")
    return texts


class SampleRecognizer(BaseRecognizer):
    """Returns a random sample invoice with confidence in [0.75, 0.98]."""

    ENGINE = "sample"

    def __init__(
        self,
        *,
        texts: list[str] | None = None,
        language: str = "en-US",
        delay_ms: int = 0,
        rng: random.Random | None = None,
    ) -> None:
        self._texts = texts if texts is not None else load_sample_texts()
        self._language = language
        self._delay_ms = delay_ms
        self._rng = rng if rng is not None else random.Random()

    def recognize(self, content: bytes, filename: str) -> RecognitionResult:
        if not content:
            raise RecognitionError(f"Refusing to recognize empty content: {filename}")
        Log.info("Starting simulated recognition", filename=filename, size=len(content))
        started = time.perf_counter()
        if self._delay_ms > 0:
            time.sleep(self._delay_ms / 1000)

        text = self._rng.choice(self._texts)
        confidence = round(0.75 + self._rng.random() * 0.23, 4)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        Log.info(
            "Simulated recognition completed",
            filename=filename,
            confidence=f"{confidence:.2f}",
        )
        return RecognitionResult(
            text=text,
            confidence=confidence,
            language=self._language,
            processing_engine=self.ENGINE,
            processing_time_ms=elapsed_ms,
            extracted_data=describe_signals(text),
            processed_at=datetime.now(UTC),
        )
