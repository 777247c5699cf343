"""AI-backed invoice field extractor with pattern fallback."""

import json
from datetime import date
from pathlib import Path

from invoice_worker.extraction.base import BaseFieldExtractor
from invoice_worker.extraction.client_base import BaseExtractionClient
from invoice_worker.extraction.exceptions import ExtractionError
from invoice_worker.extraction.models import ExtractedMetadata
from invoice_worker.extraction.pattern_extractor import CENTS
from invoice_worker.extraction.payload import validate_and_build
from invoice_worker.extraction.prompt_loader import load_json_schema, load_prompt_template
from invoice_worker.logging.logger import Log


class AiFieldExtractor(BaseFieldExtractor):
    """Asks a chat model for invoice fields; falls back to another extractor on failure.

    The fallback keeps ``extract`` total: any provider, parsing or schema
    failure is logged and the fallback's result is returned instead. Fields
    the model leaves null are taken from the fallback and listed under
    ``additional_fields["fallback_fields"]``.
    """

    EXTRACTION_METHOD = "ai"

    def __init__(
        self,
        *,
        client: BaseExtractionClient,
        model: str,
        fallback: BaseFieldExtractor,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str = "You extract structured data from invoices.",
    ) -> None:
        self._client = client
        self._model = model
        self._fallback = fallback
        self._temperature = max(0.0, min(0.2, temperature))
        self._system_prompt = system_prompt
        self._prompt_template = load_prompt_template(prompt_template_path)
        self._json_schema = load_json_schema(json_schema_path)
        self._json_schema_dict = json.loads(self._json_schema)

    def extract(self, text: str) -> ExtractedMetadata:
        try:
            metadata = self._extract_with_ai(text or "")
        except Exception as exc:  # noqa: BLE001 - extract must stay total
            Log.warning("AI extraction failed, using fallback", error=exc)
            return self._fallback.extract(text)

        borrowed, synthesized = self._fill_missing(metadata, text)
        metadata.additional_fields.update(
            {
                "extraction_method": self.EXTRACTION_METHOD,
                "document_type": "invoice",
                "model": self._model,
                "processing_timestamp": date.today().isoformat(),
                "fallback_fields": borrowed,
                "synthesized_fields": synthesized,
            }
        )
        Log.info(
            "AI extraction complete",
            items=metadata.item_count,
            fallback=",".join(borrowed) or "-",
        )
        return metadata

    def _fill_missing(self, metadata: ExtractedMetadata, text: str) -> tuple[list[str], list[str]]:
        """Take fields the model left empty from the fallback extractor.

        Returns the borrowed field names and, among them, those the fallback
        itself had to synthesize.
        """
        missing = [
            name
            for name in ("invoice_number", "invoice_date", "total_amount")
            if getattr(metadata, name) is None
        ]
        if not metadata.items:
            missing.append("items")
        if not missing:
            return [], []

        fallback = self._fallback.extract(text)
        for name in missing:
            setattr(metadata, name, getattr(fallback, name))
        fallback_synthesized = set(fallback.synthesized_fields)
        return missing, [name for name in missing if name in fallback_synthesized]

    def _extract_with_ai(self, text: str) -> ExtractedMetadata:
        prompt = self._prompt_template.format(
            recognized_text=text,
            json_schema=self._json_schema,
        )
        Log.debug("Extraction prompt built", chars=len(prompt))
        raw_response = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=self._json_schema_dict,
        )
        Log.debug("AI raw response received", chars=len(raw_response))
        metadata = validate_and_build(self._parse_json(raw_response))
        if metadata.total_amount is not None:
            metadata.total_amount = metadata.total_amount.quantize(CENTS)
        return metadata

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise ExtractionError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ExtractionError("JSON response must be an object")
        return parsed
