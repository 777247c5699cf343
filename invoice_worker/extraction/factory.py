from invoice_worker.config.settings import Settings
from invoice_worker.extraction.ai_extractor import AiFieldExtractor
from invoice_worker.extraction.base import BaseFieldExtractor
from invoice_worker.extraction.example_client_adapter import ExampleClientAdapter
from invoice_worker.extraction.openai_client_adapter import OpenAIClientAdapter
from invoice_worker.extraction.pattern_extractor import PatternFieldExtractor


class FieldExtractorFactory:
    """Creates the configured field extractor."""

    PROVIDERS = ("pattern", "example", "openai")

    @classmethod
    def create(cls, settings: Settings) -> BaseFieldExtractor:
        provider = settings.extraction_provider.lower()
        pattern_extractor = PatternFieldExtractor()
        if provider == "pattern":
            return pattern_extractor
        if provider == "example":
            return AiFieldExtractor(
                client=ExampleClientAdapter(),
                model="example",
                fallback=pattern_extractor,
            )
        if provider == "openai":
            if not settings.extraction_openai_model_name:
                raise ValueError(
                    "extraction_openai_model_name is required for extraction_provider=openai"
                )
            client = OpenAIClientAdapter(
                api_key=settings.extraction_openai_api_key,
                timeout_seconds=settings.extraction_openai_timeout_seconds,
                base_url=settings.extraction_openai_base_url.strip() or None,
            )
            return AiFieldExtractor(
                client=client,
                model=settings.extraction_openai_model_name,
                fallback=pattern_extractor,
                temperature=settings.extraction_openai_temperature,
            )
        raise ValueError(
            f"Unknown extraction provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
