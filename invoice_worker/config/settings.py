from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "invoices"
    db_username: str = "invoices"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10

    storage_upload_dir: str = "uploads"
    storage_create_dirs: bool = True
    max_file_size_bytes: int = 52_428_800
    allowed_content_types: str = "application/pdf,image/jpeg,image/png"

    recognition_engine: str = "sample"
    recognition_language: str = "en-US"
    recognition_sample_delay_ms: int = 0

    tesseract_lang: str = "eng"
    tesseract_psm: int = 3
    tesseract_oem: int = 3
    tesseract_pdf_dpi: int = 200

    extraction_provider: str = "pattern"
    extraction_openai_api_key: str = ""
    extraction_openai_model_name: str = ""
    extraction_openai_timeout_seconds: int = 30
    extraction_openai_base_url: str = ""
    extraction_openai_temperature: float = 0.0

    validation_min_ocr_confidence: float = 0.70
    validation_ocr_confidence_floor: float = 0.50
    validation_amount_min: Decimal = Decimal("0.01")
    validation_amount_max: Decimal = Decimal("100000.00")
    validation_invoice_date_range_years: int = 1
    validation_min_text_length: int = 10
    validation_reject_synthesized_fields: bool = False

    clear_errors_on_reset: bool = False

    worker_poll_interval_seconds: int = 5
    stuck_processing_timeout_minutes: int = 30
    stuck_sweep_interval_seconds: int = 300

    def allowed_content_type_list(self) -> list[str]:
        return [t.strip() for t in self.allowed_content_types.split(",") if t.strip()]
