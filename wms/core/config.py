import json
from typing import List, Union
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "WMS Inventory Engine"
    env: str = "dev"
    log_level: str = "INFO"

    # DATABASE
    database_url: str
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=20, ge=0, le=200)
    db_pool_timeout_seconds: int = Field(default=30, ge=1, le=300)
    db_pool_recycle_seconds: int = Field(default=1800, ge=30, le=86_400)
    sqlite_busy_timeout_seconds: float = Field(default=15.0, gt=0, le=300)
    api_timeout_hint_ms: int = Field(default=30000, ge=1000, le=1_800_000)

    # BARCODES
    container_prefix_box: str = "KOL"
    container_prefix_pallet: str = "PAL"
    container_sequence_width: int = Field(default=5, ge=1, le=12)
    serial_number_digits: int = Field(default=6, ge=1, le=20)

    # CYCLE COUNTS
    count_report_prefix: str = "SAY"
    count_report_sequence_width: int = Field(default=4, ge=1, le=12)

    # TRANSACTIONS
    transactions_page_max: int = Field(default=500, ge=1, le=5000)

    # CORS
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    cors_origin_regex: str | None = None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            if not v.strip():
                return []
            if v.startswith("["):
                parsed = json.loads(v)
                if not isinstance(parsed, list):
                    raise ValueError("CORS_ORIGINS JSON value must be a list")
                return [str(i).strip() for i in parsed if str(i).strip()]
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, list):
            return [str(i).strip() for i in v if str(i).strip()]
        raise ValueError(v)

    @field_validator(
        "container_prefix_box",
        "container_prefix_pallet",
        "count_report_prefix",
        mode="before",
    )
    @classmethod
    def normalize_prefix(cls, value: str) -> str:
        cleaned = str(value or "").strip().upper()
        if not cleaned or not cleaned.isalnum():
            raise ValueError("Barcode prefixes must be non-empty alphanumeric strings")
        return cleaned

    @model_validator(mode="after")
    def validate_barcode_prefixes(self) -> "Settings":
        if self.container_prefix_box == self.container_prefix_pallet:
            raise ValueError("CONTAINER_PREFIX_BOX and CONTAINER_PREFIX_PALLET must differ")
        return self

    @model_validator(mode="after")
    def validate_production_safety(self) -> "Settings":
        env_value = self.env.lower().strip()
        if env_value not in {"prod", "production"}:
            return self

        if self.database_url.lower().startswith("sqlite"):
            raise ValueError("DATABASE_URL cannot point at SQLite in production")
        if "*" in self.cors_origins:
            raise ValueError("CORS_ORIGINS cannot contain '*' in production")
        if self.cors_origin_regex:
            raise ValueError("CORS_ORIGIN_REGEX cannot be set in production")

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        enable_decoding=False,
    )


settings = Settings()
