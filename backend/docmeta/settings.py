from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    # Runtime
    environment: str = Field(default="development", validation_alias="APP_ENV")
    port: int = Field(default=8080, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # AWS / data
    aws_region: str = Field(default="us-east-1", validation_alias="AWS_REGION")
    # DynamoDB Local / LocalStack endpoint (e.g. http://localhost:8000)
    ddb_endpoint_url: str | None = Field(default=None, validation_alias="AWS_DYNAMODB_ENDPOINT")
    aws_access_key_id: str | None = Field(default=None, validation_alias="AWS_DYNAMODB_ACCESS_KEY")
    aws_secret_access_key: str | None = Field(default=None, validation_alias="AWS_DYNAMODB_SECRET_KEY")

    # Table naming: "<prefix>-<base>" lets dev/staging/prod share one account.
    environment_prefix: str | None = Field(default=None, validation_alias="APP_ENVIRONMENT_PREFIX")
    ddb_table_base_name: str = Field(default="DocumentMetadata", validation_alias="DDB_TABLE_BASE_NAME")
    ddb_table_name: str | None = Field(default=None, validation_alias="DDB_TABLE_NAME")

    # "dynamodb" | "memory"
    storage_backend: str = Field(default="dynamodb", validation_alias="STORAGE_BACKEND")

    # Upper bound on concurrent sub-queries for IN-style lookups.
    fanout_max_workers: int = Field(default=8, ge=1, validation_alias="FANOUT_MAX_WORKERS")

    # ---- helpers / derived flags ----
    @property
    def normalized_environment(self) -> str:
        v = (self.environment or "").strip().lower()
        if v in ("prod", "production"):
            return "production"
        if v in ("stage", "staging"):
            return "staging"
        if v in ("dev", "development"):
            return "development"
        return v or "development"

    @property
    def is_production(self) -> bool:
        return self.normalized_environment == "production"

    @property
    def normalized_storage_backend(self) -> str:
        v = (self.storage_backend or "").strip().lower()
        return v or "dynamodb"

    @property
    def table_name(self) -> str:
        explicit = (self.ddb_table_name or "").strip()
        if explicit:
            return explicit
        base = (self.ddb_table_base_name or "").strip() or "DocumentMetadata"
        prefix = (self.environment_prefix or "").strip()
        return f"{prefix}-{base}" if prefix else base

    def require_in_production(self) -> None:
        """
        Enforce required settings in production.

        Local work may run against the in-memory store or an unprefixed table,
        production must name its table explicitly.
        """
        if not self.is_production:
            return

        missing: list[str] = []

        if self.normalized_storage_backend != "dynamodb":
            missing.append("STORAGE_BACKEND=dynamodb")
        if not ((self.ddb_table_name or "").strip() or (self.environment_prefix or "").strip()):
            missing.append("DDB_TABLE_NAME (or APP_ENVIRONMENT_PREFIX)")

        if missing:
            raise RuntimeError(
                "Missing required production environment variables: "
                + ", ".join(missing)
            )

    def to_log_safe_dict(self) -> dict[str, object]:
        """
        A redacted representation safe for structured logs / diagnostics.
        """
        def _has(v: object) -> bool:
            return v is not None and str(v).strip() != ""

        return {
            "environment": self.normalized_environment,
            "port": self.port,
            "storage": {
                "backend": self.normalized_storage_backend,
                "table_name": self.table_name,
                "fanout_max_workers": self.fanout_max_workers,
            },
            "aws": {
                "aws_region": self.aws_region,
                "ddb_endpoint_url": self.ddb_endpoint_url,
                "static_credentials_configured": _has(self.aws_access_key_id)
                and _has(self.aws_secret_access_key),
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
