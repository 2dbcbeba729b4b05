import json

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = Field(default="local", alias="ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    debug_errors: bool = Field(default=False, alias="DEBUG_ERRORS")

    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    # ─────────────────────────────────────────────
    # Sessions / friend codes
    # ─────────────────────────────────────────────
    session_ttl_hours: int = Field(default=24, alias="SESSION_TTL_HOURS")
    friend_code_max_attempts: int = Field(default=1000, alias="FRIEND_CODE_MAX_ATTEMPTS")

    # ─────────────────────────────────────────────
    # World ID proof verification
    # ─────────────────────────────────────────────
    worldid_app_id: str | None = Field(default=None, alias="WORLDID_APP_ID")
    worldid_action: str = Field(default="login", alias="WORLDID_ACTION")
    worldid_verify_url: str = Field(
        default="https://developer.worldcoin.org/api/v2/verify",
        alias="WORLDID_VERIFY_URL",
    )
    worldid_verify_proofs: bool | None = Field(default=None, alias="WORLDID_VERIFY_PROOFS")
    worldid_timeout_seconds: float = Field(default=10.0, alias="WORLDID_TIMEOUT_SECONDS")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        return value.strip().upper()

    @field_validator("worldid_verify_url", mode="before")
    @classmethod
    def normalize_verify_url(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        return value.strip().rstrip("/")

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        if self.session_ttl_hours <= 0:
            raise ValueError("SESSION_TTL_HOURS must be positive")
        if self.friend_code_max_attempts <= 0:
            raise ValueError("FRIEND_CODE_MAX_ATTEMPTS must be positive")
        return self

    def verify_proofs_value(self) -> bool:
        if self.worldid_verify_proofs is not None:
            return self.worldid_verify_proofs
        return self.env not in {"local", "test"}

    def cors_origin_list(self) -> list[str]:
        raw = (self.cors_origins or "").strip()
        if not raw:
            return []

        values: list[str]
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                values = [str(v) for v in parsed if isinstance(v, str)]
            else:
                values = [raw]
        else:
            values = raw.split(",")

        normalized: list[str] = []
        seen: set[str] = set()
        for value in values:
            cleaned = value.strip().strip("\"'")
            if not cleaned:
                continue
            # CORS origins are scheme + host (+ optional port) with no path slash.
            if cleaned != "*" and cleaned.endswith("/"):
                cleaned = cleaned.rstrip("/")
            if cleaned in seen:
                continue
            seen.add(cleaned)
            normalized.append(cleaned)

        return normalized

settings = Settings()
