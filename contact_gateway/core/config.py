from typing import List, Optional, Tuple

from pydantic import AliasChoices, Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KNOWN_GATES = ("challenge", "content")
KNOWN_CONTENT_CHECKS = ("blacklist", "alphabet", "link")


class Settings(BaseSettings):
    PROJECT_NAME: str = "Contact Gateway"
    VERSION: str = "1.0.0"

    # --- Environment & Debug ---
    ENVIRONMENT: str = "local"
    DEBUG: bool = False  # Default to False for security
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # --- Server ---
    HOST: str = "127.0.0.1"
    PORT: int = 3000
    CONTACT_PATH: str = "/api/contact"

    # --- Outbound mail ---
    SMTP_HOST: Optional[str] = "ssl0.ovh.net"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("SMTP_USER", "MAIL_USER")
    )
    SMTP_PASSWORD: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("SMTP_PASSWORD", "MAIL_PASS")
    )
    SMTP_TIMEOUT: float = 15.0
    SMTP_RETRIES: int = 0
    MAIL_FROM: Optional[str] = None  # Falls back to SMTP_USER
    ADMIN_TO: Optional[str] = Field(default=None, validate_default=True)

    # --- Cloudflare Turnstile ---
    TURNSTILE_SECRET: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("TURNSTILE_SECRET", "TURNSTILE_SECRET_KEY"),
    )
    TURNSTILE_VERIFY_URL: str = (
        "https://challenges.cloudflare.com/turnstile/v0/siteverify"
    )
    TURNSTILE_TIMEOUT: float = 10.0

    # --- Contact pipeline ---
    CONTACT_RATE_LIMIT: int = 10
    CONTACT_RATE_WINDOW_SECONDS: int = 15 * 60
    CONTACT_MAX_BODY_BYTES: int = 200_000
    CONTACT_MESSAGE_MIN_LENGTH: int = 3
    CONTACT_GATES: List[str] = Field(
        default_factory=lambda: ["challenge", "content"],
        description="Gates run after decoding, in order. Drop 'challenge' to disable Turnstile.",
    )
    CONTENT_FILTER_CHECKS: List[str] = Field(
        default_factory=lambda: ["blacklist", "alphabet", "link"],
        description="Content checks in evaluation order; the first failure wins.",
    )
    BLACKLISTED_NAMES: List[str] = Field(default_factory=lambda: ["robertves"])
    DISALLOWED_CODEPOINT_RANGES: List[Tuple[int, int]] = Field(
        default_factory=lambda: [(0x0400, 0x04FF)],
        description="Inclusive code point ranges rejected in messages (Cyrillic by default).",
    )

    # --- Proxy / CORS ---
    TRUSTED_PROXIES: List[str] = Field(
        default_factory=lambda: ["127.0.0.1", "10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"],
        description="CIDR ranges of trusted reverse proxies for X-Forwarded-For",
    )
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=list,
        validate_default=True,
        description="List of allowed CORS origins. Configure in .env",
    )

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def default_allowed_origins(
        cls, v: Optional[List[str]], info: ValidationInfo
    ) -> Optional[List[str]]:
        env = info.data.get("ENVIRONMENT") or "local"
        if env != "production":
            if v is None:
                return ["http://localhost:5173", "http://localhost:3000"]
            if isinstance(v, str) and v.strip() in ("", "[]"):
                return ["http://localhost:5173", "http://localhost:3000"]
            if isinstance(v, list) and len(v) == 0:
                return ["http://localhost:5173", "http://localhost:3000"]
        return v

    @field_validator("CONTACT_GATES", mode="after")
    @classmethod
    def validate_gates(cls, v: List[str]) -> List[str]:
        unknown = [gate for gate in v if gate not in KNOWN_GATES]
        if unknown:
            raise ValueError(f"Unknown CONTACT_GATES entries: {unknown}")
        if len(set(v)) != len(v):
            raise ValueError("CONTACT_GATES must not repeat a gate")
        return v

    @field_validator("CONTENT_FILTER_CHECKS", mode="after")
    @classmethod
    def validate_content_checks(cls, v: List[str]) -> List[str]:
        unknown = [check for check in v if check not in KNOWN_CONTENT_CHECKS]
        if unknown:
            raise ValueError(f"Unknown CONTENT_FILTER_CHECKS entries: {unknown}")
        return v

    @field_validator("DISALLOWED_CODEPOINT_RANGES", mode="after")
    @classmethod
    def validate_codepoint_ranges(
        cls, v: List[Tuple[int, int]]
    ) -> List[Tuple[int, int]]:
        for start, end in v:
            if start > end:
                raise ValueError(f"Invalid code point range: {start:#x}-{end:#x}")
        return v

    @field_validator("ADMIN_TO", mode="after")
    @classmethod
    def require_admin_in_production(
        cls, v: Optional[str], info: ValidationInfo
    ) -> Optional[str]:
        # Contact mail has nowhere to go without an administrator mailbox
        env = info.data.get("ENVIRONMENT") or "local"
        if env == "production" and not v:
            raise ValueError("ADMIN_TO must be set in production")
        return v

    @property
    def mail_sender(self) -> Optional[str]:
        return self.MAIL_FROM or self.SMTP_USER


settings = Settings()
