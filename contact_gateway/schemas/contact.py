from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from contact_gateway.core.config import settings

DEFAULT_LANGUAGE = "fr"


class Language(str, Enum):
    FR = "fr"
    NL = "nl"
    EN = "en"


class SubmittedForm(BaseModel):
    """One contact submission, decoded from JSON or form-encoded bytes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=2, max_length=80)
    email: EmailStr
    phone: str = Field("", max_length=40, alias="tel")
    language: Language = Language.FR
    message: str = Field(..., max_length=5000)

    @field_validator("phone", mode="before")
    @classmethod
    def empty_phone(cls, v):
        return "" if v is None else v

    @field_validator("name", mode="after")
    @classmethod
    def single_line(cls, v: str) -> str:
        # The name ends up in the mail subject
        if "\r" in v or "\n" in v:
            raise ValueError("line breaks are not allowed")
        return v

    @field_validator("language", mode="before")
    @classmethod
    def normalize_language(cls, v) -> str:
        if isinstance(v, str):
            v = v.strip().lower()
            if v in {lang.value for lang in Language}:
                return v
        return DEFAULT_LANGUAGE

    @field_validator("message", mode="after")
    @classmethod
    def message_min_length(cls, v: str) -> str:
        minimum = settings.CONTACT_MESSAGE_MIN_LENGTH
        if len(v) < minimum:
            raise ValueError(f"message must be at least {minimum} characters")
        return v
