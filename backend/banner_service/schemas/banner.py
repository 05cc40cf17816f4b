from datetime import datetime
from typing import Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator, model_validator

from banner_service.core.clock import to_naive_utc

BannerStatus = Literal["active", "paused", "scheduled"]


def validate_http_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    parts = urlsplit(value)
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise ValueError("must be an absolute http(s) URL")
    if len(value) > 2048:
        raise ValueError("URL too long (max 2048)")
    return value


class _BannerFields(BaseModel):
    @field_validator("title", mode="before", check_fields=False)
    @classmethod
    def _strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("desktop_image_id", "mobile_image_id", mode="before", check_fields=False)
    @classmethod
    def _zero_is_none(cls, v):
        # 0 / "" mean "no image"
        return None if v in (0, "0", "") else v

    @field_validator("start_date", "end_date", mode="before", check_fields=False)
    @classmethod
    def _blank_date(cls, v):
        return None if v == "" else v

    @field_validator("start_date", "end_date", check_fields=False)
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @field_validator("mobile_url", check_fields=False)
    @classmethod
    def _mobile_url(cls, v: Optional[str]) -> Optional[str]:
        return validate_http_url(v)

    @field_validator("weight", check_fields=False)
    @classmethod
    def _weight(cls, v: Optional[int]) -> Optional[int]:
        return None if v is None else max(1, v)


class BannerCreate(_BannerFields):
    title: str = Field(min_length=1, max_length=255)
    desktop_url: str
    desktop_image_id: Optional[int] = Field(default=None, ge=0)
    mobile_image_id: Optional[int] = Field(default=None, ge=0)
    mobile_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: BannerStatus = "active"
    weight: int = 1

    @field_validator("desktop_url")
    @classmethod
    def _desktop_url(cls, v: str) -> str:
        url = validate_http_url(v)
        if not url:
            raise ValueError("desktop_url is required")
        return url

    @model_validator(mode="after")
    def _window(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BannerUpdate(_BannerFields):
    """Partial update: only fields present in the request body are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    desktop_url: Optional[str] = None
    desktop_image_id: Optional[int] = Field(default=None, ge=0)
    mobile_image_id: Optional[int] = Field(default=None, ge=0)
    mobile_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[BannerStatus] = None
    weight: Optional[int] = None

    @field_validator("desktop_url")
    @classmethod
    def _desktop_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        url = validate_http_url(v)
        if not url:
            raise ValueError("desktop_url cannot be empty")
        return url

    def changes(self) -> dict:
        data = self.model_dump(include=self.model_fields_set)
        # Required columns cannot be nulled
        for key in ("title", "desktop_url", "status", "weight"):
            if key in data and data[key] is None:
                data.pop(key)
        return data
