from typing import Optional

from pydantic import BaseModel, Field, field_validator


class TrackEvent(BaseModel):
    banner_id: int = Field(gt=0)
    placement_id: int = Field(gt=0)
    token: str = Field(max_length=128)

    @field_validator("token", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class EmbedContent(BaseModel):
    content: str = ""


class MediaCreate(BaseModel):
    url: str = Field(min_length=1)
    alt_text: Optional[str] = Field(default=None, max_length=255)

    @field_validator("url")
    @classmethod
    def _url(cls, v: str) -> str:
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://") or v.startswith("/")):
            raise ValueError("url must be http(s) or site-relative")
        return v
