import re
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator

from banner_service.models.placement import ROTATION_STRATEGIES

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9_-]+")
_DASHES_RE = re.compile(r"-{2,}")
# Older clients send "ordered" for the round-robin strategy
STRATEGY_ALIASES = {"ordered": "sequential"}


def sanitize_slug(value: str) -> str:
    slug = _SLUG_STRIP_RE.sub("-", value.strip().lower())
    return _DASHES_RE.sub("-", slug).strip("-")


def _slug(v: str) -> str:
    slug = sanitize_slug(v)
    if not slug:
        raise ValueError("slug must contain letters or digits")
    if len(slug) > 100:
        raise ValueError("slug too long (max 100)")
    return slug


def _strategy(v: str) -> str:
    v = STRATEGY_ALIASES.get(v.strip().lower(), v.strip().lower())
    if v not in ROTATION_STRATEGIES:
        raise ValueError(f"rotation_strategy must be one of {', '.join(ROTATION_STRATEGIES)}")
    return v


def _name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("name required")
    return v


Slug = Annotated[str, AfterValidator(_slug)]
RotationStrategy = Annotated[str, AfterValidator(_strategy)]
PlacementName = Annotated[str, Field(min_length=1, max_length=255), AfterValidator(_name)]


class PlacementCreate(BaseModel):
    slug: Slug
    name: PlacementName
    rotation_strategy: RotationStrategy = "random"


class PlacementUpdate(BaseModel):
    slug: Optional[Slug] = None
    name: Optional[PlacementName] = None
    rotation_strategy: Optional[RotationStrategy] = None

    def changes(self) -> dict:
        data = self.model_dump(include=self.model_fields_set)
        return {k: v for k, v in data.items() if v is not None}


class AssignmentSync(BaseModel):
    banner_ids: List[int]

    def normalized_ids(self) -> List[int]:
        """Positive ids, first occurrence wins, order kept."""
        seen: set[int] = set()
        ids = []
        for banner_id in self.banner_ids:
            if banner_id > 0 and banner_id not in seen:
                seen.add(banner_id)
                ids.append(banner_id)
        return ids


class AssignmentCreate(BaseModel):
    banner_id: int = Field(gt=0)
    position: int = 0

    @field_validator("position")
    @classmethod
    def _position(cls, v: int) -> int:
        return max(0, v)


class AssignmentPosition(BaseModel):
    position: int

    @field_validator("position")
    @classmethod
    def _position(cls, v: int) -> int:
        return max(0, v)
