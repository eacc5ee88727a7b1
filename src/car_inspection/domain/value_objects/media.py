"""Image value objects attached to reports and car parts."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..exceptions import ValidationError
from .coercion import coerce_optional_enum


class ImageCategory(Enum):
    """View of the car shown by a report image."""
    FRONT = "front"
    REAR = "rear"
    LEFT = "left"
    RIGHT = "right"
    FRONT_LEFT = "front-left"
    FRONT_RIGHT = "front-right"
    REAR_LEFT = "rear-left"
    REAR_RIGHT = "rear-right"
    INTERIOR_FRONT = "interior-front"
    INTERIOR_REAR = "interior-rear"
    DASHBOARD = "dashboard"
    ENGINE = "engine"
    TRUNK = "trunk"
    UNDERCARRIAGE = "undercarriage"
    WHEELS = "wheels"
    OTHER = "other"


class ImageAngle(Enum):
    """Angle a car part photo was taken from."""
    FRONT = "front"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    CLOSE_UP = "close-up"
    OVERVIEW = "overview"


def _require_url(url: Optional[str]) -> None:
    if not url or not url.strip():
        raise ValidationError("Image url cannot be empty")


@dataclass(frozen=True)
class CarImage:
    """Photo of the whole car included in a report."""

    url: str
    category: Optional[ImageCategory] = None
    caption: str = ""
    is_primary: bool = False

    def __post_init__(self) -> None:
        _require_url(self.url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "category": self.category.value if self.category else None,
            "caption": self.caption,
            "is_primary": self.is_primary,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CarImage":
        return cls(
            url=data.get("url") or "",
            category=coerce_optional_enum(ImageCategory, data.get("category"), "carImages.category"),
            caption=data.get("caption") or "",
            is_primary=bool(data.get("is_primary", False)),
        )


@dataclass(frozen=True)
class PartImage:
    """Photo of a single car part."""

    url: str
    caption: str = ""
    angle: Optional[ImageAngle] = None

    def __post_init__(self) -> None:
        _require_url(self.url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "caption": self.caption,
            "angle": self.angle.value if self.angle else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PartImage":
        return cls(
            url=data.get("url") or "",
            caption=data.get("caption") or "",
            angle=coerce_optional_enum(ImageAngle, data.get("angle"), "images.angle"),
        )
