"""Data models for stored image metadata."""

import json
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

IMAGE_KEY_PREFIX = "image"
PROCESSED_KEY_PREFIX = "processed"
DEFAULT_TTL_SECONDS = 86400


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(moment: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC string with a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def image_key(image_id: str) -> str:
    return f"{IMAGE_KEY_PREFIX}:{image_id}"


def processed_key(processed_id: str) -> str:
    return f"{PROCESSED_KEY_PREFIX}:{processed_id}"


class _JsonRecord:
    """JSON (de)serialization shared by the record dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """Build a record from a dict, ignoring unknown keys.

        Raises:
            ValueError: If a required field is missing
        """
        if not isinstance(data, dict):
            raise ValueError(f"{cls.__name__} data must be an object")
        known = {f.name for f in fields(cls)}
        try:
            return cls(**{k: v for k, v in data.items() if k in known})
        except TypeError as e:
            raise ValueError(f"Invalid {cls.__name__} data: {e}") from e

    @classmethod
    def from_json(cls, text: str):
        """Build a record from JSON text.

        Raises:
            ValueError: If the text is not a valid record
        """
        return cls.from_dict(json.loads(text))


@dataclass
class ImageRecord(_JsonRecord):
    """Metadata for an uploaded image.

    Attributes:
        id: Upload identifier
        path: Path of the stored upload
        original_name: Client-supplied filename
        mime_type: Upload MIME type
        size: Size in bytes
        created_at: ISO-8601 creation timestamp
        expires_at: ISO-8601 expiry timestamp
    """
    id: str
    path: str
    original_name: str = ""
    mime_type: str = ""
    size: int = 0
    created_at: str = ""
    expires_at: str = ""

    @classmethod
    def create(
        cls,
        image_id: str,
        path: str,
        original_name: str = "",
        mime_type: str = "",
        size: int = 0,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        now: Optional[datetime] = None
    ) -> "ImageRecord":
        """Create a record timestamped now and expiring after ``ttl_seconds``."""
        now = now or utc_now()
        return cls(
            id=image_id,
            path=path,
            original_name=original_name,
            mime_type=mime_type,
            size=size,
            created_at=isoformat(now),
            expires_at=isoformat(now + timedelta(seconds=ttl_seconds)),
        )


@dataclass
class ProcessedImageRecord(_JsonRecord):
    """Metadata for a processed image.

    Attributes:
        id: Processed image identifier
        original_id: Identifier of the source upload
        path: Path of the processed output
        film_stock: Film stock applied
        aspect_ratio: Aspect ratio used (ratio mode)
        crop: Crop rectangle used (custom mode)
        options: Effect options that were applied
        created_at: ISO-8601 creation timestamp
        expires_at: ISO-8601 expiry timestamp
    """
    id: str
    path: str
    original_id: str = ""
    film_stock: str = ""
    aspect_ratio: Optional[str] = None
    crop: Optional[Dict[str, int]] = None
    options: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    expires_at: str = ""

    @classmethod
    def create(
        cls,
        processed_id: str,
        path: str,
        original_id: str,
        film_stock: str,
        aspect_ratio: Optional[str] = None,
        crop: Optional[Dict[str, int]] = None,
        options: Optional[Dict[str, Any]] = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        now: Optional[datetime] = None
    ) -> "ProcessedImageRecord":
        """Create a record timestamped now and expiring after ``ttl_seconds``."""
        now = now or utc_now()
        return cls(
            id=processed_id,
            path=path,
            original_id=original_id,
            film_stock=film_stock,
            aspect_ratio=aspect_ratio if crop is None else None,
            crop=crop,
            options=options or {},
            created_at=isoformat(now),
            expires_at=isoformat(now + timedelta(seconds=ttl_seconds)),
        )
