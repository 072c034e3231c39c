"""Data models for Featured Feed."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from dateutil import parser as date_parser

REQUIRED_FIELDS = ("id", "title", "link", "modified", "thumbnail", "content")
STRING_FIELDS = ("id", "title", "link", "thumbnail", "content", "summary", "image")


class FormatError(ValueError):
    """Raised when an item cannot be rendered."""

    def __init__(
        self, message: str, item_id: str | None = None, missing: tuple = ()
    ):
        super().__init__(message)
        self.item_id = item_id
        self.missing = tuple(missing)


def to_datetime(seconds: float, field: str = "timestamp") -> datetime:
    """Convert epoch seconds to an aware UTC datetime.

    Raises:
        FormatError: If the value is not a number or falls outside years 1-9999
    """
    if isinstance(seconds, bool) or not isinstance(seconds, int | float):
        raise FormatError(f"Invalid {field}: {seconds!r}")
    try:
        return datetime.fromtimestamp(seconds, UTC)
    except (ValueError, OverflowError, OSError) as e:
        raise FormatError(f"Invalid {field} {seconds!r}: {e}") from e


def to_timestamp(value: Any, field: str = "timestamp") -> float:
    """Convert an epoch value or a date string to epoch seconds.

    Numbers are kept as given, fractions included. Naive date strings
    are read as UTC.

    Raises:
        FormatError: If the value cannot be interpreted as a point in time
    """
    if isinstance(value, bool):
        raise FormatError(f"Invalid {field}: {value!r}")
    if isinstance(value, int | float):
        to_datetime(value, field)
        return value
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.parse(value)
        except (ValueError, OverflowError) as e:
            raise FormatError(f"Invalid {field} {value!r}: {e}") from e
    else:
        raise FormatError(f"Invalid {field}: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    seconds = parsed.timestamp()
    return int(seconds) if seconds.is_integer() else seconds


@dataclass(frozen=True)
class FeatureItem:
    """A single featured content item."""

    id: str
    title: str
    link: str
    modified: float
    thumbnail: str
    content: str
    summary: str = ""
    image: str = ""
    tags: tuple[str, ...] | None = None
    publish: float | None = None

    def validate(self) -> "FeatureItem":
        """Check field types and timestamp ranges.

        Returns:
            The item itself

        Raises:
            FormatError: If a text field is not a string or a timestamp is
                not a usable epoch value
        """
        item_id = self.id if isinstance(self.id, str) else None
        for name in STRING_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str):
                raise FormatError(
                    f"Item {item_id or '<unknown>'}: {name} must be a string, "
                    f"got {type(value).__name__}",
                    item_id=item_id,
                )
        if self.tags is not None and (
            isinstance(self.tags, str)
            or not isinstance(self.tags, list | tuple)
            or not all(isinstance(tag, str) for tag in self.tags)
        ):
            raise FormatError(
                f"Item {item_id}: tags must be a sequence of strings", item_id=item_id
            )
        try:
            to_datetime(self.modified, "modified")
            if self.publish is not None:
                to_datetime(self.publish, "publish")
        except FormatError as e:
            raise FormatError(f"Item {item_id}: {e}", item_id=item_id) from e
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeatureItem":
        """Build an item from a mapping such as one entry of an items file.

        Args:
            data: Mapping with at least the required item keys

        Returns:
            FeatureItem instance

        Raises:
            FormatError: If a required key is missing, a text field is not a
                string or a timestamp is invalid
        """
        if not isinstance(data, Mapping):
            raise FormatError(f"Item must be a mapping, got {type(data).__name__}")

        item_id = data.get("id")
        missing = tuple(key for key in REQUIRED_FIELDS if data.get(key) is None)
        if missing:
            raise FormatError(
                f"Item {item_id or '<unknown>'} is missing required fields: "
                f"{', '.join(missing)}",
                item_id=item_id,
                missing=missing,
            )

        tags = data.get("tags")
        if isinstance(tags, str):
            tags = (tags,)
        elif tags is not None:
            try:
                tags = tuple(str(tag) for tag in tags)
            except TypeError as e:
                raise FormatError(
                    f"Item {item_id}: tags must be a list, got {type(tags).__name__}",
                    item_id=item_id,
                ) from e

        try:
            modified = to_timestamp(data["modified"], "modified")
            publish = data.get("publish")
            if publish is not None:
                publish = to_timestamp(publish, "publish")
        except FormatError as e:
            raise FormatError(f"Item {item_id}: {e}", item_id=item_id) from e

        return cls(
            id=str(item_id),
            title=data["title"],
            link=data["link"],
            modified=modified,
            thumbnail=data["thumbnail"],
            content=data["content"],
            summary=data.get("summary") or "",
            image=data.get("image") or "",
            tags=tags,
            publish=publish,
        ).validate()

    def is_published(self, now: float) -> bool:
        """Check whether the publish gate has passed."""
        return self.publish is None or self.publish <= now
