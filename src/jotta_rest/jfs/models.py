"""Data models for file API objects: files, folders and error documents."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, timezone
from enum import Enum

from jotta_rest.jfs.errors import InvalidTimestampError

# The file API writes "2018-05-19-T00:18:37Z"; note the hyphen before the T.
TIMESTAMP_FORMAT = "%Y-%m-%d-T%H:%M:%SZ"

_TIMESTAMP_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"-T(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<zone>Z|[+-]\d{2}:?\d{2})$"
)


def parse_timestamp(text: str) -> datetime:
    """Parse a file API timestamp into an aware UTC datetime.

    Accepts optional fractional seconds and either ``Z`` or a numeric offset.

    Raises:
        InvalidTimestampError: If the text does not follow the format.
    """
    match = _TIMESTAMP_RE.match(text.strip())
    if match is None:
        raise InvalidTimestampError(text)

    fraction = match.group("fraction") or "0"
    microsecond = int(fraction.ljust(9, "0")[:6])

    zone = match.group("zone")
    if zone == "Z":
        tzinfo: timezone = UTC
    else:
        digits = zone[1:].replace(":", "")
        offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        tzinfo = timezone(-offset if zone[0] == "-" else offset)

    try:
        parsed = datetime(
            int(match.group("year")),
            int(match.group("month")),
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second")),
            microsecond,
            tzinfo=tzinfo,
        )
    except ValueError as exc:
        raise InvalidTimestampError(text) from exc
    return parsed.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the file API timestamp format (UTC, whole seconds)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


class TransferState(Enum):
    """Upload state of a file revision."""

    INCOMPLETE = "INCOMPLETE"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class MediaType:
    """A parsed media type such as ``application/octet-stream``."""

    type: str
    subtype: str
    params: tuple[tuple[str, str], ...] = ()

    @classmethod
    def parse(cls, text: str) -> MediaType:
        """Parse ``type/subtype; key=value`` notation.

        Raises:
            ValueError: If the text has no ``type/subtype`` part.
        """
        essence, *raw_params = text.split(";")
        main, sep, sub = essence.strip().partition("/")
        if not sep or not main or not sub or "/" in sub:
            raise ValueError(f"Not a media type: {text!r}")

        params: list[tuple[str, str]] = []
        for raw in raw_params:
            key, _, value = raw.strip().partition("=")
            if key:
                params.append((key.strip().lower(), value.strip().strip('"')))
        return cls(type=main.lower(), subtype=sub.lower(), params=tuple(params))

    @property
    def essence(self) -> str:
        """The media type without parameters, e.g. ``text/xml``."""
        return f"{self.type}/{self.subtype}"

    def __str__(self) -> str:
        rendered = self.essence
        for key, value in self.params:
            rendered += f"; {key}={value}"
        return rendered


@dataclass(frozen=True)
class File:
    """A file as reported by the file API, described by its current revision.

    ``size`` stays 0 for incomplete transfers, which carry no size element.
    A set ``deleted`` timestamp means the file only exists in the trash.
    """

    name: str
    uuid: str = ""
    request_time: datetime | None = None
    abspath: str | None = None
    revision: int = 0
    state: TransferState | None = None
    created: datetime | None = None
    modified: datetime | None = None
    updated: datetime | None = None
    mime: MediaType | None = None
    size: int = 0
    md5: str = ""
    deleted: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted is not None


@dataclass(frozen=True)
class Folder:
    """A folder and the files and sub-folders listed beneath it."""

    name: str
    request_time: datetime | None = None
    deleted: datetime | None = None
    abspath: str | None = None
    files: tuple[File, ...] = field(default_factory=tuple)
    folders: tuple[Folder, ...] = field(default_factory=tuple)

    @property
    def is_deleted(self) -> bool:
        return self.deleted is not None

    def live_files(self) -> list[File]:
        """Files that are not in the trash, in listing order.

        A deleted folder has no live files, whatever its children report.
        """
        if self.is_deleted:
            return []
        return [f for f in self.files if not f.is_deleted]


@dataclass(frozen=True)
class BackendError:
    """An ``<error>`` document returned by the file API."""

    code: int
    message: str
    reason: str


JfsObject = File | Folder | BackendError
