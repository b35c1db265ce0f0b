"""Table-driven decoder turning file API XML documents into model objects.

The decoder walks the start/end events of a fully buffered document once.
Every element below ``<file>``, ``<folder>`` and ``<error>`` must be listed in
that root's rule table; an element missing from the table is a hard failure so
that schema changes on the server side surface immediately.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterator
from typing import Any

from jotta_rest.jfs.errors import (
    InvalidValueError,
    JfsDecodeError,
    UnexpectedEndOfFileError,
    UnexpectedTagError,
)
from jotta_rest.jfs.models import (
    BackendError,
    File,
    Folder,
    JfsObject,
    MediaType,
    TransferState,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

# Root and list item tags
TAG_FILE = "file"
TAG_FOLDER = "folder"
TAG_ERROR = "error"

_Event = tuple[str, ET.Element]


class _EventReader:
    """Sequential access to the start/end events of a buffered XML document."""

    def __init__(self, data: bytes | str) -> None:
        parser = ET.XMLPullParser(events=("start", "end"))
        parser.feed(data)
        try:
            parser.close()
        except ET.ParseError as exc:
            # Truncated documents end here; next() reports them once the
            # decoder actually runs out of events.
            logger.debug("[_EventReader] document incomplete; error:%s", exc)
        self._events: Iterator[_Event] = parser.read_events()

    def next(self) -> _Event:
        """Return the next event.

        Raises:
            UnexpectedEndOfFileError: If the document has no further events.
            JfsDecodeError: If the document is not well-formed XML.
        """
        try:
            return next(self._events)
        except StopIteration:
            raise UnexpectedEndOfFileError() from None
        except ET.ParseError as exc:
            raise JfsDecodeError(f"Malformed XML: {exc}") from exc

    def skip(self, element: ET.Element) -> None:
        """Consume events up to and including the end of ``element``."""
        while True:
            event, current = self.next()
            if event == "end" and current is element:
                return


# ---------------------------------------------------------------------------
# Rule table building blocks
# ---------------------------------------------------------------------------


class _Rule:
    """How a child element contributes to the fields of its parent object."""

    def apply(
        self,
        reader: _EventReader,
        element: ET.Element,
        fields: dict[str, Any],
        rules: dict[str, _Rule],
    ) -> None:
        raise NotImplementedError


class _Scalar(_Rule):
    """Convert the element's text into a single field."""

    def __init__(
        self,
        field: str,
        convert: Callable[[str], Any] = str,
        required: bool = False,
    ) -> None:
        self.field = field
        self.convert = convert
        self.required = required

    def apply(
        self,
        reader: _EventReader,
        element: ET.Element,
        fields: dict[str, Any],
        rules: dict[str, _Rule],
    ) -> None:
        reader.skip(element)
        text = (element.text or "").strip()
        if not text:
            if self.required:
                raise InvalidValueError(element.tag, element.text)
            fields[self.field] = None
            return
        try:
            fields[self.field] = self.convert(text)
        except ValueError as exc:
            raise InvalidValueError(element.tag, text) from exc


class _Skip(_Rule):
    """Known element whose content is not needed."""

    def apply(
        self,
        reader: _EventReader,
        element: ET.Element,
        fields: dict[str, Any],
        rules: dict[str, _Rule],
    ) -> None:
        reader.skip(element)


class _List(_Rule):
    """Wrapper holding a run of ``item_tag`` objects, kept in document order."""

    def __init__(self, field: str, item_tag: str) -> None:
        self.field = field
        self.item_tag = item_tag

    def apply(
        self,
        reader: _EventReader,
        element: ET.Element,
        fields: dict[str, Any],
        rules: dict[str, _Rule],
    ) -> None:
        decode_item = _OBJECT_DECODERS[self.item_tag]
        items = []
        while True:
            event, child = reader.next()
            if event == "end":
                break
            if child.tag != self.item_tag:
                raise UnexpectedTagError(child.tag)
            items.append(decode_item(reader, child))
        fields[self.field] = tuple(items)


class _Revision(_Rule):
    """Revision wrapper whose fields are collected apart from the file's own.

    ``_decode_file`` keeps the current revision and falls back to the latest
    one only when the file has no current revision.
    """

    def __init__(self, key: str) -> None:
        self.key = key

    def apply(
        self,
        reader: _EventReader,
        element: ET.Element,
        fields: dict[str, Any],
        rules: dict[str, _Rule],
    ) -> None:
        revision: dict[str, Any] = {}
        _decode_children(reader, _REVISION_RULES, revision)
        fields[self.key] = revision


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise ValueError(f"negative value {value}")
    return value


_SKIP = _Skip()
_CURRENT_REVISION = "currentRevision"
_LATEST_REVISION = "latestRevision"

_REVISION_RULES: dict[str, _Rule] = {
    "number": _Scalar("revision", _non_negative_int, required=True),
    "state": _Scalar("state", TransferState),
    "created": _Scalar("created", parse_timestamp),
    "modified": _Scalar("modified", parse_timestamp),
    "updated": _Scalar("updated", parse_timestamp),
    "mime": _Scalar("mime", MediaType.parse),
    "size": _Scalar("size", _non_negative_int, required=True),
    "md5": _Scalar("md5", required=True),
}

_FILE_RULES: dict[str, _Rule] = {
    "abspath": _Scalar("abspath"),
    "path": _SKIP,  # same as abspath
    _CURRENT_REVISION: _Revision(_CURRENT_REVISION),
    _LATEST_REVISION: _Revision(_LATEST_REVISION),  # newer, possibly incomplete upload
    "revisions": _SKIP,
    **_REVISION_RULES,
}

_FOLDER_RULES: dict[str, _Rule] = {
    "abspath": _Scalar("abspath"),
    "path": _SKIP,
    "folders": _List("folders", TAG_FOLDER),
    "files": _List("files", TAG_FILE),
    "metadata": _SKIP,  # entry counters
}

_ERROR_RULES: dict[str, _Rule] = {
    "code": _Scalar("code", _non_negative_int, required=True),
    "message": _Scalar("message", required=True),
    "reason": _Scalar("reason", required=True),
    "cause": _SKIP,
    "hostname": _SKIP,
    "x-id": _SKIP,
}

# Attribute name -> (field, converter); None marks a known but unused attribute.
_AttributeRules = dict[str, tuple[str, Callable[[str], Any]] | None]

_FILE_ATTRIBUTES: _AttributeRules = {
    "name": ("name", str),
    "uuid": ("uuid", str),
    "time": ("request_time", parse_timestamp),
    "deleted": ("deleted", parse_timestamp),
    "host": None,
}

_FOLDER_ATTRIBUTES: _AttributeRules = {
    "name": ("name", str),
    "time": ("request_time", parse_timestamp),
    "deleted": ("deleted", parse_timestamp),
    "host": None,
}


# ---------------------------------------------------------------------------
# Object decoders
# ---------------------------------------------------------------------------


def _decode_children(
    reader: _EventReader, rules: dict[str, _Rule], fields: dict[str, Any]
) -> None:
    """Apply ``rules`` to each child until the enclosing element closes."""
    while True:
        event, element = reader.next()
        if event == "end":
            return
        rule = rules.get(element.tag)
        if rule is None:
            raise UnexpectedTagError(element.tag)
        logger.debug("[_decode_children] element:%s", element.tag)
        rule.apply(reader, element, fields, rules)


def _decode_attributes(element: ET.Element, rules: _AttributeRules) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key, value in element.attrib.items():
        if key not in rules:
            logger.debug(
                "[_decode_attributes] unhandled attribute; element:%s;attribute:%s",
                element.tag,
                key,
            )
            continue
        rule = rules[key]
        if rule is None:
            continue
        field, convert = rule
        fields[field] = convert(value)
    if "name" not in fields:
        raise InvalidValueError(f"{element.tag}@name", None)
    return fields


def _decode_file(reader: _EventReader, element: ET.Element) -> File:
    fields = _decode_attributes(element, _FILE_ATTRIBUTES)
    _decode_children(reader, _FILE_RULES, fields)
    current = fields.pop(_CURRENT_REVISION, None)
    latest = fields.pop(_LATEST_REVISION, None)
    revision = current if current is not None else latest
    if revision is not None:
        fields.update(revision)
    return File(**fields)


def _decode_folder(reader: _EventReader, element: ET.Element) -> Folder:
    fields = _decode_attributes(element, _FOLDER_ATTRIBUTES)
    _decode_children(reader, _FOLDER_RULES, fields)
    return Folder(**fields)


def _decode_error(reader: _EventReader, element: ET.Element) -> BackendError:
    fields: dict[str, Any] = {}
    _decode_children(reader, _ERROR_RULES, fields)
    for required in ("code", "message", "reason"):
        if required not in fields:
            raise InvalidValueError(required, None)
    return BackendError(**fields)


_OBJECT_DECODERS: dict[str, Callable[[_EventReader, ET.Element], JfsObject]] = {
    TAG_FILE: _decode_file,
    TAG_FOLDER: _decode_folder,
    TAG_ERROR: _decode_error,
}


def decode(data: bytes | str) -> JfsObject:
    """Decode a file API XML document.

    The first ``<file>``, ``<folder>`` or ``<error>`` element found is decoded;
    any other element before it is treated as an insignificant wrapper.

    Args:
        data: The complete XML document.

    Returns:
        A File, Folder or BackendError.

    Raises:
        UnexpectedEndOfFileError: If the document ends before a root element.
        UnexpectedTagError: If an element outside the schema is found.
        InvalidTimestampError: If a timestamp cannot be parsed.
        InvalidValueError: If a scalar is empty or malformed.
    """
    reader = _EventReader(data)
    while True:
        event, element = reader.next()
        if event == "end":
            raise UnexpectedEndOfFileError()
        decode_object = _OBJECT_DECODERS.get(element.tag)
        if decode_object is None:
            logger.debug("[decode] skipping leading element; tag:%s", element.tag)
            continue
        logger.debug("[decode] found root element; tag:%s", element.tag)
        return decode_object(reader, element)
