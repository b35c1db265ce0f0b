"""Errors raised while decoding file API XML documents."""


class JfsDecodeError(Exception):
    """Raised when an XML document cannot be decoded into a file API object."""


class UnexpectedEndOfFileError(JfsDecodeError):
    """Raised when the document ends before a complete object was read."""

    def __init__(self) -> None:
        super().__init__("Early end of file")


class UnexpectedTagError(JfsDecodeError):
    """Raised when an element outside the known schema is encountered."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"Unexpected tag while parsing XML: {tag}")
        self.tag = tag


class InvalidTimestampError(JfsDecodeError):
    """Raised when a timestamp does not follow the file API format."""

    def __init__(self, text: str) -> None:
        super().__init__(f"Invalid timestamp: {text!r}")
        self.text = text


class InvalidValueError(JfsDecodeError):
    """Raised when a scalar element is empty or cannot be converted."""

    def __init__(self, tag: str, text: str | None) -> None:
        super().__init__(f"Invalid value for <{tag}>: {text!r}")
        self.tag = tag
        self.text = text
