"""Jottacloud file API client with Basic authentication."""

from __future__ import annotations

import base64
import hashlib
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from jotta_rest.jfs.decoder import decode
from jotta_rest.jfs.models import BackendError, File, Folder, format_timestamp

if TYPE_CHECKING:
    from collections.abc import AsyncIterable

    from jotta_rest.config import AppConfig

logger = logging.getLogger(__name__)

XML_CONTENT_TYPES = frozenset({"text/xml", "application/xml"})
UPLOAD_CONTENT_TYPE = "application/octet-stream"


class JottaClientError(Exception):
    """Base class for failures reported by JottaClient."""


class JottaApiError(JottaClientError):
    """Raised when the file API answers with an ``<error>`` document."""

    def __init__(self, error: BackendError) -> None:
        super().__init__(f"Jotta API error {error.code} {error.reason}: {error.message}")
        self.error = error

    @property
    def status_code(self) -> int:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def reason(self) -> str:
        return self.error.reason


class JottaContentTypeError(JottaClientError):
    """Raised when a response that should be XML has another content type."""

    def __init__(self, content_type: str | None) -> None:
        super().__init__(f"Expected an XML response, got content type {content_type!r}")
        self.content_type = content_type


class JottaNotADirectoryError(JottaClientError):
    """Raised when a folder was expected but the path names a file."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Not a directory: {path}")
        self.path = path


class JottaUnexpectedResponseError(JottaClientError):
    """Raised when a failed request did not come with an ``<error>`` document."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Unexpected response with status {status_code}")
        self.status_code = status_code


def basic_auth(username: str, password: str) -> str:
    """Build the value of a Basic ``Authorization`` header."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


class JottaClient:
    """Authenticated client for the Jottacloud file API.

    Every call goes straight to the network; nothing is retried or cached.
    """

    def __init__(
        self,
        authorization: str,
        base_url: str,
        upload_url: str,
        device_name: str = "Jotta",
        upload_timeout: float = 600.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the client and its connection pool.

        Args:
            authorization: Ready-made ``Authorization`` header value.
            base_url: Read/write endpoint for the mount point, without trailing slash.
            upload_url: Upload endpoint for the same mount point.
            device_name: Device name announced with uploads.
            upload_timeout: Timeout in seconds applied to uploads.
            transport: Optional httpx transport, mainly for tests.
        """
        self._base_url = base_url.rstrip("/")
        self._upload_url = upload_url.rstrip("/")
        self._device_name = device_name
        self._upload_timeout = upload_timeout
        self._http = httpx.AsyncClient(
            headers={"Authorization": authorization},
            timeout=httpx.Timeout(None),
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._http.aclose()

    def _url(self, base: str, path: str) -> str:
        relative = quote(path.strip("/"), safe="/")
        return f"{base}/{relative}" if relative else base

    @staticmethod
    def _check_content_type(response: httpx.Response) -> None:
        content_type = response.headers.get("Content-Type")
        essence = (content_type or "").split(";", 1)[0].strip().lower()
        if essence not in XML_CONTENT_TYPES:
            raise JottaContentTypeError(content_type)

    @staticmethod
    def _decode_response(response: httpx.Response) -> File | Folder:
        """Decode an XML response body, lifting ``<error>`` documents to JottaApiError."""
        obj = decode(response.content)
        if isinstance(obj, BackendError):
            logger.debug(
                "[_decode_response] backend error; code:%d;reason:%s", obj.code, obj.reason
            )
            raise JottaApiError(obj)
        if response.is_error:
            raise JottaUnexpectedResponseError(response.status_code)
        return obj

    def _handle_response(self, response: httpx.Response) -> File | Folder:
        logger.debug("[_handle_response] status:%d", response.status_code)
        self._check_content_type(response)
        return self._decode_response(response)

    async def query_object(self, path: str) -> File | Folder:
        """Fetch the metadata document for ``path``.

        Raises:
            JottaApiError: If the file API answers with an error document.
            JottaContentTypeError: If the response is not XML.
            JfsDecodeError: If the document cannot be decoded.
            httpx.HTTPError: On transport failures.
        """
        url = self._url(self._base_url, path)
        logger.debug("[query_object] url:%s", url)
        response = await self._http.get(url)
        return self._handle_response(response)

    async def list(self, path: str) -> Folder:
        """Fetch the folder at ``path``.

        Raises:
            JottaNotADirectoryError: If ``path`` names a file.
        """
        obj = await self.query_object(path)
        if isinstance(obj, File):
            raise JottaNotADirectoryError(path)
        return obj

    async def exists(self, path: str) -> bool:
        """Return whether ``path`` names a file or folder outside the trash."""
        try:
            obj = await self.query_object(path)
        except JottaApiError as exc:
            if exc.status_code == 404:
                return False
            raise
        if obj.deleted is not None:
            logger.debug("[exists] only in trash; path:%s;deleted:%s", path, obj.deleted)
            return False
        return True

    async def download(self, path: str) -> bytes:
        """Fetch the content of the file at ``path``.

        Raises:
            JottaApiError: If the file API refuses, carrying its status code.
        """
        url = self._url(self._base_url, path)
        logger.debug("[download] url:%s", url)
        response = await self._http.get(url, params={"mode": "bin"})
        if response.is_success:
            return response.content

        obj = decode(response.content)
        if isinstance(obj, BackendError):
            raise JottaApiError(obj)
        raise JottaUnexpectedResponseError(response.status_code)

    async def upload(self, path: str, data: bytes | AsyncIterable[bytes]) -> File | Folder:
        """Store ``data`` as the new content of the file at ``path``.

        The file API wants the size and MD5 digest before the body, so the
        whole payload is read into memory first.
        """
        if isinstance(data, bytes):
            content = data
        else:
            content = b"".join([chunk async for chunk in data])

        digest = hashlib.md5(content).hexdigest()  # noqa: S324
        now = format_timestamp(datetime.now(UTC))
        filename = path.rstrip("/").rsplit("/", 1)[-1] or "file"

        url = self._url(self._upload_url, path)
        logger.debug("[upload] url:%s;size:%d;md5:%s", url, len(content), digest)
        response = await self._http.post(
            url,
            headers={
                "X-Jfs-DeviceName": self._device_name,
                "JSize": str(len(content)),
                "JMd5": digest,
            },
            data={"cphash": digest, "md5": digest, "created": now, "modified": now},
            files={"file": (filename, content, UPLOAD_CONTENT_TYPE)},
            timeout=self._upload_timeout,
        )
        return self._handle_response(response)

    async def mkdir(self, path: str) -> File | Folder:
        """Create the folder at ``path``."""
        url = self._url(self._base_url, path)
        logger.debug("[mkdir] url:%s", url)
        response = await self._http.post(url, params={"mkDir": "true"})
        return self._handle_response(response)

    async def delete(self, path: str) -> File | Folder:
        """Move the file or folder at ``path`` to the trash.

        The object is looked up first because files and folders are deleted
        with different flags. Objects already in the trash are returned as
        they are.
        """
        obj = await self.query_object(path)
        if obj.deleted is not None:
            logger.info("[delete] already in trash; path:%s", path)
            return obj

        flag = "dl" if isinstance(obj, File) else "dlDir"
        url = self._url(self._base_url, path)
        logger.debug("[delete] url:%s;flag:%s", url, flag)
        response = await self._http.post(url, params={flag: "true"})
        return self._handle_response(response)


def jotta_client_from_config(config: AppConfig) -> JottaClient:
    """Construct a JottaClient from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured JottaClient instance.
    """
    mount = f"{config.username}/{config.mount_point.strip('/')}"
    return JottaClient(
        authorization=basic_auth(config.username, config.password),
        base_url=f"{config.base_url.rstrip('/')}/{mount}",
        upload_url=f"{config.upload_url.rstrip('/')}/{mount}",
        device_name=config.device_name,
        upload_timeout=config.upload_timeout_seconds,
    )
