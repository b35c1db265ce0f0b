"""Restic REST backend operations implemented on top of the Jottacloud file API."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import azure.functions as func
import httpx

from jotta_rest.jfs.client import (
    JottaApiError,
    JottaClient,
    JottaClientError,
    JottaNotADirectoryError,
    jotta_client_from_config,
)
from jotta_rest.jfs.errors import JfsDecodeError
from jotta_rest.jfs.models import File

if TYPE_CHECKING:
    from jotta_rest.config import AppConfig

logger = logging.getLogger(__name__)

BINARY_CONTENT_TYPE = "binary/octet-stream"
LISTING_CONTENT_TYPE = "application/vnd.x.restic.rest.v2"

# Created next to the repository base directory by a create request.
REPOSITORY_SUBDIRS = ("data", "index", "keys", "locks", "snapshots")

# Accepted spellings of the repository root's create query flag.
_BOOLEAN_VALUES = frozenset({"true", "false"})

# Failures of a backend call that turn into an error status instead of propagating.
BACKEND_FAILURES = (JottaClientError, JfsDecodeError, httpx.HTTPError)


class Shape(Enum):
    """Kinds of resource the REST layout addresses."""

    BLOB = "blob"
    REPOSITORY = "repository"
    DIRECTORY = "directory"


_ROUTES: tuple[tuple[re.Pattern[str], Shape], ...] = (
    (re.compile(r"^/[^/]+/config$"), Shape.BLOB),
    (re.compile(r"^/[^/]+/$"), Shape.REPOSITORY),
    (re.compile(r"^/[^/]+/[^/]+/$"), Shape.DIRECTORY),
    (re.compile(r"^/[^/]+/[^/]+/[^/]+$"), Shape.BLOB),
)


def match_route(path: str) -> Shape | None:
    """Return the resource shape addressed by ``path``, or None when unknown."""
    for pattern, shape in _ROUTES:
        if pattern.match(path):
            return shape
    return None


@dataclass(frozen=True)
class ResticRequest:
    """An inbound REST request reduced to what the adapter needs."""

    method: str
    path: str
    params: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass
class DirListEntry:
    """One file in a directory listing."""

    name: str
    size: int


_Handler = Callable[[ResticRequest], Awaitable[func.HttpResponse]]


def _status(code: int) -> func.HttpResponse:
    return func.HttpResponse(status_code=code)


def _passthrough_status(code: int) -> int:
    """Use a backend error code as HTTP status when it is a valid one."""
    return code if 100 <= code <= 599 else 500


class ResticAdapter:
    """Serves the restic REST backend contract from a JottaClient."""

    def __init__(self, client: JottaClient) -> None:
        """Initialise the adapter.

        Args:
            client: Authenticated JottaClient shared by all requests.
        """
        self._client = client
        self._handlers: dict[Shape, dict[str, _Handler]] = {
            Shape.BLOB: {
                "HEAD": self.exists,
                "GET": self.download,
                "POST": self.upload,
                "DELETE": self.delete,
            },
            Shape.REPOSITORY: {"POST": self.create_repo},
            Shape.DIRECTORY: {"GET": self.list_dir},
        }

    async def handle(self, request: ResticRequest) -> func.HttpResponse:
        """Dispatch ``request`` by resource shape and method."""
        method = request.method.upper()
        shape = match_route(request.path)
        if shape is None:
            logger.info("[handle] no route; method:%s;path:%s", method, request.path)
            return _status(404 if method == "GET" else 405)

        handler = self._handlers[shape].get(method)
        if handler is None:
            logger.info(
                "[handle] method not allowed; method:%s;shape:%s", method, shape.value
            )
            return _status(405)
        return await handler(request)

    async def exists(self, request: ResticRequest) -> func.HttpResponse:
        """HEAD: 200 with Content-Length for a live file, 404 when absent."""
        path = request.path
        logger.info("[exists] path:%s", path)
        try:
            if not await self._client.exists(path):
                return _status(404)
            obj = await self._client.query_object(path)
        except JottaApiError as exc:
            if exc.status_code == 404:
                return _status(404)
            logger.warning("[exists] backend error; path:%s;code:%d", path, exc.status_code)
            return _status(500)
        except BACKEND_FAILURES:
            logger.error("[exists] lookup failed; path:%s", path, exc_info=True)
            return _status(500)

        if obj.deleted is not None:
            return _status(404)
        if isinstance(obj, File):
            return func.HttpResponse(status_code=200, headers={"Content-Length": str(obj.size)})
        return _status(200)

    async def download(self, request: ResticRequest) -> func.HttpResponse:
        """GET on a blob: the full content; Range headers are not honoured."""
        path = request.path
        logger.info("[download] path:%s", path)
        try:
            content = await self._client.download(path)
        except JottaApiError as exc:
            logger.warning("[download] backend error; path:%s;code:%d", path, exc.status_code)
            return _status(_passthrough_status(exc.status_code))
        except BACKEND_FAILURES:
            logger.error("[download] download failed; path:%s", path, exc_info=True)
            return _status(500)
        return func.HttpResponse(content, status_code=200, mimetype=BINARY_CONTENT_TYPE)

    async def upload(self, request: ResticRequest) -> func.HttpResponse:
        """POST on a blob: store the request body."""
        path = request.path
        logger.info("[upload] path:%s;size:%d", path, len(request.body))
        try:
            await self._client.upload(path, request.body)
        except BACKEND_FAILURES:
            logger.error("[upload] upload failed; path:%s", path, exc_info=True)
            return _status(500)
        return _status(200)

    async def delete(self, request: ResticRequest) -> func.HttpResponse:
        """DELETE on a blob."""
        path = request.path
        logger.info("[delete] path:%s", path)
        try:
            await self._client.delete(path)
        except BACKEND_FAILURES:
            logger.error("[delete] delete failed; path:%s", path, exc_info=True)
            return _status(500)
        return _status(200)

    async def list_dir(self, request: ResticRequest) -> func.HttpResponse:
        """GET on a directory: JSON array of the live files it holds."""
        path = request.path
        logger.info("[list_dir] path:%s", path)
        try:
            folder = await self._client.list(path)
        except JottaNotADirectoryError:
            return func.HttpResponse("Not a directory", status_code=405)
        except BACKEND_FAILURES:
            logger.error("[list_dir] listing failed; path:%s", path, exc_info=True)
            return _status(500)

        if folder.is_deleted:
            logger.debug("[list_dir] folder only in trash; path:%s", path)
        entries = [DirListEntry(name=f.name, size=f.size) for f in folder.live_files()]
        body = json.dumps([asdict(entry) for entry in entries])
        return func.HttpResponse(body, status_code=200, mimetype=LISTING_CONTENT_TYPE)

    async def create_repo(self, request: ResticRequest) -> func.HttpResponse:
        """POST on the repository root with a boolean ``create`` flag.

        Creates the base directory, then all subdirectories concurrently.
        Subdirectories created before a failure are left in place.
        """
        create = request.params.get("create", "").lower()
        if create not in _BOOLEAN_VALUES:
            return func.HttpResponse("Missing or invalid create flag", status_code=400)

        base = request.path.rstrip("/")
        logger.info("[create_repo] base:%s;create:%s", base, create)
        try:
            await self._client.mkdir(base)
        except BACKEND_FAILURES:
            logger.error("[create_repo] base directory failed; base:%s", base, exc_info=True)
            return _status(500)

        results = await asyncio.gather(
            *(self._client.mkdir(f"{base}/{subdir}") for subdir in REPOSITORY_SUBDIRS),
            return_exceptions=True,
        )
        failed: list[str] = []
        for subdir, result in zip(REPOSITORY_SUBDIRS, results, strict=True):
            if not isinstance(result, BaseException):
                continue
            if not isinstance(result, BACKEND_FAILURES):
                raise result
            logger.warning(
                "[create_repo] subdirectory failed; base:%s;subdir:%s;error:%s",
                base,
                subdir,
                result,
            )
            failed.append(subdir)

        if failed:
            return _status(500)
        return _status(200)


def restic_adapter_from_config(config: AppConfig) -> ResticAdapter:
    """Construct a ResticAdapter and its JottaClient from application configuration."""
    return ResticAdapter(jotta_client_from_config(config))
