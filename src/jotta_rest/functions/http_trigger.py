"""HTTP trigger blueprint: health check and the restic REST backend routes."""

import functools
import json
import logging
from urllib.parse import unquote, urlparse

import azure.functions as func

from jotta_rest import __version__
from jotta_rest.config import load_config
from jotta_rest.restic.adapter import ResticAdapter, ResticRequest, restic_adapter_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()


@functools.cache
def get_adapter() -> ResticAdapter:
    """Return the process-wide adapter; its client pools backend connections."""
    return restic_adapter_from_config(load_config())


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint.

    Returns service status and version.
    """
    logger.info("[health_check] health check requested")

    try:
        body = json.dumps({"status": "ok", "version": __version__})
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        error_body = json.dumps({"status": "error", "message": "Internal server error"})
        return func.HttpResponse(error_body, status_code=500, mimetype="application/json")


@bp.route(route="{*path}", auth_level=func.AuthLevel.ANONYMOUS)
async def restic_backend(req: func.HttpRequest) -> func.HttpResponse:
    """Catch-all endpoint serving the restic REST backend contract.

    The path is taken from the request URL so that trailing slashes, which
    distinguish directories from blobs, survive routing. It is decoded here
    once; the backend client applies its own percent-encoding.
    """
    path = unquote(urlparse(req.url).path) or "/"
    logger.info("[restic_backend] request; method:%s;path:%s", req.method, path)

    try:
        request = ResticRequest(
            method=req.method,
            path=path,
            params=dict(req.params),
            body=req.get_body(),
        )
        return await get_adapter().handle(request)

    except Exception:
        logger.error("[restic_backend] request failed; path:%s", path, exc_info=True)
        error_body = json.dumps({"status": "error", "message": "Internal server error"})
        return func.HttpResponse(error_body, status_code=500, mimetype="application/json")
