# src/api/app.py — v1
"""FastAPI application: /diff, /upload and /projects."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vismatch.api.codec import base64_to_image, bytes_to_base64
from vismatch.api.models import (
    CompareImageReq,
    CompareImageResp,
    ErrorResp,
    ProjectListResp,
    SimilarImageEntry,
    UploadImageReq,
    UploadImageResp,
)
from vismatch.config.settings import Settings
from vismatch.core.errors import (
    ImageDecodeError,
    InvalidNameError,
    ProjectNotFoundError,
    VismatchError,
)
from vismatch.core.models import ImageDistEntry
from vismatch.logging.context import clear_context, set_request_context
from vismatch.service.image_service import ImageService
from vismatch.version import __version__

logger = logging.getLogger(__name__)

_BAD_REQUEST_ERRORS = (ProjectNotFoundError, ImageDecodeError, InvalidNameError)

NOT_FOUND_MESSAGE = "Nothing here. Try POST /diff or POST /upload."


def create_app(
    settings: Settings | None = None,
    service: ImageService | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Service settings. Loaded from .env if None.
        service: A ready ImageService. When None, one is built from settings,
            seeded from disk at startup and closed at shutdown.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if service is not None:
            app.state.service = service
            yield
            return
        owned = ImageService(settings)
        await owned.start()
        app.state.service = owned
        try:
            yield
        finally:
            owned.close()

    app = FastAPI(
        title="vismatch",
        description="Perceptual-hash image similarity service",
        version=__version__,
        lifespan=lifespan,
    )
    if service is not None:
        app.state.service = service

    _register_error_handlers(app)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        set_request_context(uuid.uuid4().hex)
        try:
            return await call_next(request)
        finally:
            clear_context()

    @app.post("/diff", response_model=CompareImageResp)
    async def compare_handler(
        payload: CompareImageReq,
        svc: ImageService = Depends(get_service),
    ) -> CompareImageResp:
        image = base64_to_image(payload.data)
        ranked = await svc.compare_image(payload.project_name, image, payload.top_k)
        results = [
            await _to_api_entry(svc, entry, payload.with_image) for entry in ranked
        ]
        return CompareImageResp(
            project_name=payload.project_name,
            compare_result=results,
        )

    @app.post("/upload", response_model=UploadImageResp)
    async def upload_handler(
        payload: UploadImageReq,
        svc: ImageService = Depends(get_service),
    ) -> UploadImageResp:
        logger.info("Received upload request on <%s>", payload.project_name)
        image = base64_to_image(payload.data)
        await svc.upload_image(payload.project_name, image, payload.image_name)
        return UploadImageResp(
            message="image uploaded and indexed successfully",
            token=uuid.uuid4().hex,
        )

    @app.get("/projects", response_model=ProjectListResp)
    async def projects_handler(
        svc: ImageService = Depends(get_service),
    ) -> ProjectListResp:
        return ProjectListResp(projects=await svc.list_projects())

    return app


def get_service(request: Request) -> ImageService:
    return request.app.state.service


async def _to_api_entry(
    svc: ImageService, entry: ImageDistEntry, with_image: bool
) -> SimilarImageEntry:
    data = None
    if with_image:
        data = bytes_to_base64(await svc.read_image_bytes(entry.image_name))
    return SimilarImageEntry(
        image_name=Path(entry.image_name).name,
        distance=entry.distance,
        data=data,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResp(message=message).model_dump(),
    )


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(VismatchError)
    async def vismatch_error_handler(request: Request, exc: VismatchError) -> JSONResponse:
        if isinstance(exc, _BAD_REQUEST_ERRORS):
            logger.info("Bad request on %s: %s", request.url.path, exc)
            return _error(400, str(exc))
        logger.error("Request on %s failed: %s", request.url.path, exc)
        return _error(500, str(exc))

    @app.exception_handler(OSError)
    async def os_error_handler(request: Request, exc: OSError) -> JSONResponse:
        logger.error("Filesystem failure on %s: %s", request.url.path, exc)
        return _error(500, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(400, f"invalid request: {exc.errors()}")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=404)
        return _error(exc.status_code, str(exc.detail))
