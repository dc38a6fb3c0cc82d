# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3mirror FastAPI Integration - HTTP surface for bucket/object browsing.

Every route is a direct call into the StorageBackend. Failures come back
as a 500 whose body is the error message in plain text.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from s3mirror.config import MirrorConfig
from s3mirror.storage.base import StorageBackend
from s3mirror.storage.s3 import open_storage

logger = structlog.get_logger()

# Security
security = HTTPBearer(auto_error=False)


class CreateBucketRequest(BaseModel):
    bucket_name: str


class BucketItem(BaseModel):
    bucket_name: str


class ObjectItem(BaseModel):
    object_name: str


async def verify_api_key(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> bool:
    """
    Verify the bearer token when the app was configured with an API key.

    Requests must include: Authorization: Bearer <api_key>

    Raises:
        HTTPException: If the token is missing or invalid
    """
    config: MirrorConfig = request.app.state.mirror_config

    if config.api_key is None:
        return True

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Authorization header required",
        )

    if credentials.credentials != config.api_key:
        raise HTTPException(
            status_code=403,
            detail="Invalid API key",
        )

    return True


def get_storage(request: Request) -> StorageBackend:
    """
    Get the storage backend attached to the app.

    Raises:
        RuntimeError: If the app's storage has not been opened
    """
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise RuntimeError("Storage not initialized. Use create_app() or set app.state.storage.")
    return storage


def _error_response(operation: str, error: Exception, **context) -> PlainTextResponse:
    logger.error("http_operation_failed", operation=operation, error=str(error), **context)
    return PlainTextResponse(str(error), status_code=500)


def register_bucket_routes(app: FastAPI, prefix: str = "") -> None:
    """
    Register bucket and object endpoints on a FastAPI app.

    Args:
        app: FastAPI application (app.state.storage and app.state.mirror_config must be set)
        prefix: URL prefix for endpoints
    """

    @app.get(f"{prefix}/hello", response_class=PlainTextResponse)
    async def hello() -> str:
        """Liveness probe."""
        return "Hello, Minio"

    @app.post(f"{prefix}/buckets", dependencies=[Depends(verify_api_key)])
    async def create_bucket(
        req: CreateBucketRequest,
        storage: StorageBackend = Depends(get_storage),
    ) -> Response:
        try:
            await storage.create_bucket(req.bucket_name)
        except Exception as e:
            return _error_response("create_bucket", e, bucket=req.bucket_name)
        return Response(status_code=200)

    @app.get(f"{prefix}/buckets", dependencies=[Depends(verify_api_key)])
    async def list_buckets(
        storage: StorageBackend = Depends(get_storage),
    ):
        try:
            names = await storage.list_buckets()
        except Exception as e:
            return _error_response("list_buckets", e)
        return [BucketItem(bucket_name=name) for name in names]

    @app.delete(f"{prefix}/buckets/{{bucket}}", dependencies=[Depends(verify_api_key)])
    async def delete_bucket(
        bucket: str,
        storage: StorageBackend = Depends(get_storage),
    ) -> Response:
        try:
            await storage.delete_bucket(bucket)
        except Exception as e:
            return _error_response("delete_bucket", e, bucket=bucket)
        return Response(status_code=200)

    @app.get(f"{prefix}/buckets/{{bucket}}/objects", dependencies=[Depends(verify_api_key)])
    async def list_objects(
        bucket: str,
        storage: StorageBackend = Depends(get_storage),
    ):
        try:
            keys = await storage.list_objects(bucket)
        except Exception as e:
            return _error_response("list_objects", e, bucket=bucket)
        return [ObjectItem(object_name=key) for key in keys]

    @app.get(
        f"{prefix}/buckets/{{bucket}}/objects/{{key:path}}",
        dependencies=[Depends(verify_api_key)],
    )
    async def get_object(
        bucket: str,
        key: str,
        storage: StorageBackend = Depends(get_storage),
    ) -> Response:
        """
        Download one object's bytes.

        Keys may contain ``/``: everything after ``objects/`` is the key.
        """
        try:
            data = await storage.get_object(bucket, key)
        except Exception as e:
            return _error_response("get_object", e, bucket=bucket, key=key)
        return Response(content=data, media_type="application/octet-stream")


def create_app(
    config: MirrorConfig,
    storage: StorageBackend | None = None,
    prefix: str = "",
) -> FastAPI:
    """
    Build the HTTP app.

    When no storage is given, the app's lifespan opens an S3 client for
    the configured endpoint and closes it on shutdown.

    Args:
        config: Connection settings
        storage: Pre-built backend (tests, embedding in another app)
        prefix: URL prefix for endpoints
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.storage is not None:
            yield
            return

        logger.info("storage_opening", endpoint=config.endpoint_url)
        async with open_storage(config) as opened:
            app.state.storage = opened
            try:
                yield
            finally:
                app.state.storage = None
                logger.info("storage_closed", endpoint=config.endpoint_url)

    app = FastAPI(title="s3mirror", lifespan=lifespan)
    app.state.mirror_config = config
    app.state.storage = storage

    register_bucket_routes(app, prefix)

    return app
