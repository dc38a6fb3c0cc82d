# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration.

Reads the MINIO_* variables understood by the CLI and the HTTP server and
turns them into a MirrorConfig. Nothing here is cached: call it once at
process start and pass the result along.
"""

from __future__ import annotations

import os
from typing import Mapping

from s3mirror.config import MirrorConfig
from s3mirror.errors import (
    explain_invalid_bool_env,
    explain_invalid_concurrency_env,
    explain_invalid_port_env,
)
from s3mirror.exceptions import ConfigurationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_port(value: str | None) -> int:
    if not value:
        return 9000
    try:
        port = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_port_env(value)) from exc
    if not 1 <= port <= 65535:
        raise ConfigurationError(explain_invalid_port_env(value))
    return port


def _parse_concurrency(value: str | None) -> int:
    if not value:
        return 10
    try:
        limit = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_concurrency_env(value)) from exc
    if limit < 1:
        raise ConfigurationError(explain_invalid_concurrency_env(value))
    return limit


def _parse_bool(name: str, value: str | None) -> bool:
    if not value:
        return False
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(explain_invalid_bool_env(name, value))


def create_config_from_env(environ: Mapping[str, str] | None = None) -> MirrorConfig:
    """
    Create a MirrorConfig from environment variables.

    Optional environment variables:
        - MINIO_HOST: Object store host (default: localhost)
        - MINIO_PORT: Object store port (default: 9000)
        - MINIO_ACCESS_KEY: Access key (default: minioadmin)
        - MINIO_SECRET_KEY: Secret key (default: minioadmin)
        - MINIO_REGION: Signing region (default: us-east-1)
        - MINIO_SECURE: Use https (default: false)
        - S3MIRROR_MAX_CONCURRENCY: Parallel transfers per bucket (default: 10)
        - S3MIRROR_ADMIN_API_KEY: Bearer token for the HTTP surface (default: unset)
    """

    env = os.environ if environ is None else environ

    return MirrorConfig(
        host=env.get("MINIO_HOST") or "localhost",
        port=_parse_port(env.get("MINIO_PORT")),
        access_key=env.get("MINIO_ACCESS_KEY") or "minioadmin",
        secret_key=env.get("MINIO_SECRET_KEY") or "minioadmin",
        region=env.get("MINIO_REGION") or "us-east-1",
        secure=_parse_bool("MINIO_SECURE", env.get("MINIO_SECURE")),
        max_concurrent_transfers=_parse_concurrency(env.get("S3MIRROR_MAX_CONCURRENCY")),
        api_key=env.get("S3MIRROR_ADMIN_API_KEY") or None,
    )
