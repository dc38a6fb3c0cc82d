# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Framework Integrations - FastAPI app exposing the storage interface.
"""

from s3mirror.integrations.fastapi import (
    create_app,
    register_bucket_routes,
    verify_api_key,
)

__all__ = [
    "create_app",
    "register_bucket_routes",
    "verify_api_key",
]
