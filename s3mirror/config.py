# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3mirror Configuration - Immutable connection and run settings.

The configuration is built once at process start and handed explicitly to
the storage client, the sync pipelines and the HTTP app. It is frozen so
that a running backup or restore never sees it change underneath it.
"""

from dataclasses import dataclass, field, fields
from typing import List


# S3 caps a single ListObjectsV2 page at 1000 keys
MAX_LIST_PAGE_SIZE = 1000


@dataclass(frozen=True)
class MirrorConfig:
    """
    Immutable settings for talking to an S3-compatible store.

    Defaults match a stock local MinIO server.
    """

    # Object store endpoint
    host: str = "localhost"
    port: int = 9000

    # Static credentials
    access_key: str = field(default="minioadmin", repr=False)
    secret_key: str = field(default="minioadmin", repr=False)

    # MinIO ignores the region but botocore requires one for signing
    region: str = "us-east-1"

    # Use https for the endpoint
    secure: bool = False

    # Upper bound on simultaneous object transfers within one bucket
    max_concurrent_transfers: int = 10

    # Keys requested per ListObjectsV2 page
    list_page_size: int = MAX_LIST_PAGE_SIZE

    # Bearer token required by the HTTP surface (None disables auth)
    api_key: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not self.host:
            errors.append("host must not be empty")

        if not 1 <= self.port <= 65535:
            errors.append(f"port must be between 1 and 65535, got {self.port}")

        if self.max_concurrent_transfers < 1:
            errors.append(
                f"max_concurrent_transfers must be >= 1, got {self.max_concurrent_transfers}"
            )

        if not 1 <= self.list_page_size <= MAX_LIST_PAGE_SIZE:
            errors.append(
                f"list_page_size must be between 1 and {MAX_LIST_PAGE_SIZE}, "
                f"got {self.list_page_size}"
            )

        if errors:
            from s3mirror.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    @property
    def endpoint_url(self) -> str:
        """Endpoint URL handed to the S3 client."""
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.host}:{self.port}"

    def with_updates(self, **kwargs) -> "MirrorConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(kwargs)
        return MirrorConfig(**current)
