# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Command line entry point.

    s3mirror backup --action backup --path ./dump --bucket-name photos
    s3mirror backup --action restore --path ./dump
    s3mirror serve --bind-port 8080
"""

import asyncio
import sys
from pathlib import Path

import click
import structlog

from s3mirror.config import MirrorConfig
from s3mirror.env import create_config_from_env
from s3mirror.exceptions import S3MirrorError
from s3mirror.log import configure_logging
from s3mirror.storage.s3 import open_storage
from s3mirror.sync import SyncResult, backup, restore

logger = structlog.get_logger()

ACTIONS = ("backup", "restore")


def _build_config(**overrides) -> MirrorConfig:
    """Environment defaults, overridden by whatever was passed on the command line."""
    config = create_config_from_env()
    explicit = {name: value for name, value in overrides.items() if value is not None}
    if explicit:
        config = config.with_updates(**explicit)
    return config


async def run_action(
    config: MirrorConfig,
    action: str,
    path: Path,
    bucket_name: str | None,
) -> SyncResult:
    """Open the store and run one backup or restore."""
    async with open_storage(config) as storage:
        if action == "backup":
            return await backup(
                storage,
                path,
                bucket_name,
                max_concurrency=config.max_concurrent_transfers,
            )
        return await restore(
            storage,
            path,
            max_concurrency=config.max_concurrent_transfers,
        )


def _print_summary(result: SyncResult) -> None:
    click.echo(
        f"{result.action} {result.run_id}: {result.transferred_count} transferred, "
        f"{len(result.skipped)} skipped, {result.failed_count} failed "
        f"across {len(result.buckets)} bucket(s) in {result.duration_seconds:.1f}s"
    )
    for failure in result.failures:
        click.echo(f"  failed: {failure}", err=True)


@click.group()
@click.option("--host", default=None, help="Object store host [env: MINIO_HOST, default: localhost]")
@click.option("--port", type=int, default=None, help="Object store port [env: MINIO_PORT, default: 9000]")
@click.option("--access-key", default=None, help="Access key [env: MINIO_ACCESS_KEY]")
@click.option("--secret-key", default=None, help="Secret key [env: MINIO_SECRET_KEY]")
@click.option("--region", default=None, help="Signing region [env: MINIO_REGION]")
@click.option("--verbose", "-v", is_flag=True, help="Log every object transfer")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx, host, port, access_key, secret_key, region, verbose, json_logs):
    """Mirror an S3-compatible object store to and from a local directory."""
    configure_logging(verbose=verbose, json_output=json_logs)
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "host": host,
        "port": port,
        "access_key": access_key,
        "secret_key": secret_key,
        "region": region,
    }


@cli.command(name="backup")
@click.option(
    "--action",
    required=True,
    type=click.Choice(ACTIONS),
    help="backup: store -> disk, restore: disk -> store",
)
@click.option(
    "--path",
    "-p",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Root directory holding one subdirectory per bucket",
)
@click.option(
    "--bucket-name",
    "-b",
    default="",
    help="Bucket to back up; empty or 'null' backs up every bucket",
)
@click.option("--max-concurrency", type=int, default=None, help="Parallel transfers per bucket")
@click.option("--strict", is_flag=True, help="Exit non-zero if any single transfer failed")
@click.pass_context
def backup_command(ctx, action, path, bucket_name, max_concurrency, strict):
    """Back up buckets to PATH, or restore them from PATH."""
    try:
        config = _build_config(
            max_concurrent_transfers=max_concurrency,
            **ctx.obj["overrides"],
        )
        result = asyncio.run(run_action(config, action, path, bucket_name))
    except S3MirrorError as e:
        logger.error("run_failed", action=action, path=str(path), error=str(e))
        raise click.ClickException(str(e))

    _print_summary(result)

    if strict and not result.ok:
        sys.exit(1)


@cli.command()
@click.option("--bind-host", default="127.0.0.1", show_default=True, help="Interface to listen on")
@click.option("--bind-port", type=int, default=8080, show_default=True, help="Port to listen on")
@click.pass_context
def serve(ctx, bind_host, bind_port):
    """Serve the bucket/object HTTP API."""
    import uvicorn

    from s3mirror.integrations.fastapi import create_app

    try:
        config = _build_config(**ctx.obj["overrides"])
    except S3MirrorError as e:
        raise click.ClickException(str(e))

    logger.info("http_server_starting", bind=f"{bind_host}:{bind_port}", endpoint=config.endpoint_url)
    uvicorn.run(create_app(config), host=bind_host, port=bind_port)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
