"""Command-line interface and main entry point.

This module provides the ``prefetch`` CLI: consuming items from the provider
through a prefetch queue, and inspecting or erasing the stored snapshot.
"""

import asyncio
import json
import sys
from datetime import UTC, datetime
from typing import Any

import click
import structlog
from structlog.contextvars import bound_contextvars

from prefetch_app.cli_config import AppConfig, create_app_config
from prefetch_app.observability import configure_logging
from prefetch_core.config import MAX_BATCH_SIZE
from prefetch_core.exceptions import ConfigurationError, PrefetchError
from prefetch_core.kv_store import KeyValueStore, create_kv_store
from prefetch_core.persistence import QueuePersistence
from prefetch_http.factory import create_prefetch_manager

__version__ = "0.1.0"

# Get logger for this module
logger = structlog.get_logger(__name__)


def generate_run_id() -> str:
    """Generate a unique run ID from the current timestamp."""
    timestamp = datetime.now(tz=UTC).strftime("%Y%m%d%H%M%S%f")
    return f"prefetch_{timestamp}"


def create_store(config: AppConfig) -> KeyValueStore:
    """Create the snapshot store described by the configuration."""
    return create_kv_store(
        store_type=config.kvstore,
        key_prefix=config.kvstore_key_prefix,
        default_ttl=config.kvstore_default_ttl,
        file_path=config.kvstore_file_path,
        redis_host=config.kvstore_redis_host,
        redis_port=config.kvstore_redis_port,
        redis_db=config.kvstore_redis_db,
        redis_password=config.kvstore_redis_password,
    )


def _load_config(ctx: click.Context, **overrides: Any) -> AppConfig:
    layered = {**ctx.obj.get("overrides", {}), **overrides}
    try:
        config = create_app_config(layered)
        configure_logging(log_level=config.log_level, dev_mode=config.dev_mode)
        config.to_prefetch_config()
    except ConfigurationError as e:
        raise click.UsageError(e.message) from e
    except (ValueError, TypeError) as e:
        raise click.UsageError(str(e)) from e
    return config


def _echo_item(item: dict[str, Any]) -> None:
    click.echo(json.dumps(item, sort_keys=True, default=str))


async def consume(
    config: AppConfig, count: int, delay: float = 0.0
) -> tuple[int, str | None]:
    """Consume up to ``count`` items, printing each one before popping it.

    Returns:
        The number of items consumed and the last fetch error, if consumption
        stopped because of one.
    """
    prefetch_config = config.to_prefetch_config()
    kv_store = create_store(config) if config.persist else None
    manager, fetch_client, primer = create_prefetch_manager(
        config.to_http_config(),
        prefetch_config,
        kv_store,
        prime_resources=config.prime_resources,
    )

    consumed = 0
    error: str | None = None
    try:
        await manager.activate()
        while consumed < count:
            item = manager.current()
            if item is None:
                await manager.refetch()
                if manager.current() is not None:
                    continue
                error = manager.last_error()
                if error is None:
                    logger.info("FEED_EXHAUSTED", consumed=consumed)
                break

            _echo_item(item.to_dict())
            manager.pop()
            consumed += 1
            if delay > 0:
                await asyncio.sleep(delay)
    finally:
        await manager.aclose()
        await fetch_client.close()
        if primer is not None:
            await primer.close()
        if kv_store is not None:
            await kv_store.close()

    return consumed, error


async def read_snapshot(config: AppConfig) -> list[dict[str, Any]]:
    """Return the records of the stored snapshot, empty when there is none."""
    prefetch_config = config.to_prefetch_config()
    async with create_store(config) as kv_store:
        persistence = QueuePersistence(
            kv_store,
            key=prefetch_config.storage_key,
            prefix=prefetch_config.storage_prefix,
            locator_field=prefetch_config.locator_field,
        )
        items = await persistence.load() or []
    return [item.to_dict() for item in items]


async def erase_snapshot(config: AppConfig) -> None:
    prefetch_config = config.to_prefetch_config()
    async with create_store(config) as kv_store:
        persistence = QueuePersistence(
            kv_store, key=prefetch_config.storage_key, prefix=prefetch_config.storage_prefix
        )
        await persistence.erase()


@click.group(name="prefetch")
@click.version_option(version=__version__, prog_name="feed-prefetcher")
@click.option("--base-url", default=None, help="Base URL of the item provider.")
@click.option(
    "--kvstore",
    type=click.Choice(["memory", "file", "redis"]),
    default=None,
    help="Key-value store holding the queue snapshot.",
)
@click.option(
    "--kvstore-file-path", default=None, help="Directory of the file store."
)
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, ...).")
@click.option(
    "--dev-mode", is_flag=True, default=False, help="Enable development mode logging."
)
@click.pass_context
def cli(
    ctx: click.Context,
    base_url: str | None,
    kvstore: str | None,
    kvstore_file_path: str | None,
    log_level: str | None,
    dev_mode: bool,
) -> None:
    """Keep a feed of items prefetched from a remote provider."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "base_url": base_url,
        "kvstore": kvstore,
        "kvstore_file_path": kvstore_file_path,
        "log_level": log_level,
        "dev_mode": True if dev_mode else None,
    }


@cli.command(short_help="Consume items from the feed")
@click.option(
    "--count",
    "-n",
    type=click.IntRange(min=1),
    default=5,
    show_default=True,
    help="Number of items to consume.",
)
@click.option(
    "--batch-size",
    type=click.IntRange(1, MAX_BATCH_SIZE),
    default=None,
    help="Items requested per fetch.",
)
@click.option(
    "--refill-threshold",
    type=click.IntRange(min=0),
    default=None,
    help="Queue length below which a refill starts.",
)
@click.option(
    "--no-persist", is_flag=True, default=False, help="Do not use the snapshot."
)
@click.option(
    "--delay",
    type=click.FloatRange(min=0),
    default=0.0,
    help="Seconds to wait after each item.",
)
@click.pass_context
def run(
    ctx: click.Context,
    count: int,
    batch_size: int | None,
    refill_threshold: int | None,
    no_persist: bool,
    delay: float,
) -> None:
    """Consume COUNT items, printing each one as a JSON line.

    Items left in the queue are kept in the snapshot for the next run.
    """
    config = _load_config(
        ctx,
        batch_size=batch_size,
        refill_threshold=refill_threshold,
        persist=False if no_persist else None,
    )

    with bound_contextvars(run_id=generate_run_id()):
        logger.info("RUN_STARTING", count=count, base_url=config.base_url)
        try:
            consumed, error = asyncio.run(consume(config, count, delay))
        except PrefetchError as e:
            logger.exception("RUN_COMMAND_ERROR", error=str(e))
            click.echo(f"Error: {e.message}", err=True)
            sys.exit(1)
        logger.info("RUN_COMPLETED", consumed=consumed)

    if error is not None:
        click.echo(f"Error: {error}", err=True)
        sys.exit(1)
    if consumed < count:
        click.echo(f"No more items available after {consumed}.", err=True)


@cli.command(short_help="Print the stored snapshot")
@click.pass_context
def show(ctx: click.Context) -> None:
    """Print every item in the stored snapshot as a JSON line."""
    config = _load_config(ctx)
    records = asyncio.run(read_snapshot(config))
    if not records:
        click.echo("No snapshot stored.", err=True)
        return
    for record in records:
        _echo_item(record)


@cli.command(short_help="Erase the stored snapshot")
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Erase the stored snapshot so the next run starts empty."""
    config = _load_config(ctx)
    asyncio.run(erase_snapshot(config))
    click.echo("Snapshot erased.")


if __name__ == "__main__":
    cli()
