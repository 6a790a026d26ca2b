#!/usr/bin/env python3
import asyncio
import json
import sys
from typing import List, Optional, Tuple

import click
import structlog

from config.logging import configure_logging, log_error
from config.settings import get_settings
from error_handling.errors import ResolutionError
from .models import CacheKind
from .service import build_resolver

logger = structlog.get_logger()


async def _resolve_all(ids: Tuple[str, ...], network: str, block: Optional[str], cache: CacheKind) -> List[dict]:
    async with build_resolver() as resolver:
        results = await asyncio.gather(
            *(resolver.get_transaction(id=id, network=network, block=block, cache=cache) for id in ids),
            return_exceptions=True
        )

    output = []
    for id, result in zip(ids, results):
        if isinstance(result, ResolutionError):
            output.append({"id": id, **result.to_dict()})
        elif isinstance(result, BaseException):
            log_error(logger, result, {"id": id, "network": network})
            raise result
        else:
            output.append({"id": id, **result.model_dump()})
    return output


@click.group()
@click.option("--log-format", type=click.Choice(["json", "console"]), default="json",
              help="Render log lines as JSON or for a terminal")
def cli(log_format: str):
    """Transaction resolver command line interface"""
    configure_logging(get_settings().LOG_LEVEL, json_output=log_format == "json")


@cli.command("get-transaction")
@click.option("--id", "ids", multiple=True, required=True, help="Transaction id, may be repeated")
@click.option("--network", required=True, help="Network name")
@click.option("--block", default=None, help="Hash of the block containing the transactions")
@click.option("--no-cache", is_flag=True, help="Bypass the cache store")
def get_transaction(ids: Tuple[str, ...], network: str, block: Optional[str], no_cache: bool):
    """Resolve raw transactions by id"""
    cache = CacheKind.NONE if no_cache else CacheKind.STORE
    results = asyncio.run(_resolve_all(ids, network, block, cache))

    failed = False
    for result in results:
        if "error" in result:
            failed = True
            click.echo(json.dumps(result), err=True)
        else:
            click.echo(json.dumps(result))

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
