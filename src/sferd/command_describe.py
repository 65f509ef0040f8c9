from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

import click

from .command_common import connect_api
from .exceptions import DescribeError
from .provider import SalesforceSchemaProvider, save_describe

_logger = logging.getLogger(__name__)


@click.command("describe")
@click.option(
    "-o",
    "--object",
    "objects",
    multiple=True,
    required=True,
    help="sObject API name to describe (repeatable).",
)
@click.option(
    "--out-dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    required=True,
    help="Directory for <Object>.json describe payloads (readable by `erd --from-dir`).",
)
def describe_cmd(objects: Tuple[str, ...], out_dir: Path) -> None:
    """Save raw describe metadata so diagrams can be built offline."""
    provider = SalesforceSchemaProvider(connect_api())

    failures = 0
    for name in objects:
        try:
            payload = provider.describe_raw(name)
        except DescribeError as e:
            failures += 1
            _logger.warning("%s", e)
            click.echo(f"Skipped {name}: {e.reason}", err=True)
            continue
        click.echo(f"Wrote: {save_describe(out_dir, name, payload)}")

    if failures == len(objects):
        raise click.ClickException("No objects could be described.")
