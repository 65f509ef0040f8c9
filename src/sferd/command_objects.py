from __future__ import annotations

import click

from .command_common import connect_api
from .exclusions import DEFAULT_POLICY


@click.command("objects")
@click.option(
    "--all",
    "show_all",
    is_flag=True,
    help="Show all sObjects (default: only queryable).",
)
@click.option(
    "--include-excluded",
    is_flag=True,
    help="Also list system objects that diagrams leave out.",
)
def objects_cmd(show_all: bool, include_excluded: bool) -> None:
    """List sObject API names usable as diagram roots."""
    api = connect_api()

    for s in api.list_sobjects(queryable_only=not show_all):
        name = s.get("name", "")
        if not include_excluded and DEFAULT_POLICY.is_excluded(name):
            continue
        click.echo(name)
