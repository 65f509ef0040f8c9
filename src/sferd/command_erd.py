from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from .diagram import to_markdown
from .erd import ErdOptions, generate_erd
from .provider import DirectorySchemaProvider, SalesforceSchemaProvider, SchemaProvider
from .schema import TraversalMode

_logger = logging.getLogger(__name__)


def _build_options(
    depth: Optional[int],
    max_objects: Optional[int],
    max_fields: Optional[int],
    compact: Optional[bool],
    roots_only: Optional[bool],
    excludes: Tuple[str, ...],
    progress: bool,
) -> ErdOptions:
    """Env defaults (SFERD_*) overridden by whatever was passed on the command line."""
    mode = None
    if roots_only is not None:
        mode = TraversalMode.ROOTS_ONLY if roots_only else TraversalMode.EXPAND

    overrides = {
        "max_depth": depth,
        "max_objects": max_objects,
        "max_fields_per_object": max_fields,
        "compact": compact,
        "mode": mode,
    }
    try:
        base = ErdOptions.from_env()
        return dataclasses.replace(
            base,
            extra_exclusions=tuple(excludes),
            show_progress=progress,
            **{k: v for k, v in overrides.items() if v is not None},
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _provider(from_dir: Optional[Path]) -> SchemaProvider:
    if from_dir is not None:
        return DirectorySchemaProvider(from_dir)
    # Import here so `--help` and offline runs never touch auth
    from .command_common import connect_api

    return SalesforceSchemaProvider(connect_api())


@click.command("erd")
@click.option(
    "-o",
    "--object",
    "objects",
    multiple=True,
    required=True,
    help="Root sObject API name(s) (repeatable).",
)
@click.option(
    "-d",
    "--depth",
    type=click.IntRange(min=0),
    default=None,
    help="Relationship hops to follow from the roots [default: 2].",
)
@click.option(
    "--max-objects",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after describing this many objects [default: no limit].",
)
@click.option(
    "--max-fields",
    type=click.IntRange(min=1),
    default=None,
    help="Fields drawn per entity [default: 8].",
)
@click.option(
    "--compact/--full",
    default=None,
    help="Compact draws entity names only [default: full].",
)
@click.option(
    "--roots-only/--expand",
    default=None,
    help="Only draw the given objects and the relationships between them.",
)
@click.option(
    "-x",
    "--exclude",
    "excludes",
    multiple=True,
    help="Extra objects to leave out: Name, Prefix* or *Suffix (repeatable).",
)
@click.option(
    "--from-dir",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Read describe JSON saved by `sferd describe` instead of calling Salesforce.",
)
@click.option(
    "--out",
    "out_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the diagram here (.md wraps it in a mermaid code fence).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON.")
@click.option("--progress", is_flag=True, help="Show a progress bar while describing.")
def erd_cmd(
    objects: Tuple[str, ...],
    depth: Optional[int],
    max_objects: Optional[int],
    max_fields: Optional[int],
    compact: Optional[bool],
    roots_only: Optional[bool],
    excludes: Tuple[str, ...],
    from_dir: Optional[Path],
    out_path: Optional[Path],
    as_json: bool,
    progress: bool,
) -> None:
    """Generate a Mermaid ER diagram starting from one or more sObjects."""
    opts = _build_options(depth, max_objects, max_fields, compact, roots_only, excludes, progress)
    _logger.info("Generating ERD for %s with %s", ", ".join(objects), opts)
    result = generate_erd(_provider(from_dir), list(objects), opts)

    if out_path is not None:
        text = result.diagram_text
        if out_path.suffix.lower() == ".md":
            text = to_markdown(text)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        click.echo(f"Wrote: {out_path}", err=as_json)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif out_path is None:
        click.echo(result.diagram_text, nl=False)

    summary = (
        f"{len(result.objects_included)} objects, {result.relationship_count} relationships"
        f" ({result.total_objects_found} found)"
    )
    click.secho(summary, err=True, fg="green")
    if result.failed_objects:
        click.secho(
            "Could not describe: " + ", ".join(result.failed_objects), err=True, fg="yellow"
        )
    if result.truncated:
        click.secho(
            "WARNING: object limit reached; diagram is truncated.", err=True, fg="yellow"
        )
    if result.may_exceed_render_limit:
        click.secho(
            "WARNING: diagram may be too large to render; try --compact or a lower --depth.",
            err=True,
            fg="yellow",
        )
