"""Click CLI interface definitions.

Defines the command-line interface and routes commands to the runner.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import click
from dotenv import load_dotenv

from InventorySearch.cli.commands import SearchForm
from InventorySearch.cli.runner import CommandRunner
from InventorySearch.config import DEFAULT_CONFIG_PATH, load_config_with_defaults


def search_form_options(func: Callable) -> Callable:
    """Attach the search form options shared by `query` and `fetch`."""
    options = [
        click.option("--segment", default=None, help="Record segment (instances/holdings/items)."),
        click.option("--qindex", default=None, help="Search index or browse option."),
        click.option("--query", "query_text", default=None, help="Query text."),
        click.option("--browse-point", default=None, help="Browse anchor value."),
        click.option("--filters", default=None, help="Filters, e.g. language.eng,resource.text."),
        click.option("--sort", default=None, help="Sort keys, '-' prefix for descending."),
        click.option("--selected-browse-result", is_flag=True, help="Query comes from a browse result."),
        click.option(
            "--identifier-type",
            "identifier_types",
            multiple=True,
            help="Identifier type as ID:NAME, repeatable.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _form(
    segment: str | None,
    qindex: str | None,
    query_text: str | None,
    browse_point: str | None,
    filters: str | None,
    sort: str | None,
    selected_browse_result: bool,
) -> SearchForm:
    return SearchForm(
        segment=segment,
        qindex=qindex,
        query=query_text,
        browse_point=browse_point,
        filters=filters,
        sort=sort,
        selected_browse_result=selected_browse_result,
    )


@click.group(help="InventorySearch: build inventory CQL queries and fetch records.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="YAML config merged over the bundled defaults.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """CLI entry group.

    Loads environment variables from a .env file before reading config.

    Args:
        ctx: Click context.
        config_path: Optional override config file.
    """
    load_dotenv()
    ctx.obj = load_config_with_defaults(config_path or DEFAULT_CONFIG_PATH)


@cli.command("query")
@search_form_options
@click.pass_context
def query_cmd(
    ctx: click.Context,
    segment: str | None,
    qindex: str | None,
    query_text: str | None,
    browse_point: str | None,
    filters: str | None,
    sort: str | None,
    selected_browse_result: bool,
    identifier_types: tuple[str, ...],
) -> None:
    """Print the CQL, path and parameters a search would request."""
    runner = CommandRunner(ctx.obj)
    runner.run_query(
        ctx.command.name,
        _form(segment, qindex, query_text, browse_point, filters, sort, selected_browse_result),
        identifier_types,
    )


@cli.command("fetch")
@search_form_options
@click.option("--offset", type=int, default=0, show_default=True, help="Result offset.")
@click.pass_context
def fetch_cmd(
    ctx: click.Context,
    segment: str | None,
    qindex: str | None,
    query_text: str | None,
    browse_point: str | None,
    filters: str | None,
    sort: str | None,
    selected_browse_result: bool,
    identifier_types: tuple[str, ...],
    offset: int,
) -> None:
    """Fetch records for a search from the configured backend.

    Raises:
        click.Abort: When the fetch fails.
    """
    runner = CommandRunner(ctx.obj)
    runner.run_fetch(
        ctx.command.name,
        _form(segment, qindex, query_text, browse_point, filters, sort, selected_browse_result),
        offset=offset,
        identifier_types=identifier_types,
    )
