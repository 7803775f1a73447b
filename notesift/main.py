"""
Command line entry point for notesift
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.text import Text

from notesift import __version__
from notesift.config import get_settings
from notesift.search import (
    GlobalQueryTargets,
    NoteSearch,
    QueryValidationError,
    SearchMode,
    SearchOptions,
    SearchOutcome,
    SortMode,
    highlight_excerpt,
    parse_query_string,
    render_rich,
    summarize_breakdown,
)
from notesift.utils import get_logger, log_search_event, setup_logging
from notesift.utils.logger import preview_text
from notesift.vault import VaultStore

app = typer.Typer(add_completion=False, help="Compound, explainable search over a Markdown vault.")

console = Console()
err_console = Console(stderr=True)

EXIT_USAGE = 2


def _parse_targets(targets: str | None) -> GlobalQueryTargets:
    if targets is None:
        return GlobalQueryTargets()
    facets = [facet.strip() for facet in targets.split(",") if facet.strip()]
    try:
        return GlobalQueryTargets.only(*facets)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--targets") from e


def _print_results(outcome: SearchOutcome, case_sensitive: bool) -> None:
    for result in outcome.results:
        console.print(Text(result.path, style="bold cyan"))
        for excerpt in result.excerpts:
            gutter = "     " if excerpt.is_synthetic else f"{excerpt.line + 1:>4} "
            line = Text(gutter, style="dim")
            line.append_text(
                render_rich(highlight_excerpt(excerpt, result, case_sensitive))
            )
            console.print(line)
        console.print()

    summary = outcome.summary
    status = "cancelled" if summary.cancelled else "done"
    console.print(
        f"[bold]{summary.matched_files}[/bold] notes matched, "
        f"{summary.total_line_hits} line hits, "
        f"{summary.files_scanned} scanned in {summary.time_ms} ms ({status})"
    )
    if summary.files_failed:
        console.print(f"[yellow]{summary.files_failed} notes could not be read[/yellow]")


@app.command()
def search(
    query: Annotated[str, typer.Argument(help='Query, e.g. \'tag:project line:"alice bob" roadmap\'')],
    vault: Annotated[Path | None, typer.Option("--vault", "-v", help="Vault directory")] = None,
    mode: Annotated[SearchMode | None, typer.Option("--mode", "-m", help="Free-text match mode")] = None,
    case_sensitive: Annotated[
        bool, typer.Option("--case-sensitive", "-c", help="Case-sensitive dedicated filters")
    ] = False,
    sort: Annotated[SortMode | None, typer.Option("--sort", "-s", help="Result order")] = None,
    limit: Annotated[int | None, typer.Option("--limit", "-n", help="Stop after N matching notes")] = None,
    targets: Annotated[
        str | None,
        typer.Option("--targets", "-t", help="Free-text facets: body,name,path,frontmatter,tags,headings"),
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print results as JSON")] = False,
    breakdown: Annotated[bool, typer.Option("--breakdown", "-b", help="Print per-filter hit counts")] = False,
    log_file: Annotated[Path | None, typer.Option("--log-file", help="Also write logs to this file")] = None,
) -> None:
    """Search the vault and print matching notes with their evidence."""
    setup_logging(log_file)
    logger = get_logger(__name__)
    settings = get_settings()

    vault_path = vault or settings.vault_path
    if not vault_path.is_dir():
        err_console.print(f"Error: vault directory {vault_path} not found")
        raise typer.Exit(1)

    try:
        parsed = parse_query_string(query).build(case_sensitive=case_sensitive)
    except QueryValidationError as e:
        err_console.print(f"Error: {e}")
        raise typer.Exit(EXIT_USAGE) from e

    options = SearchOptions(
        mode=mode or SearchMode(settings.default_mode),
        case_sensitive=case_sensitive,
        sort=sort or SortMode(settings.default_sort),
        limit=limit if limit is not None else settings.default_limit,
        global_query_targets=_parse_targets(targets),
    )
    log_search_event(
        "Search requested",
        query=preview_text(query),
        mode=options.mode.value,
        vault=str(vault_path),
    )

    store = VaultStore(
        vault_path,
        exclude_folders=settings.exclude_folders,
        cache_size=settings.body_cache_size,
    )
    outcome = asyncio.run(NoteSearch(store, settings).search(parsed, options))
    logger.debug("Body cache", **store.cache_stats())

    if as_json:
        typer.echo(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_results(outcome, case_sensitive)

    if breakdown:
        for line in summarize_breakdown(outcome, parsed):
            err_console.print(line, markup=False, highlight=False)


@app.command()
def version() -> None:
    """Print the notesift version."""
    typer.echo(__version__)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
