# catalog_app/ui_utils.py
from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .enums import ResolutionStatus
from .models import ResolutionResult, SeriesMetadata, SeasonMetadata, EpisodeMetadata

STATUS_STYLES = {
    ResolutionStatus.MATCHED: "green",
    ResolutionStatus.REBOUND: "yellow",
    ResolutionStatus.NO_MATCH: "dim",
    ResolutionStatus.CATALOG_UNAVAILABLE: "bold red",
    ResolutionStatus.MISSING_PARENT: "magenta",
}


def make_console(quiet: bool = False) -> Console:
    return Console(quiet=quiet, highlight=False)

def make_error_console() -> Console:
    return Console(stderr=True, highlight=False)


def _metadata_summary(result: ResolutionResult) -> str:
    metadata = result.metadata
    if isinstance(metadata, SeriesMetadata):
        parts = [metadata.name or "?"]
        if metadata.production_year: parts.append(f"({metadata.production_year})")
        if metadata.status: parts.append(f"[{metadata.status.value}]")
        return " ".join(parts)
    if isinstance(metadata, SeasonMetadata):
        return f"Season {metadata.index_number}: {metadata.name or '?'}"
    if isinstance(metadata, EpisodeMetadata):
        return f"S{metadata.parent_index_number}E{metadata.index_number}: {metadata.name or '?'}"
    return ""


def build_results_table(results: Iterable[ResolutionResult], title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Local Item", overflow="fold")
    table.add_column("Status", no_wrap=True)
    table.add_column("Catalog ID", justify="right")
    table.add_column("Details", overflow="fold")
    for result in results:
        status_text = Text(str(result.status), style=STATUS_STYLES.get(result.status, ""))
        catalog_id = result.binding.catalog_id if result.binding else "-"
        details = _metadata_summary(result) if result.status.has_match else (result.message or "")
        table.add_row(str(result.item_kind), result.local_key, status_text, catalog_id, details)
    return table


def print_results(console: Console, results: Iterable[ResolutionResult], title: Optional[str] = None) -> None:
    result_list = list(results)
    if not result_list:
        console.print("[yellow]Nothing to resolve.[/yellow]")
        return
    console.print(build_results_table(result_list, title=title))
    rebound = [r for r in result_list if r.status is ResolutionStatus.REBOUND]
    for result in rebound:
        console.print(f"[yellow]Binding corrected:[/yellow] {result.local_key} -> {result.message}")
