"""Command line interface for relaydocs."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from relaydocs.annotation import get_annotation
from relaydocs.archive.resolver import DescriptorResolver
from relaydocs.config import AppConfig
from relaydocs.errors import DescriptorNotFoundError, RelayDocsError
from relaydocs.parsing.loader import parse_consensus_file, parse_descriptor_file
from relaydocs.utils.files import iter_document_paths


console = Console()
app = typer.Typer(help="relaydocs - parse and search relay directory archives")


class DocumentKind(str, Enum):
    descriptor = "descriptor"
    consensus = "consensus"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _parse_date(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise typer.BadParameter(f"Expected a YYYY-MM-DD date, got {value!r}") from exc


@app.command()
def annotation(
    inputs: List[Path] = typer.Argument(..., help="Document files or directories."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show the type annotation of each document."""
    _setup_logging(verbose)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Document")
    table.add_column("Annotation")

    failed = 0
    for path in iter_document_paths(inputs):
        try:
            table.add_row(str(path), str(get_annotation(path)))
        except (RelayDocsError, OSError) as exc:
            failed += 1
            table.add_row(str(path), f"[red]{exc}[/red]")

    console.print(table)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def records(
    path: Path = typer.Argument(..., help="Document to parse."),
    kind: DocumentKind = typer.Option(DocumentKind.descriptor, help="Expected document kind"),
    limit: Optional[int] = typer.Option(None, help="Stop after this many records"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List the records of a server descriptor or consensus document."""
    _setup_logging(verbose)
    parse = parse_descriptor_file if kind is DocumentKind.descriptor else parse_consensus_file

    try:
        stream = parse(path)
    except (RelayDocsError, OSError) as exc:
        console.print(f"[red]Cannot parse {path}: {exc}[/red]")
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Fingerprint")
    table.add_column("Nickname")
    table.add_column("Address")
    table.add_column("ORPort")

    failed = 0
    with stream:
        try:
            for record in stream:
                if limit is not None and record.index >= limit:
                    break
                if not record.ok:
                    failed += 1
                    continue
                value = record.value
                table.add_row(value.fingerprint, value.nickname, value.address, str(value.or_port))
        except RelayDocsError as exc:
            console.print(table)
            console.print(f"[red]Parsing stopped: {exc}[/red]")
            raise typer.Exit(code=1)

    console.print(table)
    if failed:
        console.print(f"[yellow]Skipped {failed} malformed records.[/yellow]")


@app.command()
def lookup(
    digest: str = typer.Argument(..., help="Fingerprint to look up"),
    date: str = typer.Option(..., "--date", help="Reference date (YYYY-MM-DD)"),
    root: Path = typer.Option(None, "--root", help="Archive root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Find a server descriptor in the archive by digest and date."""
    _setup_logging(verbose)
    reference_date = _parse_date(date)
    config = AppConfig(archive_root=root if root is not None else AppConfig().archive_root)
    resolved_root = config.resolve_archive_root(Path.cwd())

    resolver = DescriptorResolver(resolved_root, config=config)
    try:
        descriptor = resolver.resolve(digest, reference_date)
    except DescriptorNotFoundError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(code=1)
    except (RelayDocsError, OSError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    table = Table(show_header=False)
    table.add_row("Fingerprint", descriptor.fingerprint)
    table.add_row("Nickname", descriptor.nickname)
    table.add_row("Address", f"{descriptor.address}:{descriptor.or_port}")
    table.add_row("Published", str(descriptor.published or "-"))
    table.add_row("Platform", descriptor.platform or "-")
    table.add_row("Digest", descriptor.digest or "-")
    console.print(table)
