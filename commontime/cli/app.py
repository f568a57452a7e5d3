"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Dict, List, Optional, Tuple

import pendulum
import typer
from pendulum import Date
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.graph_client import GraphClient
from ..adapters.json_busy_source import JsonBusyIntervalSource
from ..config import AppConfig, get_default_config_path
from ..domain.availability_engine import AvailabilityEngine
from ..domain.exceptions import CommonTimeError
from ..domain.models import AvailabilityResult, OutputMode
from ..services.availability_finder import AvailabilityFinderService, BusyIntervalSource

app = typer.Typer(
    name="commontime",
    help="Find the meeting time most participants can attend",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the given config, or the default one if it exists."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    logger.debug("No config file at %s, using built-in defaults", default_path)
    return AppConfig()


def _parse_day(value: str, tz: str) -> Date:
    try:
        return pendulum.from_format(value.strip(), "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Fehler beim Parsen des Datums '{value}': {e}[/red]")
        raise typer.Exit(1)


def _parse_participant_args(
    participant_args: List[str],
    config: AppConfig
) -> Tuple[List[str], Dict[str, List[Date]]]:
    """
    Split ``name=YYYY-MM-DD,YYYY-MM-DD`` arguments into participants and
    their explicitly selected days.
    """
    identifiers: List[str] = []
    explicit_days: Dict[str, List[Date]] = {}

    for arg in participant_args:
        identifier, _, days_part = arg.partition("=")
        identifiers.append(identifier)
        if days_part:
            explicit_days[identifier] = [
                _parse_day(day, config.timezone) for day in days_part.split(",") if day.strip()
            ]

    resolved = config.resolve_participants(identifiers)
    emails = list(dict.fromkeys(resolved.values()))

    selections: Dict[str, List[Date]] = {}
    for identifier, days in explicit_days.items():
        selections.setdefault(resolved[identifier], []).extend(days)

    return emails, selections


def _build_source(
    config: AppConfig,
    busy_file: Optional[Path],
    token: Optional[str]
) -> BusyIntervalSource:
    data_file = busy_file or config.busy_data_file
    if data_file is not None:
        return JsonBusyIntervalSource(data_file=data_file, config=config)

    if token:
        return GraphClient(access_token=token, timezone=config.timezone, endpoint=config.graph_endpoint)

    console.print(
        "[red]Fehler: Keine Kalenderquelle angegeben. "
        "Nutzen Sie --busy-file oder --token.[/red]"
    )
    raise typer.Exit(1)


def _display_result(result: AvailabilityResult, participant_count: int) -> None:
    """Print the per-day table and the best meeting times."""
    table = Table(
        title="Verfügbarkeit pro Tag",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Tag", style="bold yellow")
    table.add_column("Max. Teilnehmer", justify="right")
    table.add_column("Mögliche Beginnzeiten", justify="right", style="dim")

    for day, availability in result.days.items():
        best_starts = sum(1 for count in availability.counts.values() if count == availability.max_count)
        table.add_row(
            day.format("dd, DD.MM.YYYY"),
            f"{availability.max_count} / {participant_count}",
            str(best_starts if availability.max_count else 0)
        )

    console.print()
    console.print(table)
    console.print()

    if result.max_count == 0:
        console.print(
            "[yellow]⚠ Kein gemeinsamer Termin gefunden.[/yellow]\n"
            "Versuchen Sie weitere Tage oder eine kürzere Dauer."
        )
        return

    console.print(
        f"[bold green]✓ Beste Verfügbarkeit: {result.max_count} von {participant_count} Teilnehmer(n)[/bold green]\n"
    )

    if result.mode is OutputMode.INTERVALS:
        for day in result.best_days():
            for interval in result.days[day].best_intervals:
                console.print(f"  {interval.format_display()}")
    elif result.mode is OutputMode.SLOTS:
        for slot in result.best_slots():
            console.print(f"  {slot.format_display()}")

    console.print()


@app.command()
def find(
    participants: Annotated[List[str], typer.Argument(help="Teilnehmer als Name/E-Mail, optional mit Tagen: 'max=2024-11-25,2024-11-26'")],
    days: Annotated[Optional[List[str]], typer.Option("--day", "-D", help="Kandidatentag (YYYY-MM-DD), mehrfach angebbar")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Meeting duration in minutes")] = None,
    granularity: Annotated[Optional[int], typer.Option("--granularity", "-g", help="Abstand der Beginnzeiten in Minuten")] = None,
    mode: Annotated[Optional[OutputMode], typer.Option("--mode", "-m", help="Ausgabe: counts, slots oder intervals")] = None,
    busy_file: Annotated[Optional[Path], typer.Option("--busy-file", help="JSON-Datei mit Kalenderterminen")] = None,
    token: Annotated[Optional[str], typer.Option("--token", envvar="COMMONTIME_GRAPH_TOKEN", help="Microsoft Graph Access Token")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug-Ausgaben anzeigen")] = False,
):
    """
    Find the best common meeting time.

    Examples:

        # Same candidate days for everyone
        commontime find ich max --day 2024-11-25 --day 2024-11-26

        # Individual day selections
        commontime find ich=2024-11-25 max=2024-11-25,2024-11-26 -D 2024-11-25 -D 2024-11-26

        # Merged best intervals from a JSON calendar export
        commontime find ich max -D 2024-11-25 --busy-file busy.json --mode intervals
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        pendulum.set_locale("de")
        tz = config.timezone

        emails, selections = _parse_participant_args(participants, config)

        candidate_days = [_parse_day(day, tz) for day in days or []]
        if not candidate_days:
            candidate_days = sorted({day for selected in selections.values() for day in selected})
        if not candidate_days:
            console.print("[red]Fehler: Keine Kandidatentage angegeben (--day).[/red]")
            raise typer.Exit(1)

        for email in emails:
            selections.setdefault(email, list(candidate_days))

        min_duration = duration if duration is not None else config.defaults.duration_minutes
        step = granularity if granularity is not None else config.defaults.granularity_minutes
        output_mode = mode or config.defaults.output_mode
        working_hours = config.get_working_hours()

        console.print("[bold cyan]📊 Zusammenfassung:[/bold cyan]")
        console.print(f"   Teilnehmer: {', '.join(emails)}")
        console.print(f"   Tage: {', '.join(day.format('DD.MM.YYYY') for day in candidate_days)}")
        console.print(f"   Dauer: {min_duration} Minuten (Raster {step} Min.)")
        console.print(f"   Arbeitszeiten: {working_hours}")

        engine = AvailabilityEngine(working_hours=working_hours, granularity_minutes=step)
        service = AvailabilityFinderService(
            source=_build_source(config, busy_file, token),
            engine=engine
        )

        result = asyncio.run(
            service.find_availability(
                candidate_days=candidate_days,
                participant_selections=selections,
                duration_minutes=min_duration,
                mode=output_mode,
            )
        )

        _display_result(result, participant_count=len(emails))

    except (FileNotFoundError, ValueError, CommonTimeError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def list_participants(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    )
):
    """
    List all configured participants.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)

    if not config.participants:
        console.print("[yellow]Keine Teilnehmer in der Config-Datei definiert.[/yellow]")
        return

    table = Table(
        title="Konfigurierte Teilnehmer",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (Alias)", style="bold yellow")
    table.add_column("E-Mail", style="dim")

    for participant in config.participants:
        table.add_row(participant.name, participant.email)

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]commontime[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
