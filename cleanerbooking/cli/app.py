"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.entity_store_client import EntityStoreClient
from ..adapters.mock_entity_store import MockEntityStore
from ..config import AppConfig, get_default_config_path
from ..domain.conflict_checker import ConflictChecker
from ..domain.exceptions import BookingCheckError
from ..domain.models import Booking, ConflictCheckRequest, parse_date
from ..services.booking_availability import BookingAvailabilityService

app = typer.Typer(
    name="cleanerbooking",
    help="Check cleaner bookings for conflicts and weekly availability",
    add_completion=False
)

console = Console()
error_console = Console(stderr=True)

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use the bundled mock store instead of the hosted backend.")]
HoursOption = Annotated[float, typer.Option("--hours", help="Booking duration in hours")]
ExcludeOption = Annotated[Optional[str], typer.Option("--exclude", help="Booking ID to ignore (when rescheduling)")]


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    """Load the YAML config; mock mode runs on defaults when no file exists."""
    config_path = config_file or get_default_config_path()

    if mock and not config_path.exists():
        return AppConfig()

    return AppConfig.load_from_yaml(config_path)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True
    )


def _build_service(config: AppConfig, mock: bool) -> BookingAvailabilityService:
    """Wire the store adapter and checkers from configuration."""
    if mock:
        store = MockEntityStore()
    else:
        store_config = config.require_store()
        store = EntityStoreClient(
            base_url=store_config.base_url,
            app_id=store_config.app_id,
            api_key=store_config.api_key,
            timeout_seconds=store_config.timeout_seconds
        )

    scheduling = config.scheduling
    checker = ConflictChecker(
        buffer_minutes=scheduling.buffer_minutes,
        timezone=scheduling.timezone
    )

    return BookingAvailabilityService(
        store=store,
        conflict_checker=checker,
        slot_step_minutes=scheduling.slot_step_minutes
    )


def _setup(config_file: Optional[Path], mock: bool) -> BookingAvailabilityService:
    config = _load_config(config_file, mock)
    _configure_logging(config.log_level)

    if mock:
        console.print("[yellow]⚠  MOCK MODE: using sample data[/yellow]\n")

    return _build_service(config, mock)


def _bookings_table(title: str, bookings: List[Booking]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold yellow")
    table.add_column("Start")
    table.add_column("Hours", justify="right")
    table.add_column("Status")
    table.add_column("Address", style="dim")

    for booking in bookings:
        table.add_row(
            booking.id,
            f"{booking.date.to_date_string()} {booking.start_time.strftime('%H:%M')}",
            f"{booking.hours:g}",
            booking.status,
            booking.address
        )

    return table


@app.command()
def check(
    cleaner: Annotated[str, typer.Argument(help="Cleaner email")],
    date: Annotated[str, typer.Argument(help="Booking date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    hours: HoursOption = 2.0,
    exclude: ExcludeOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Check a candidate booking against the cleaner's existing bookings.

    Examples:

        cleanerbooking check anna@example.com 2026-01-05 12:15 --hours 1 --mock

        cleanerbooking check anna@example.com 2026-01-05 10:00 --exclude bk-1001 --mock
    """
    try:
        service = _setup(config_file, mock)
        request = ConflictCheckRequest.build(cleaner, date, start, hours, exclude)
    except (FileNotFoundError, ValueError, BookingCheckError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    result = asyncio.run(service.check_booking_conflict(request))

    if result.error:
        console.print(
            f"[yellow]⚠ Booking lookup failed: {result.error}[/yellow]\n"
            "No conflict could be confirmed; proceed only after manual review."
        )
    elif result.has_conflict:
        console.print(
            f"[bold red]✗ Conflict:[/bold red] {len(result.conflicting_bookings)} "
            f"booking(s) within {service.buffer_minutes} minutes of the requested slot\n"
        )
        console.print(_bookings_table("Conflicting bookings", result.conflicting_bookings))
    else:
        console.print("[bold green]✓ No conflict[/bold green]")


@app.command()
def fits(
    cleaner: Annotated[str, typer.Argument(help="Cleaner email")],
    date: Annotated[str, typer.Argument(help="Booking date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    hours: HoursOption = 2.0,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Check that a booking lies inside the cleaner's weekly working hours.
    """
    try:
        service = _setup(config_file, mock)
    except (FileNotFoundError, ValueError, BookingCheckError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    available = asyncio.run(service.check_schedule_availability(cleaner, date, start, hours))

    if available:
        console.print("[bold green]✓ Within working hours[/bold green]")
    else:
        console.print("[bold red]✗ Outside working hours[/bold red]")


@app.command()
def enforce(
    cleaner: Annotated[str, typer.Argument(help="Cleaner email")],
    date: Annotated[str, typer.Argument(help="Booking date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    hours: HoursOption = 2.0,
    exclude: ExcludeOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Run the full pre-booking check: existing bookings, then working hours.
    """
    try:
        service = _setup(config_file, mock)
        request = ConflictCheckRequest.build(cleaner, date, start, hours, exclude)
    except (FileNotFoundError, ValueError, BookingCheckError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    decision = asyncio.run(service.check_cleaner_availability(request))

    style = "green" if decision.available else "red"
    console.print(Panel.fit(
        f"[bold {style}]{'Available' if decision.available else 'Not available'}[/bold {style}]\n\n"
        f"{decision.reason}",
        title=f"{request.cleaner_email} · {request.date.to_date_string()} {request.start_time.strftime('%H:%M')}"
    ))

    if decision.conflicts:
        console.print(_bookings_table("Conflicting bookings", decision.conflicts))


@app.command()
def slots(
    cleaner: Annotated[str, typer.Argument(help="Cleaner email")],
    date: Annotated[str, typer.Argument(help="Booking date (YYYY-MM-DD)")],
    hours: HoursOption = 2.0,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List start times on a date where the cleaner can take a booking.
    """
    try:
        service = _setup(config_file, mock)
        day = parse_date(date)
    except (FileNotFoundError, ValueError, BookingCheckError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    open_times = asyncio.run(service.find_open_slots(cleaner, day, hours))

    if not open_times:
        console.print(
            f"[yellow]⚠ No open start times on {day.to_date_string()} "
            f"for a {hours:g}h booking.[/yellow]"
        )
        return

    console.print(
        f"[bold green]✓ {len(open_times)} open start time(s) on "
        f"{day.to_date_string()} ({hours:g}h):[/bold green]\n"
    )
    for start_time in open_times:
        console.print(f"  {start_time.strftime('%H:%M')}")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]cleanerbooking[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
