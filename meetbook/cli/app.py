"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.google_authenticator import GoogleAuthenticator
from ..adapters.google_calendar_client import GoogleCalendarClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.clock import parse_civil_date
from ..domain.exceptions import AuthenticationError, BookingValidationError, CalendarAPIError
from ..domain.ics import build_ics
from ..domain.models import BookingStatus
from ..services.availability import AvailabilityService
from ..services.booking import BookingService

app = typer.Typer(
    name="meetbook",
    help="List open meeting slots and book them on a Google Calendar",
    add_completion=False
)

console = Console()
logger = logging.getLogger(__name__)

SLOTS_UNAVAILABLE_MESSAGE = "Calendar service temporarily unavailable. Please try again later."
SLOTS_FAILED_MESSAGE = "Failed to fetch available slots. Please try again."

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use mock calendar data and skip authentication.")]
MockDataOption = Annotated[Optional[Path], typer.Option("--mock-data", help="JSON file with mock busy periods.")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the raw response as JSON.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    try:
        return AppConfig.load_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _build_calendar_client(config: AppConfig, mock: bool, mock_data: Optional[Path] = None):
    if mock:
        return MockCalendarClient(timezone=config.timezone, data_file=mock_data)

    authenticator = GoogleAuthenticator(
        client_id=config.google.client_id,
        client_secret=config.google.client_secret,
        refresh_token=config.google.refresh_token,
    )
    return GoogleCalendarClient(
        authenticator=authenticator,
        timezone=config.timezone,
        calendar_id=config.google.calendar_id,
        owner_email=config.google.owner_email,
    )


def _print_json(data) -> None:
    console.print_json(json.dumps(data))


@app.command()
def types(config_file: ConfigOption = None):
    """
    List the configured meeting types.
    """
    config = _load_config(config_file)

    if not config.meeting_types:
        console.print("[yellow]No meeting types defined in the config file.[/yellow]")
        return

    table = Table(
        title=f"Meeting types for {config.owner.name}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Slug", style="bold yellow")
    table.add_column("Title")
    table.add_column("Duration", justify="right")
    table.add_column("Buffer", justify="right")
    table.add_column("Notice", justify="right")

    for meeting_type in config.meeting_types:
        table.add_row(
            meeting_type.slug,
            meeting_type.title,
            f"{meeting_type.duration_minutes} min",
            f"{meeting_type.buffer_minutes} min",
            f"{meeting_type.min_notice_hours:g} h",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def dates(
    meeting_type: Annotated[str, typer.Argument(help="Meeting type slug")],
    start: Annotated[Optional[str], typer.Option("--start", help="First date (YYYY-MM-DD). Defaults to today.")] = None,
    days: Annotated[int, typer.Option("--days", "-n", min=1, max=366, help="Number of days to show")] = 14,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """
    Show which dates can be booked, without contacting the calendar.
    """
    config = _load_config(config_file)
    service = AvailabilityService(config, calendar_client=_build_calendar_client(config, mock=False))

    try:
        start_date = parse_civil_date(start) if start else pendulum.today(config.timezone).date()
        results = service.date_availability(start_date, days, meeting_type)
    except (ValueError, BookingValidationError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        _print_json([result.to_dict() for result in results])
        return

    for result in results:
        marker = "[green]✓[/green]" if result.available else "[dim]✗[/dim]"
        console.print(f"  {marker} {result.date.strftime('%a %Y-%m-%d')}")


@app.command()
def slots(
    meeting_type: Annotated[str, typer.Argument(help="Meeting type slug")],
    date: Annotated[str, typer.Argument(help="Date to list (YYYY-MM-DD)")],
    timezone: Annotated[Optional[str], typer.Option("--timezone", "-t", help="Show times in this IANA timezone")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
    as_json: JsonOption = False,
):
    """
    List bookable slots for one date.

    Examples:

        meetbook slots 30 2026-11-02
        meetbook slots 60 2026-11-02 --timezone Europe/Berlin --json
    """
    config = _load_config(config_file)
    client = _build_calendar_client(config, mock, mock_data)
    service = AvailabilityService(config, calendar_client=client)

    params = {"meetingType": meeting_type, "date": date, "timezone": timezone}
    try:
        response = asyncio.run(service.query_slots(params))
    except BookingValidationError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    except AuthenticationError as e:
        logger.error("Calendar authentication failed: %s", e)
        console.print(f"[bold red]Error:[/bold red] {SLOTS_UNAVAILABLE_MESSAGE}")
        raise typer.Exit(1)
    except CalendarAPIError:
        logger.exception("Error fetching slots")
        console.print(f"[bold red]Error:[/bold red] {SLOTS_FAILED_MESSAGE}")
        raise typer.Exit(1)

    if as_json:
        _print_json(response.to_dict())
        return

    console.print(
        f"\n[bold cyan]{response.meeting_type.title}[/bold cyan] on "
        f"{response.date.isoformat()} ({response.timezone})\n"
    )
    if not response.slots:
        console.print("[yellow]⚠ No available slots on this date.[/yellow]\n")
        return

    for slot in response.slots:
        console.print(f"  {slot.format_display(response.timezone)}")
    console.print()


@app.command()
def book(
    meeting_type: Annotated[str, typer.Argument(help="Meeting type slug")],
    start_time: Annotated[str, typer.Argument(help="Slot start as ISO-8601, e.g. 2026-11-02T17:00:00Z")],
    name: Annotated[str, typer.Option("--name", help="Guest name")] = "",
    email: Annotated[str, typer.Option("--email", help="Guest email")] = "",
    guest_timezone: Annotated[Optional[str], typer.Option("--timezone", "-t", help="Guest IANA timezone. Defaults to the host timezone.")] = None,
    notes: Annotated[str, typer.Option("--notes", help="Optional notes for the host")] = "",
    ics: Annotated[Optional[Path], typer.Option("--ics", help="Write an .ics file for the booking")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
    as_json: JsonOption = False,
):
    """
    Book a slot after rechecking that it is still free.
    """
    config = _load_config(config_file)
    client = _build_calendar_client(config, mock, mock_data)
    service = BookingService(config, calendar_client=client)

    payload = {
        "meetingType": meeting_type,
        "startTime": start_time,
        "guestName": name,
        "guestEmail": email,
        "guestTimezone": guest_timezone or config.timezone,
        "notes": notes,
    }
    result = asyncio.run(service.submit(payload))

    if as_json:
        _print_json(result.to_dict())
    elif result.success:
        tz = payload["guestTimezone"]
        console.print(Panel.fit(
            f"[bold green]✓ Booking confirmed![/bold green]\n\n"
            f"[bold]When:[/bold] {result.start_time.in_timezone(tz).format('dddd, MMMM D, HH:mm')} - "
            f"{result.end_time.in_timezone(tz).format('HH:mm')} ({tz})\n"
            f"[bold]Event:[/bold] {result.event_id}\n"
            f"[bold]Meet:[/bold] {result.meet_link or 'link will be sent by email'}",
            title="✓ Booked"
        ))
    else:
        style = "yellow" if result.status is BookingStatus.CONFLICT else "red"
        console.print(f"[bold {style}]{result.status.value.title()}:[/bold {style}] {result.error}")

    if not result.success:
        raise typer.Exit(1)

    if ics:
        ics.write_text(
            build_ics(
                title=f"Meeting with {config.owner.name}",
                description=notes,
                start=result.start_time,
                end=result.end_time,
                location=result.meet_link or None,
                uid=f"{result.event_id}@meetbook",
            ),
            encoding="utf-8",
        )
        if not as_json:
            console.print(f"[green]✓ Calendar file written to {ics}[/green]")


@app.command()
def test_auth(
    config_file: ConfigOption = None,
):
    """
    Test Google Calendar authentication.
    """
    config = _load_config(config_file)
    client = _build_calendar_client(config, mock=False)

    console.print("\n[bold]Testing Google Calendar authentication...[/bold]\n")

    try:
        calendar_info = client.test_connection()
    except CalendarAPIError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Authentication successful![/bold green]\n\n"
        f"[bold]Calendar:[/bold] {calendar_info.get('summary', 'N/A')}\n"
        f"[bold]Timezone:[/bold] {calendar_info.get('timeZone', 'N/A')}",
        title="✓ Connection test"
    ))
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]meetbook[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
