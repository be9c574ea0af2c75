"""Command-line interface for the keep-alive engine."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from .config import KeepAliveSettings, ScheduleConfig, log_level_for
from .energy import EnergyMode
from .paths import get_log_path

app = typer.Typer(help="Keeps the desktop awake during working hours while you are away.")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

DEFAULT_BREAKS = ["10:00=10-15", "12:00=30-45", "15:00=10-15"]


def parse_break_option(value: str) -> tuple[str, tuple[float, float]]:
    """Parse ``HH:MM=MIN-MAX`` (minutes) into a start and a duration range."""
    try:
        start, minutes = value.split("=", 1)
        low, _, high = minutes.partition("-")
        bounds = (float(low), float(high or low))
    except ValueError as exc:
        raise typer.BadParameter(f"Expected HH:MM=MIN-MAX, got {value!r}") from exc
    if bounds[0] < 0 or bounds[1] < bounds[0]:
        raise typer.BadParameter(f"Invalid break duration range in {value!r}")
    return start.strip(), bounds


@app.callback(no_args_is_help=True)
def main(
    ctx: typer.Context,
    verbosity: int = typer.Option(1, "--verbosity", "-v", min=0, max=4, help="Log detail, 0-4."),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", path_type=Path, help="Also write a transcript to this file."
    ),
    transcript: bool = typer.Option(
        False, "--transcript", help="Write a transcript to the default log location."
    ),
    not_working_days: Optional[List[str]] = typer.Option(
        None, "--not-working-day", help="Weekday to skip (repeatable). Defaults to Saturday and Sunday."
    ),
    start: str = typer.Option("08:30", "--start", help="Working day start (HH:MM)."),
    end: str = typer.Option("17:00", "--end", help="Working day end (HH:MM)."),
    breaks: Optional[List[str]] = typer.Option(
        None, "--break", help="Break as HH:MM=MIN-MAX minutes (repeatable, up to three)."
    ),
    country: str = typer.Option("NL", "--country", help="Country ISO code for holidays."),
    language: str = typer.Option("EN", "--language", help="Language ISO code for holidays."),
    force_run: bool = typer.Option(False, "--force-run", help="Bypass every schedule restriction."),
    ignore_working_days: bool = typer.Option(False, "--ignore-working-days"),
    ignore_holidays: bool = typer.Option(False, "--ignore-holidays"),
    ignore_working_hours: bool = typer.Option(False, "--ignore-working-hours"),
) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    transcript_path = log_file or (get_log_path() if transcript else None)
    if transcript_path is not None:
        handlers.append(logging.FileHandler(transcript_path, encoding="utf-8"))
    logging.basicConfig(level=log_level_for(verbosity), format=LOG_FORMAT, handlers=handlers)

    parsed_breaks = [parse_break_option(value) for value in (breaks or DEFAULT_BREAKS)][:3]
    try:
        schedule = ScheduleConfig.from_options(
            not_working_days=not_working_days or ("Saturday", "Sunday"),
            start=start,
            end=end,
            break_starts=[begin for begin, _ in parsed_breaks],
            break_minutes=[bounds for _, bounds in parsed_breaks],
            country_code=country,
            language_code=language,
            force_run=force_run,
            ignore_working_days=ignore_working_days,
            ignore_holidays=ignore_holidays,
            ignore_working_hours=ignore_working_hours,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    ctx.obj = {"schedule": schedule, "verbosity": verbosity}


def _settings(
    ctx: typer.Context,
    wait_min: float,
    wait_max: float,
    poll_seconds: float,
    method: str,
    argument: Optional[str],
    energy_mode: str,
) -> KeepAliveSettings:
    try:
        EnergyMode.parse(energy_mode)
        return KeepAliveSettings.from_seconds(
            wait_min,
            wait_max,
            poll_seconds,
            method=method,
            method_argument=argument,
            idle_energy_mode=energy_mode,
            verbosity=ctx.obj["verbosity"],
            schedule=ctx.obj["schedule"],
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def run(
    ctx: typer.Context,
    wait_min: float = typer.Option(60.0, "--wait-min", min=1.0, help="Shortest wait between actions (s)."),
    wait_max: float = typer.Option(240.0, "--wait-max", min=1.0, help="Longest wait between actions (s)."),
    poll_seconds: float = typer.Option(2.0, "--poll", min=0.1, help="Input polling interval (s)."),
    method: str = typer.Option(
        "KeyPress",
        "--method",
        help="KeyPress, MouseMove, OpenApp, OpenPage, RunCommand or Random.",
    ),
    argument: Optional[str] = typer.Option(
        None, "--argument", help="Executable, URL or command used by the chosen method."
    ),
    energy_mode: str = typer.Option(
        "Normal", "--energy-mode", help="Display mode while idle: Normal, Dim, Sleep or Off."
    ),
) -> None:
    """Run the keep-alive loop in the foreground until interrupted."""
    from .holidays import OpenHolidaysClient
    from .monitor import KeepAliveMonitor
    from .probe import WindowsInputProbe
    from .schedule import WorkingHoursScheduler

    settings = _settings(ctx, wait_min, wait_max, poll_seconds, method, argument, energy_mode)
    scheduler = WorkingHoursScheduler(settings.schedule, OpenHolidaysClient())
    monitor = KeepAliveMonitor(settings, scheduler, WindowsInputProbe())
    monitor.run_forever()


@app.command("check-schedule")
def check_schedule(
    ctx: typer.Context,
    at: Optional[str] = typer.Option(
        None, "--at", help="Moment to evaluate (YYYY-MM-DDTHH:MM). Defaults to now."
    ),
    offline: bool = typer.Option(False, "--offline", help="Skip the public holiday lookup."),
) -> None:
    """Print whether the keep-alive loop would run at a given moment."""
    from .holidays import NoHolidays, OpenHolidaysClient
    from .schedule import WorkingHoursScheduler

    try:
        moment = datetime.fromisoformat(at) if at else datetime.now()
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid --at value: {at!r}") from exc
    holidays = NoHolidays() if offline else OpenHolidaysClient()
    verdict = WorkingHoursScheduler(ctx.obj["schedule"], holidays).check(moment)

    typer.echo(f"Checked at: {moment.isoformat(' ', 'minutes')}")
    typer.echo(f"Should run: {'yes' if verdict.should_run else 'no'}")
    typer.echo(f"Reason:     {verdict.reason}")
    if verdict.next_run_time:
        typer.echo(f"Next run:   {verdict.next_run_time.isoformat(' ', 'minutes')}")
    for message in verdict.messages:
        typer.echo(f"  - {message}")
    for reason in verdict.bypass_reasons:
        typer.echo(f"  * bypass: {reason}")


@app.command()
def web(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the dashboard."),
    port: int = typer.Option(8766, "--port", min=1, max=65535, help="TCP port for the dashboard."),
    wait_min: float = typer.Option(60.0, "--wait-min", min=1.0),
    wait_max: float = typer.Option(240.0, "--wait-max", min=1.0),
    poll_seconds: float = typer.Option(2.0, "--poll", min=0.1),
    method: str = typer.Option("KeyPress", "--method"),
    argument: Optional[str] = typer.Option(None, "--argument"),
    energy_mode: str = typer.Option("Normal", "--energy-mode"),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the status endpoint in your default browser.",
    ),
) -> None:
    """Run the keep-alive loop in the background and serve its status."""
    from .server_runner import run_dashboard

    settings = _settings(ctx, wait_min, wait_max, poll_seconds, method, argument, energy_mode)
    run_dashboard(host=host, port=port, settings=settings, open_browser=open_browser)
