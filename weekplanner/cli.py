"""Developer CLI for the week planner.

Runs the same BlockService code path as any outer layer, against the SQL store
configured by WEEKPLANNER_DATABASE_URL (or --db).
"""

from __future__ import annotations

import json
from typing import NoReturn

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from weekplanner.config.settings import settings
from weekplanner.core.logger import setup_logger
from weekplanner.scheduling.errors import SchedulingError
from weekplanner.scheduling.policy import POLICIES, format_clock, format_hours, get_policy
from weekplanner.scheduling.service import BlockService
from weekplanner.store.sql import SqlStore
from weekplanner.utils.timezone import ZoneClock

console = Console()

app = typer.Typer(
    name="weekplanner",
    help="Shared weekly time-block planner",
    add_completion=False,
)

DbOption = typer.Option(None, "--db", help="Database URL (defaults to WEEKPLANNER_DATABASE_URL)")
PolicyOption = typer.Option(None, "--policy", help="Policy preset name")
ActorOption = typer.Option(None, "--actor", help="Person performing the change")


def _service(db: str | None, policy: str | None) -> BlockService:
    clock = ZoneClock(settings.timezone)
    store = SqlStore.from_url(
        db or settings.database_url,
        clock,
        history_retention=settings.history_retention,
    )
    return BlockService(
        store,
        get_policy(policy or settings.policy_name),
        clock,
        history_limit=settings.history_limit,
    )


def _fail(error: SchedulingError) -> NoReturn:
    messages = getattr(error, "messages", None) or [error.message]
    for message in messages:
        console.print(f"[red]✗[/red] {message}")
    raise typer.Exit(1)


def _print_week(service: BlockService, date_text: str) -> None:
    payload = service.get_week(date_text)
    remaining = service.remaining(date_text)
    period_names = [period.name for period in service.policy.sub_periods]

    table = Table(title=f"Week {payload.week_start} – {payload.week_end}")
    table.add_column("Day")
    table.add_column("Total", justify="right")
    for name in period_names:
        table.add_column(name.capitalize(), justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Blocks")

    for day, summary in payload.day_summaries.items():
        row = [day, format_hours(summary["total"])]
        row += [format_hours(summary[name]) for name in period_names]
        row += [format_hours(remaining[day]), ", ".join(summary["blocks"])]
        table.add_row(*row)
    console.print(table)

    names = {person.id: person.name for person in payload.persons}
    for person_id, hours in payload.person_summaries.items():
        console.print(f"  {names.get(person_id, person_id)}: {format_hours(hours)}h")
    console.print(f"[bold]Week total:[/bold] {format_hours(payload.week_total)}h")


@app.callback()
def main(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")) -> None:
    setup_logger(level="DEBUG" if debug else settings.log_level, log_file=settings.log_file)


@app.command()
def week(
    date: str | None = typer.Argument(None, help="Any date of the week (YYYY-MM-DD), defaults to today"),
    db: str | None = DbOption,
    policy: str | None = PolicyOption,
    as_json: bool = typer.Option(False, "--json", help="Print the raw week payload"),
) -> None:
    """Show the summary of one week."""
    try:
        service = _service(db, policy)
        date_text = date or service.clock.today().isoformat()
        if as_json:
            console.print_json(json.dumps(service.get_week(date_text).to_wire()))
            return
        _print_week(service, date_text)
    except SchedulingError as e:
        _fail(e)


@app.command()
def add(
    person: str = typer.Argument(..., help="Person id"),
    start: str = typer.Argument(..., help="Start, e.g. 2024-01-15T09:00"),
    end: str = typer.Argument(..., help="End, e.g. 2024-01-15T17:00"),
    actor: str | None = ActorOption,
    db: str | None = DbOption,
    policy: str | None = PolicyOption,
) -> None:
    """Create a block."""
    try:
        service = _service(db, policy)
        payload = service.create_block(person, start, end, actor_id=actor)
    except SchedulingError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Block added for {person}")
    _print_week(service, payload.week_start)


@app.command()
def move(
    block_id: str = typer.Argument(..., help="Block id"),
    start: str | None = typer.Option(None, "--start", help="New start"),
    end: str | None = typer.Option(None, "--end", help="New end"),
    person: str | None = typer.Option(None, "--person", help="New person id"),
    actor: str | None = ActorOption,
    db: str | None = DbOption,
    policy: str | None = PolicyOption,
) -> None:
    """Change a block's person, start or end."""
    changes = {key: value for key, value in {"personId": person, "start": start, "end": end}.items() if value}
    try:
        service = _service(db, policy)
        payload = service.update_block(block_id, changes, actor_id=actor)
    except SchedulingError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Block {block_id} updated")
    _print_week(service, payload.week_start)


@app.command()
def remove(
    block_id: str = typer.Argument(..., help="Block id"),
    actor: str | None = ActorOption,
    db: str | None = DbOption,
    policy: str | None = PolicyOption,
) -> None:
    """Delete a block."""
    try:
        service = _service(db, policy)
        payload = service.delete_block(block_id, actor_id=actor)
    except SchedulingError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Block {block_id} deleted")
    _print_week(service, payload.week_start)


@app.command()
def history(
    limit: int | None = typer.Option(None, "--limit", "-n", help="Number of entries"),
    db: str | None = DbOption,
) -> None:
    """Show the most recent changes, newest first."""
    service = _service(db, None)
    for entry in service.history(limit):
        stamp = service.clock.local(entry.timestamp).strftime("%Y-%m-%d %H:%M")
        console.print(f"{stamp}  [cyan]{entry.action:<6}[/cyan] {entry.actor_person_id} → {entry.target_person_id}: {entry.details}")


@app.command()
def policies() -> None:
    """List the available policy presets."""
    table = Table(title="Policies")
    for column in ("Name", "Days", "Daily", "Sub-period caps", "Weekend", "Max span", "Weekly"):
        table.add_column(column)
    for name, policy in POLICIES.items():
        caps = ", ".join(f"{key} {format_hours(value)}h" for key, value in policy.sub_period_caps.items()) or "-"
        weekend = f"{format_hours(policy.weekend_cap_hours)}h" if policy.weekend_cap_hours is not None else "-"
        span = policy.max_span
        span_text = f"until {format_clock(span.until_hour)} next day" if span.kind == "clock" else f"{format_hours(span.hours)}h"
        marker = " (default)" if name == settings.policy_name else ""
        table.add_row(
            name + marker,
            str(policy.window_days),
            f"{format_hours(policy.daily_cap_hours)}h",
            caps,
            weekend,
            span_text,
            f"{format_hours(policy.weekly_cap_hours)}h",
        )
    console.print(table)
    logger.debug(f"Listed {len(POLICIES)} policies")


if __name__ == "__main__":
    app()
