"""Tether CLI: roster events, health views, and configuration."""

import asyncio
import json
import logging
import os
import sys
from collections.abc import Awaitable, Callable
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer

from tether.application.config import AppConfig, resolve_config
from tether.application.service import EngagementService
from tether.domain.errors import TetherError
from tether.domain.models import InteractionType
from tether.domain.timeutil import as_utc

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="tether: Keep in touch with the people who matter.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage tether configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"]
LOG_FILE_NAME = "tether.log"


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_file: Annotated[
        Path | None, typer.Option("--data-file", help="Override the JSON data file.")
    ] = None,
    premium: Annotated[
        bool | None, typer.Option("--premium/--free", help="Override the entitlement.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for tether."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"data_file": data_file, "premium": premium}

    if verbose >= 2:
        logging.getLogger("tether").setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger("tether").setLevel(logging.INFO)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(ctx: typer.Context) -> AppConfig:
    overrides = (ctx.obj or {}).get("overrides", {})
    return resolve_config(overrides)


def _log_file(config: AppConfig) -> Path:
    return config.log_dir / LOG_FILE_NAME


def _attach_file_log(config: AppConfig) -> None:
    """Mirror warnings from the engine into log_dir, once per log file."""
    path = _log_file(config)
    root = logging.getLogger("tether")
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            if Path(handler.baseFilename) == path:
                return
            root.removeHandler(handler)
            handler.close()

    config.log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)


def _run(ctx: typer.Context, action: Callable[[EngagementService], Awaitable[T]]) -> T:
    """Load the roster, run one action against it, and map engine errors to exit codes."""
    from tether.application.factory import get_engagement_service

    config = _config(ctx)
    _attach_file_log(config)

    async def run() -> T:
        service = await get_engagement_service(config)
        return await action(service)

    try:
        return asyncio.run(run())
    except TetherError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1)


def _jsonable(obj: Any) -> Any:
    return json.loads(json.dumps(asdict(obj), default=str))


def _fmt_date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value else "never"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Friend's display name.")],
    tier: Annotated[str, typer.Option(help="Tier id: inner, close, catchup, ...")] = "close",
    birthday: Annotated[str | None, typer.Option(help="Birthday as MM-DD.")] = None,
    last_spoken: Annotated[
        datetime | None,
        typer.Option(formats=DATE_FORMATS, help="Rough date you last spoke."),
    ] = None,
    favorite: Annotated[bool, typer.Option("--favorite", help="Mark as favorite.")] = False,
):
    """[bold green]Add[/bold green] a friend to a tier."""

    async def action(service: EngagementService):
        return await service.add_friend(
            name,
            tier,
            birthday=birthday,
            last_spoken_at=as_utc(last_spoken),
            is_favorite=favorite,
        )

    friend = _run(ctx, action)
    typer.secho(f"Added {friend.name} ({friend.id})", fg="green")
    typer.echo(f"Next due: {_fmt_date(friend.next_due_at)}")


@app.command()
def log(
    ctx: typer.Context,
    friend_id: Annotated[str, typer.Argument(help="Friend id.")],
    kind: Annotated[
        InteractionType, typer.Option("--type", help="How you connected.")
    ] = InteractionType.TEXT,
    when: Annotated[
        datetime | None,
        typer.Option(formats=DATE_FORMATS, help="When it happened. Defaults to now."),
    ] = None,
    note: Annotated[str | None, typer.Option(help="Optional note.")] = None,
    duration: Annotated[int | None, typer.Option(help="Duration in minutes.")] = None,
):
    """[bold green]Log[/bold green] a contact with a friend."""

    async def action(service: EngagementService):
        await service.log_interaction(
            friend_id, kind, occurred_at=as_utc(when), note=note, duration_minutes=duration
        )
        return service.store.friend(friend_id)

    friend = _run(ctx, action)
    typer.secho(f"Logged {kind.value} with {friend.name}", fg="green")
    typer.echo(f"Next due: {_fmt_date(friend.next_due_at)}  Streak: {friend.streak_count}")


@app.command()
def tier(
    ctx: typer.Context,
    friend_id: Annotated[str, typer.Argument(help="Friend id.")],
    tier_id: Annotated[str, typer.Argument(help="New tier id.")],
):
    """Move a friend to another tier."""

    async def action(service: EngagementService):
        return await service.change_tier(friend_id, tier_id)

    friend = _run(ctx, action)
    typer.echo(
        f"{friend.name} is now in '{friend.tier_id}'. "
        f"Next due: {_fmt_date(friend.next_due_at)}"
    )


@app.command()
def remove(
    ctx: typer.Context,
    friend_id: Annotated[str, typer.Argument(help="Friend id.")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation.")] = False,
):
    """Remove a friend and their interaction history."""
    if not force:
        typer.confirm(f"Remove {friend_id} and all of their history?", abort=True)

    async def action(service: EngagementService):
        await service.delete_friend(friend_id)

    _run(ctx, action)
    typer.echo(f"Removed {friend_id}")


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


@app.command("list")
def list_friends(ctx: typer.Context):
    """List friends by tier."""

    async def action(service: EngagementService):
        return service

    service = _run(ctx, action)
    for tier_obj in service.store.tiers.values():
        members = [f for f in service.store.friends.values() if f.tier_id == tier_obj.id]
        typer.secho(f"{tier_obj.name} (every {tier_obj.cadence_days} days)", bold=True)
        for f in sorted(members, key=lambda f: f.name.lower()):
            star = "*" if f.is_favorite else " "
            typer.echo(
                f" {star} {f.name:<20} last: {_fmt_date(f.last_contact_at):<10}"
                f"  due: {_fmt_date(f.next_due_at)}  ({f.id})"
            )


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show overall and per-tier relationship health."""

    async def action(service: EngagementService):
        return service

    service = _run(ctx, action)
    health = service.health_stats()

    if json_output:
        typer.echo(json.dumps(_jsonable(health), indent=2))
        return

    color = "green" if health.overall_score >= 80 else "yellow"
    typer.secho(f"Overall health: {health.overall_score}%", fg=color)
    for tier_id, score in health.tier_scores.items():
        name = service.store.tiers[tier_id].name
        typer.echo(f"  {name:<15} {score:>3}%")
    typer.echo(
        f"Connections: {health.total_connections} total, "
        f"{health.connections_this_week} this week, {health.connections_this_month} this month"
    )
    typer.echo(f"Streaks: longest {health.longest_streak}, combined {health.current_streak}")
    if health.overdue_count:
        typer.secho(f"Overdue: {health.overdue_count}", fg="yellow")
    typer.echo(f"Upcoming birthdays: {health.upcoming_birthdays}")


@app.command()
def birthdays(ctx: typer.Context):
    """List birthdays in the next 30 days."""

    async def action(service: EngagementService):
        return service.upcoming_birthdays()

    upcoming = _run(ctx, action)
    if not upcoming:
        typer.echo("No birthdays coming up.")
        return
    for b in upcoming:
        when = "today" if b.days_until == 0 else f"in {b.days_until} days"
        typer.echo(f"{b.friend_name:<20} {b.next_occurrence.isoformat()}  ({when})")


@app.command()
def overdue(ctx: typer.Context):
    """List friends who are due for contact."""

    async def action(service: EngagementService):
        return service.overdue_friends()

    friends = _run(ctx, action)
    if not friends:
        typer.secho("Everyone is up to date.", fg="green")
        return
    for f in friends:
        typer.echo(f"{f.name:<20} due {_fmt_date(f.next_due_at)}  ({f.id})")


@app.command()
def suggest(
    ctx: typer.Context,
    friend_id: Annotated[str, typer.Argument(help="Friend id.")],
):
    """Show the weekday pattern hint for a friend (premium)."""

    async def action(service: EngagementService):
        return service.suggestion(friend_id)

    hint = _run(ctx, action)
    typer.echo(hint or "No suggestion yet.")


@app.command()
def profile(
    ctx: typer.Context,
    friend_id: Annotated[str, typer.Argument(help="Friend id.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show relationship health for one friend."""

    async def action(service: EngagementService):
        return service.relationship_health(friend_id)

    health = _run(ctx, action)
    if json_output:
        typer.echo(json.dumps(_jsonable(health), indent=2))
        return

    typer.echo(f"Score: {health.score}  Trend: {health.trend}")
    if health.days_since_contact is not None:
        typer.echo(f"Last contact: {health.days_since_contact} days ago")
    if health.average_gap_days is not None:
        typer.echo(f"Average gap: {health.average_gap_days} days")
    for line in health.suggestions:
        typer.secho(f"  - {line}", fg="cyan")


@app.command()
def history(
    ctx: typer.Context,
    friend_id: Annotated[str, typer.Argument(help="Friend id.")],
):
    """Show a friend's interactions, newest first."""

    async def action(service: EngagementService):
        return service.visible_interactions(friend_id)

    interactions = _run(ctx, action)
    if not interactions:
        typer.echo("No interactions to show.")
        return
    for i in interactions:
        note = f"  {i.note}" if i.note else ""
        typer.echo(f"{i.occurred_at.strftime('%Y-%m-%d %H:%M')}  {i.type.value:<12}{note}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


@app.command()
def logs(
    ctx: typer.Context,
    lines: Annotated[
        int, typer.Option("--lines", "-n", min=1, help="How many lines to show.")
    ] = 20,
):
    """Show the tail of the tether log file."""
    path = _log_file(_config(ctx))
    if not path.exists():
        typer.echo(f"No log file yet at {path}")
        return

    tail = path.read_text(encoding="utf-8").splitlines()[-lines:]
    typer.echo(f"{path}:")
    for line in tail:
        typer.echo(line)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the tether HTTP server."""
    import uvicorn

    # The server resolves its own config, so global options travel as TETHER_* env vars.
    config = _config(ctx)
    os.environ["TETHER_DATA_FILE"] = str(config.data_file)
    os.environ["TETHER_PREMIUM"] = "true" if config.premium else "false"
    logger.info(f"Serving {config.data_file} (premium={config.premium})")

    uvicorn.run("tether.server:app", host=host, port=port, reload=reload)
