"""todokit CLI - local-first to-do list."""

import asyncio
import json
import logging
import sys
from datetime import datetime

import click
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .config import load_config
from .core.tasks import TaskDraft, format_due_date
from .errors import TodoError
from .ports import Notification
from .workflows import build_workflows, schedule_rearm


def _run(coro):
    """Run a workflow coroutine, turning domain errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except TodoError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _parse_due(ctx, param, value: str | None) -> datetime | None:
    """Accept ISO-8601; naive values are local time."""
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"not an ISO date/time: {value}")
    return parsed if parsed.tzinfo else parsed.astimezone()


def _format_line(task) -> str:
    mark = "x" if task.completed else " "
    due = ""
    if task.due_date:
        due = f" (due {task.due_date.astimezone().strftime('%Y-%m-%d %H:%M')})"
    return f"[{mark}] {task.id}  {task.title}{due}"


async def echo_notification(notification: Notification) -> None:
    click.echo(f"{notification.title}  {notification.body}")


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option()
@click.pass_context
def main(ctx, debug: bool):
    """todokit - local-first to-do list with reminders."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.WARNING,
    )
    ctx.obj = load_config()


@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--open", "open_only", is_flag=True, help="Hide completed tasks")
@click.pass_obj
def list_tasks(config, as_json: bool, open_only: bool):
    """List tasks."""
    workflows = build_workflows(config)
    tasks = _run(workflows.tasks())
    if open_only:
        tasks = [t for t in tasks if not t.completed]

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in tasks], indent=2, ensure_ascii=False))
        return

    if not tasks:
        click.echo("No tasks.")
        return

    for task in tasks:
        click.echo(_format_line(task))


@main.command()
@click.argument("title")
@click.option("--due", callback=_parse_due, help="Due date/time, ISO-8601")
@click.pass_obj
def add(config, title: str, due: datetime | None):
    """Add a task."""
    workflows = build_workflows(config)
    task = _run(workflows.add_task(TaskDraft(title=title, due_date=due)))
    click.echo(f"✓ Added {_format_line(task)}")


@main.command()
@click.argument("task_id", type=int)
@click.option("--title", default=None, help="New title")
@click.option("--due", callback=_parse_due, help="New due date/time, ISO-8601")
@click.pass_obj
def edit(config, task_id: int, title: str | None, due: datetime | None):
    """Edit a task's title or due date."""
    if title is None and due is None:
        click.echo("Nothing to change. Pass --title and/or --due.", err=True)
        sys.exit(1)

    workflows = build_workflows(config)
    task = _run(workflows.edit_task(task_id, title=title, due_date=due))
    click.echo(f"✓ Updated {_format_line(task)}")


@main.command()
@click.argument("task_id", type=int)
@click.pass_obj
def done(config, task_id: int):
    """Mark a task completed."""
    workflows = build_workflows(config)
    _run(workflows.set_completed(task_id, True))
    click.echo(f"✓ Task {task_id} completed")


@main.command()
@click.argument("task_id", type=int)
@click.pass_obj
def undo(config, task_id: int):
    """Mark a task not completed."""
    workflows = build_workflows(config)
    _run(workflows.set_completed(task_id, False))
    click.echo(f"✓ Task {task_id} reopened")


@main.command()
@click.argument("task_ids", type=int, nargs=-1, required=True)
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_obj
def delete(config, task_ids: tuple[int, ...], yes: bool):
    """Delete one or more tasks."""
    if not yes and not click.confirm(f"Delete {len(task_ids)} task(s)?"):
        return

    workflows = build_workflows(config)
    _run(workflows.delete_tasks(task_ids))
    click.echo(f"✓ Deleted {len(task_ids)} task(s)")


async def _watch(config) -> None:
    scheduler = AsyncIOScheduler(timezone=config.timezone or "UTC")
    deliver = None
    if not (config.telegram_bot_token and config.telegram_chat_ids):
        deliver = echo_notification
    workflows = build_workflows(config, scheduler=scheduler, deliver=deliver)

    scheduler.start()
    try:
        armed = await workflows.rearm_reminders()
        schedule_rearm(scheduler, workflows, config.rearm_interval_seconds)
        click.echo(f"Watching reminders for {armed} task(s). Press Ctrl+C to stop.")
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


@main.command()
@click.pass_obj
def watch(config):
    """Stay running and deliver reminders for upcoming tasks."""
    if config.telegram_bot_token and config.telegram_chat_ids:
        click.echo(f"Delivering reminders to Telegram chats: {config.telegram_chat_ids}")
    try:
        _run(_watch(config))
    except KeyboardInterrupt:
        click.echo("\nStopped.")


@main.command("show")
@click.argument("task_id", type=int)
@click.pass_obj
def show(config, task_id: int):
    """Show one task, including hidden ones."""
    workflows = build_workflows(config)
    task = _run(workflows.repository.get(task_id))
    if task is None:
        click.echo(f"Error: Task {task_id} not found", err=True)
        sys.exit(1)

    click.echo(f"id:        {task.id}")
    click.echo(f"title:     {task.title!r}")
    click.echo(f"completed: {task.completed}")
    click.echo(f"due:       {format_due_date(task.due_date) if task.due_date else '-'}")


if __name__ == "__main__":
    main()
