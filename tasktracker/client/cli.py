from __future__ import annotations

import argparse
import datetime as _dt
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TextIO

from tasktracker.client.api import TaskApiClient
from tasktracker.client.render import CardRenderer
from tasktracker.config import load_config
from tasktracker.errors import TaskTrackerError
from tasktracker.models.task import PRIORITIES, STATUSES
from tasktracker.query.filters import DUE_WINDOWS, FilterCriteria, filter_tasks, paginate
from tasktracker.query.summary import summarize
from tasktracker.settings.store import ClientSettings, SettingsStore, open_settings_store
from tasktracker.taxonomy.codec import add_tag, decode, encode, remove_tag, split_tags
from tasktracker.taxonomy.registry import TaxonomyRegistry


@dataclass
class ClientContext:
    api: TaskApiClient
    settings_store: SettingsStore
    settings: ClientSettings
    registry: TaxonomyRegistry
    renderer: CardRenderer
    page_size: int


def _parse_date(value: str) -> _dt.date:
    try:
        return _dt.date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}'. Use YYYY-MM-DD.") from exc


def _persist_taxonomy(ctx: ClientContext) -> None:
    ctx.settings.categories = ctx.registry.registered_categories()
    ctx.settings.tags = ctx.registry.registered_tags()
    ctx.settings_store.save(ctx.settings)


def _encode_category(ctx: ClientContext, raw: str) -> str:
    name, color = decode(raw)
    category = ctx.registry.add_category(name, color)
    _persist_taxonomy(ctx)
    return encode(category.name, category.color)


def _encode_tags(ctx: ClientContext, raw: str) -> str | None:
    value: str | None = None
    for name, color in split_tags(raw):
        tag = ctx.registry.add_tag(name, color)
        value = add_tag(value, tag.name, tag.color)
    _persist_taxonomy(ctx)
    return value


# ----------------------------
# Commands
# ----------------------------


def cmd_list(ctx: ClientContext, args: argparse.Namespace) -> int:
    # status and priority narrow server-side; everything else is filtered locally
    tasks = ctx.api.list_tasks(status=args.status, priority=args.priority)
    criteria = FilterCriteria(
        search=args.search or "",
        category=args.category,
        tag=args.tag,
        include_completed=not args.hide_completed,
        due_window=args.due,
    )
    filtered = filter_tasks(tasks, criteria)
    ctx.renderer.page(paginate(filtered, args.page, args.page_size or ctx.page_size))
    return 0


def cmd_show(ctx: ClientContext, args: argparse.Namespace) -> int:
    ctx.renderer.card(ctx.api.get_task(args.task_id))
    return 0


def cmd_add(ctx: ClientContext, args: argparse.Namespace) -> int:
    fields: dict[str, Any] = {"title": args.title}
    if args.description is not None:
        fields["description"] = args.description
    if args.status is not None:
        fields["status"] = args.status
    if args.priority is not None:
        fields["priority"] = args.priority
    if args.due is not None:
        fields["due_date"] = args.due
    if args.category:
        fields["category"] = _encode_category(ctx, args.category)
    if args.tags:
        fields["tags"] = _encode_tags(ctx, args.tags)
    task = ctx.api.create_task(fields)
    ctx.renderer.println(f"Created task {task.id}")
    ctx.renderer.card(task)
    return 0


def cmd_edit(ctx: ClientContext, args: argparse.Namespace) -> int:
    changes: dict[str, Any] = {}
    for name in ("title", "description", "status", "priority"):
        value = getattr(args, name)
        if value is not None:
            changes[name] = value
    if args.clear_due:
        changes["due_date"] = None
    elif args.due is not None:
        changes["due_date"] = args.due
    if args.clear_category:
        changes["category"] = None
    elif args.category:
        changes["category"] = _encode_category(ctx, args.category)
    if args.add_tag or args.remove_tag:
        tags = ctx.api.get_task(args.task_id).tags
        for raw in args.add_tag or []:
            name, color = decode(raw)
            tag = ctx.registry.add_tag(name, color)
            tags = add_tag(tags, tag.name, tag.color)
        if args.add_tag:
            _persist_taxonomy(ctx)
        for name in args.remove_tag or []:
            tags = remove_tag(tags, name)
        changes["tags"] = tags
    if not changes:
        ctx.renderer.banner("Nothing to update.", severity="info")
        return 2
    task = ctx.api.update_task(args.task_id, changes)
    ctx.renderer.card(task)
    return 0


def cmd_status(ctx: ClientContext, args: argparse.Namespace) -> int:
    task = ctx.api.update_task(args.task_id, {"status": args.status})
    ctx.renderer.card(task)
    return 0


def cmd_delete(ctx: ClientContext, args: argparse.Namespace) -> int:
    if not args.yes:
        answer = input("Are you sure you want to delete this task? [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            ctx.renderer.banner("Cancelled.", severity="info")
            return 0
    ctx.api.delete_task(args.task_id)
    ctx.renderer.println(f"Deleted task {args.task_id}")
    return 0


def cmd_tags(ctx: ClientContext, args: argparse.Namespace) -> int:
    if args.action == "add":
        tag = ctx.registry.add_tag(args.name, args.color)
        _persist_taxonomy(ctx)
        ctx.renderer.tags([tag])
        return 0
    ctx.renderer.tags(ctx.registry.list_tags())
    return 0


def cmd_categories(ctx: ClientContext, args: argparse.Namespace) -> int:
    if args.action == "add":
        ctx.registry.add_category(args.name, args.color)
        _persist_taxonomy(ctx)
    elif args.action == "rename":
        updated = ctx.registry.rename_category(args.name, args.new_name, args.color)
        _persist_taxonomy(ctx)
        ctx.renderer.println(f"Updated {updated} task(s)")
        return 0
    elif args.action == "delete":
        updated = ctx.registry.delete_category(args.name)
        _persist_taxonomy(ctx)
        ctx.renderer.println(f"Updated {updated} task(s)")
        return 0
    ctx.renderer.categories(ctx.registry.list_categories())
    return 0


def cmd_dashboard(ctx: ClientContext, args: argparse.Namespace) -> int:
    ctx.renderer.dashboard(summarize(ctx.api.list_tasks()))
    return 0


def cmd_theme(ctx: ClientContext, args: argparse.Namespace) -> int:
    if args.action == "toggle":
        ctx.settings.toggle_theme()
        ctx.settings_store.save(ctx.settings)
    ctx.renderer.println(f"Theme: {ctx.settings.theme_mode}")
    return 0


COMMANDS: dict[str, Callable[[ClientContext, argparse.Namespace], int]] = {
    "list": cmd_list,
    "show": cmd_show,
    "add": cmd_add,
    "edit": cmd_edit,
    "status": cmd_status,
    "delete": cmd_delete,
    "tags": cmd_tags,
    "categories": cmd_categories,
    "dashboard": cmd_dashboard,
    "theme": cmd_theme,
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser("tasktracker-client", description="Terminal client for tasktracker")
    p.add_argument("--base-url", help="Task API base URL (default: TASKTRACKER_BASE_URL)")
    p.add_argument("--no-color", action="store_true", help="Disable colored output")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("list", help="List tasks with filters and pages")
    s.add_argument("--status", choices=STATUSES)
    s.add_argument("--priority", type=int, choices=PRIORITIES)
    s.add_argument("--category")
    s.add_argument("--tag")
    s.add_argument("--search", help="Match title, description or category")
    s.add_argument("--due", choices=DUE_WINDOWS, default="all")
    s.add_argument("--hide-completed", action="store_true")
    s.add_argument("--page", type=int, default=1)
    s.add_argument("--page-size", type=int)

    s = sub.add_parser("show", help="Show one task")
    s.add_argument("task_id")

    s = sub.add_parser("add", help="Create a task")
    s.add_argument("title")
    s.add_argument("-d", "--description")
    s.add_argument("--status", choices=STATUSES)
    s.add_argument("-p", "--priority", type=int, choices=PRIORITIES)
    s.add_argument("--due", type=_parse_date, help="Due date in YYYY-MM-DD")
    s.add_argument("--category", help="Category name, optionally name:#rrggbb")
    s.add_argument("--tags", help="Comma-separated tags (e.g., work,urgent)")

    s = sub.add_parser("edit", help="Change fields of a task")
    s.add_argument("task_id")
    s.add_argument("--title")
    s.add_argument("-d", "--description")
    s.add_argument("--status", choices=STATUSES)
    s.add_argument("-p", "--priority", type=int, choices=PRIORITIES)
    due = s.add_mutually_exclusive_group()
    due.add_argument("--due", type=_parse_date)
    due.add_argument("--clear-due", action="store_true")
    cat = s.add_mutually_exclusive_group()
    cat.add_argument("--category")
    cat.add_argument("--clear-category", action="store_true")
    s.add_argument("--add-tag", action="append")
    s.add_argument("--remove-tag", action="append")

    s = sub.add_parser("status", help="Set the status of a task")
    s.add_argument("task_id")
    s.add_argument("status", choices=STATUSES)

    s = sub.add_parser("delete", help="Delete a task")
    s.add_argument("task_id")
    s.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    s = sub.add_parser("tags", help="List or register tags")
    s.add_argument("action", nargs="?", choices=["list", "add"], default="list")
    s.add_argument("name", nargs="?")
    s.add_argument("--color")

    s = sub.add_parser("categories", help="List, add, rename or delete categories")
    s.add_argument(
        "action", nargs="?", choices=["list", "add", "rename", "delete"], default="list"
    )
    s.add_argument("name", nargs="?")
    s.add_argument("new_name", nargs="?")
    s.add_argument("--color")

    sub.add_parser("dashboard", help="Show task statistics")

    s = sub.add_parser("theme", help="Show or toggle the color theme")
    s.add_argument("action", nargs="?", choices=["show", "toggle"], default="show")

    return p


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    # Positional requirements that depend on the action
    if args.cmd == "tags" and args.action == "add" and not args.name:
        parser.error("tags add requires a name")
    if args.cmd == "categories":
        if args.action in {"add", "delete"} and not args.name:
            parser.error(f"categories {args.action} requires a name")
        if args.action == "rename" and not (args.name and args.new_name):
            parser.error("categories rename requires the old and the new name")
    if args.cmd == "list" and args.page_size is not None and args.page_size < 1:
        parser.error("--page-size must be a positive integer")
    return args


def main(
    argv: list[str] | None = None,
    *,
    api: TaskApiClient | None = None,
    settings_store: SettingsStore | None = None,
    out: TextIO | None = None,
) -> int:
    args = parse_args(argv)
    config = load_config()
    owns_api = api is None
    client = api or TaskApiClient(args.base_url or config.base_url, timeout=config.timeout)
    store = settings_store or open_settings_store(config)
    stream = out or sys.stdout
    try:
        settings = store.load()
    except TaskTrackerError as exc:
        stream.write(f"[warning] settings unavailable, using defaults: {exc.message}\n")
        settings = ClientSettings()
    registry = TaxonomyRegistry(client, categories=settings.categories, tags=settings.tags)
    renderer = CardRenderer(registry, settings, out=stream, color=False if args.no_color else None)
    ctx = ClientContext(
        api=client,
        settings_store=store,
        settings=settings,
        registry=registry,
        renderer=renderer,
        page_size=config.page_size,
    )
    try:
        return COMMANDS[args.cmd](ctx, args)
    except TaskTrackerError as exc:
        renderer.banner(exc.message)
        return 1
    except ValueError as exc:
        # Empty tag or category names
        renderer.banner(str(exc))
        return 1
    finally:
        if owns_api:
            client.close()


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
