# src/tasklist/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from typing import cast

from ..core.errors import InvalidIndexError, TaskError, TaskValidationError, friendly_error_message
from ..core.state import AppState
from ..tasks.task_models import ALL, Priority, StatusFilter, Task, TaskDraft, TaskPatch, ViewFilters
from ..tasks.view import count_by_category, is_overdue, summarize_progress

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the console front-end (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Task errors become their user-facing message; anything else propagates.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return await h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return await h2(state, args)
        except TaskError as e:
            logger.info("Command /%s failed: %s", name, e)
            return friendly_error_message(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  (plain text adds a task)")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- parsing / rendering helpers ----


def parse_task_tokens(tokens: list[str]) -> TaskDraft:
    """
    "buy milk !high #shopping due:2026-01-31" -> TaskDraft.

    Title validation is left to the store.
    """
    words: list[str] = []
    priority = Priority.MEDIUM
    category_id: str | None = None
    due_date: date | None = None

    for tok in tokens:
        if tok.startswith("!") and len(tok) > 1:
            priority = Priority.parse(tok[1:])
        elif tok.startswith("#") and len(tok) > 1:
            category_id = tok[1:]
        elif tok.lower().startswith("due:"):
            due_date = _parse_date(tok[4:])
        else:
            words.append(tok)

    return TaskDraft(title=" ".join(words), priority=priority, category_id=category_id, due_date=due_date)


def _parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise TaskValidationError(f"invalid date {raw!r}, use YYYY-MM-DD") from None


def _parse_position(raw: str) -> int:
    """1-based display position -> 0-based index."""
    try:
        pos = int(raw)
    except ValueError:
        raise InvalidIndexError(f"{raw!r} is not a position number") from None
    if pos < 1:
        raise InvalidIndexError(f"positions start at 1, got {pos}")
    return pos - 1


def _task_at(state: AppState, raw: str) -> Task:
    visible = state.visible_tasks()
    idx = _parse_position(raw)
    if idx >= len(visible):
        raise InvalidIndexError(f"no task at position {idx + 1} (showing {len(visible)})")
    return visible[idx]


def format_task(position: int, task: Task, state: AppState, today: date | None = None) -> str:
    today = today or date.today()
    box = "[x]" if task.completed else "[ ]"
    parts = [f"{position:>3}. {box} {task.title}", f"({task.priority.value})"]

    category = state.categories.by_id(task.category_id)
    if category is not None:
        parts.append(f"#{category.name}")
    elif task.category_id:
        parts.append(f"#{task.category_id}")

    if task.due_date is not None:
        label = "today" if task.due_date == today else task.due_date.isoformat()
        parts.append(f"due {label}")
        if is_overdue(task, today):
            parts.append("OVERDUE")
    return " ".join(parts)


def render_view(state: AppState) -> str:
    visible = state.visible_tasks()
    if not visible:
        if len(state.store):
            return "No tasks match your filters."
        return "No tasks yet. Type a title to add your first task."
    return "\n".join(format_task(i, t, state) for i, t in enumerate(visible, start=1))


# ---- command handlers ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str]) -> str:
    return render_view(state)


async def cmd_add(state: AppState, args: list[str]) -> str:
    task = await state.store.create(parse_task_tokens(args))
    return f"Task added: {task.title}"


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <position>"
    task = await state.store.update(_task_at(state, args[0]).id, TaskPatch(completed=True))
    return f"Task completed: {task.title}"


async def cmd_undone(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /undone <position>"
    task = await state.store.update(_task_at(state, args[0]).id, TaskPatch(completed=False))
    return f"Task reopened: {task.title}"


async def cmd_edit(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /edit <position> <new title>"
    current = _task_at(state, args[0])
    title = " ".join(args[1:]).strip()
    if title == current.title:
        return "Title unchanged."
    task = await state.store.update(current.id, TaskPatch(title=title))
    return f"Task updated: {task.title}"


async def cmd_prio(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /prio <position> high|medium|low"
    task = await state.store.update(_task_at(state, args[0]).id, TaskPatch(priority=args[1].lower()))
    return f"Priority of '{task.title}' is now {task.priority.value}"


async def cmd_due(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /due <position> YYYY-MM-DD|none"
    due = None if args[1].lower() in ("none", "-") else _parse_date(args[1])
    task = await state.store.update(_task_at(state, args[0]).id, TaskPatch(due_date=due))
    return f"Due date of '{task.title}': {task.due_date.isoformat() if task.due_date else 'none'}"


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <position>"
    task = _task_at(state, args[0])
    await state.store.delete(task.id)
    return f"Task deleted: {task.title}"


async def cmd_mv(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /mv 3 1             -> move task 3 to position 1
    /mv 3 1 #personal   -> ... and into category "personal"
    """
    if len(args) not in (2, 3):
        return "Usage: /mv <from> <to> [#category]"

    visible = state.visible_tasks()
    src = _parse_position(args[0])
    dst = _parse_position(args[1])
    if src >= len(visible):
        raise InvalidIndexError(f"no task at position {src + 1} (showing {len(visible)})")

    source_category = visible[src].category_id
    dest_category = source_category
    if len(args) == 3:
        if not args[2].startswith("#") or len(args[2]) < 2:
            return "Category must look like #name (or #none)."
        dest_category = None if args[2] == "#none" else args[2][1:]

    try:
        await state.store.reorder(src, dst, source_category, dest_category, sequence=visible)
    except TaskError as e:
        logger.warning("Reorder failed, restoring: %s", e)
        state.store.rollback()
        if emit:
            with contextlib.suppress(Exception):
                emit("[SYNC] Move failed, reloading tasks...")
        try:
            await state.store.resync()
        except TaskError:
            logger.exception("Resync after failed reorder also failed")
        return f"Failed to move task. {friendly_error_message(e)}"

    return "Task moved.\n" + render_view(state)


async def cmd_filter(state: AppState, args: list[str]) -> str:
    """
    /filter                       -> show active filters
    /filter category <id|all>
    /filter search <text>         (no text clears)
    /filter priority <high|medium|low|all>
    /filter status <all|pending|completed|overdue>
    /filter reset
    """
    f = state.filters
    if not args:
        return (
            "Filters:\n"
            f"  category: {f.category}\n"
            f"  search: {f.search!r}\n"
            f"  priority: {f.priority}\n"
            f"  status: {f.status.value}\n"
            f"  show completed: {'on' if state.show_completed else 'off'}"
        )

    sub = args[0].lower()
    rest = args[1:]

    if sub == "reset":
        state.filters = ViewFilters()
    elif sub == "category" and len(rest) == 1:
        f.category = ALL if rest[0].lower() == ALL else rest[0]
    elif sub == "search":
        f.search = " ".join(rest)
    elif sub == "priority" and len(rest) == 1:
        raw = rest[0].lower()
        if raw == ALL:
            f.priority = ALL
        else:
            try:
                f.priority = Priority(raw)
            except ValueError:
                return f"Unknown priority: {rest[0]}"
    elif sub == "status" and len(rest) == 1:
        try:
            f.status = StatusFilter(rest[0].lower())
        except ValueError:
            return f"Unknown status: {rest[0]}"
    else:
        return "Usage: /filter [category <id|all> | search <text> | priority <p|all> | status <s> | reset]"

    return render_view(state)


async def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Completed tasks are {'shown' if state.show_completed else 'hidden'}. Use /show on|off."
    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        state.show_completed = True
    elif arg in ("off", "0", "false", "no"):
        state.show_completed = False
    else:
        return "Usage: /show on|off"
    return render_view(state)


async def cmd_stats(state: AppState, args: list[str]) -> str:
    tasks = state.store.tasks
    progress = summarize_progress(tasks)
    counts = count_by_category(tasks)

    lines = [
        "Progress:",
        f"  pending: {progress.pending}",
        f"  completed today: {progress.completed_today}",
        f"  today's progress: {progress.percent}%",
        f"Tasks by category (total {counts.total}):",
    ]
    for category in await state.categories.get_all():
        lines.append(f"  {category.name}: {counts.by_category.get(category.id, 0)}")
    uncategorized = counts.by_category.get(None, 0)
    if uncategorized:
        lines.append(f"  (uncategorized): {uncategorized}")
    return "\n".join(lines)


async def cmd_cats(state: AppState, args: list[str]) -> str:
    lines = ["Categories:"]
    for c in await state.categories.get_all():
        lines.append(f"  #{c.id} - {c.name}")
    return "\n".join(lines)


async def cmd_refresh(state: AppState, args: list[str]) -> str:
    tasks = await state.store.resync()
    return f"Reloaded {len(tasks)} tasks.\n" + render_view(state)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the current task view.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add title [!high] [#category] [due:YYYY-MM-DD].")
registry.register("done", cmd_done, help_text="Complete a task: /done <position>.")
registry.register("undone", cmd_undone, help_text="Reopen a task: /undone <position>.")
registry.register("edit", cmd_edit, help_text="Rename a task: /edit <position> <title>.")
registry.register("prio", cmd_prio, help_text="Set priority: /prio <position> high|medium|low.")
registry.register("due", cmd_due, help_text="Set due date: /due <position> YYYY-MM-DD|none.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <position>.", aliases=["del"])
registry.register("mv", cmd_mv, help_text="Move a task: /mv <from> <to> [#category].")
registry.register("filter", cmd_filter, help_text="Filter the view: /filter category|search|priority|status|reset.")
registry.register("show", cmd_show, help_text="Show/hide completed tasks: /show on|off.")
registry.register("stats", cmd_stats, help_text="Daily progress and per-category counts.")
registry.register("cats", cmd_cats, help_text="List categories.")
registry.register("refresh", cmd_refresh, help_text="Reload all tasks from storage.")
