# src/tasklist/cli/console.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..core.errors import TaskError, friendly_error_message
from ..core.state import AppState
from .commands import parse_task_tokens, registry as command_registry, render_view

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def _quick_add(state: AppState, text: str) -> str:
    try:
        task = await state.store.create(parse_task_tokens(text.split()))
    except TaskError as e:
        return f"Failed to add task. {friendly_error_message(e)}"
    return f"Task added: {task.title}"


async def run_console_loop(state: AppState) -> None:
    logger.info("Console started (show_completed=%s).", state.show_completed)

    try:
        await state.store.list()
    except TaskError as e:
        _print_ts(f"Failed to load tasks. {friendly_error_message(e)} Use /refresh to retry.")

    _print_ts("[CONSOLE] Type a task title to add it. Use /help for commands. Use /exit to quit.\n")
    print(render_view(state), flush=True)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(state, user_input, emit=_print_ts)
            if reply is None:
                reply = await _quick_add(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        _print_ts(reply)

    logger.info("Console finished.")
