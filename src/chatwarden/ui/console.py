"""Interactive operator console for a running moderation service."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from chatwarden.datatypes.analysis_datatypes import ModerationContext, Room
from chatwarden.errors import ModerationError
from chatwarden.service import ModerationService
from chatwarden.util.logger import get_logger
from chatwarden.util.time_utils import new_id

BOX_WIDTH = 45

logger = get_logger("console")

CommandHandler = Callable[["ConsoleControl", list[str]], Awaitable[None]]


def box_title(title: str) -> list[str]:
    inner_width = BOX_WIDTH - 2
    pad_left = (inner_width - len(title)) // 2
    pad_right = inner_width - len(title) - pad_left
    return [
        f"╔{'═' * inner_width}╗",
        f"║{' ' * pad_left}{title}{' ' * pad_right}║",
        f"╚{'═' * inner_width}╝",
    ]


@dataclass
class Command:
    """Definition of a console command."""
    name: str
    handler: CommandHandler
    aliases: list[str]
    description: str
    usage: str = ""

    def matches(self, input_cmd: str) -> bool:
        return input_cmd == self.name or input_cmd in self.aliases


def console_print(message: str, style: str = "") -> None:
    """Render text via prompt_toolkit without breaking the active prompt."""
    formatted: FormattedText | str
    if style:
        formatted = FormattedText([(style, message)])
    else:
        formatted = message
    print_formatted_text(formatted)


class ConsoleControl:
    """Shutdown signalling between the console and the service runner."""

    def __init__(self, service: ModerationService) -> None:
        self.service = service
        self.shutdown_event = asyncio.Event()

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()


# ==================== Command Handlers ====================

async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    """Display available commands and their descriptions."""
    for line in box_title("Console Commands Reference"):
        console_print(line, "ansigreen")

    for cmd in COMMANDS:
        aliases_str = f" (aliases: {', '.join(cmd.aliases)})" if cmd.aliases else ""
        console_print(f"\n  {cmd.name}{aliases_str}", "ansicyan")
        console_print(f"    {cmd.description}")
        if cmd.usage:
            console_print(f"    Usage: {cmd.usage}", "ansibrightblack")

    console_print("")


async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    """Display service, cache and background task status."""
    service = control.service
    state = service.behavior_state

    for line in box_title("Moderation Status"):
        console_print(line, "ansiblue")

    console_print(f"  Service:    {'🟢 Running' if service.started else '🔴 Stopped'}")
    console_print(f"  Database:   {service.config.database_path}")
    console_print(f"  Clusters:   {len(state.clusters)}")
    active_rules = sum(1 for rule in state.rules.rules() if rule.is_active)
    console_print(f"  Rules:      {active_rules} active / {len(state.rules)} total")
    console_print(f"  Behavior:   {len(state.behavior_cache)} cached snapshots")
    for task in service.tasks:
        marker = "🟢" if task.running else "🔴"
        console_print(f"  {marker} {task.name}: {task.ticks} ticks, {task.failures} failed")
    console_print("")


async def cmd_moderate(control: ConsoleControl, args: list[str]) -> None:
    """Run a message through the full moderation pipeline."""
    if len(args) < 2:
        console_print("Usage: moderate <author_id> <text...>", "ansiyellow")
        return

    room = Room.GLOBAL
    if args[0] in ("--work", "-w"):
        room = Room.WORK
        args = args[1:]
    author_id, text = args[0], " ".join(args[1:])

    decision = await control.service.engine.moderate_content(
        f"console-{new_id()}", text, author_id, ModerationContext(room=room)
    )
    style = "ansigreen" if str(decision.action) == "approve" else "ansiyellow"
    console_print(f"  Action:     {decision.action} ({decision.severity})", style)
    console_print(f"  Risk:       {decision.risk_score:.1f} (confidence {decision.confidence})")
    console_print(f"  Review:     {'yes' if decision.requires_human_review else 'no'}")
    console_print(f"  Reason:     {decision.reason}")
    console_print("")


async def cmd_user(control: ConsoleControl, args: list[str]) -> None:
    """Show a user's trust level and active restrictions."""
    if not args:
        console_print("Usage: user <human_id>", "ansiyellow")
        return

    status = await control.service.engine.check_user_moderation_status(args[0])
    for line in box_title(f"User {args[0]}"):
        console_print(line, "ansiblue")
    console_print(f"  Trust level:    {status.trust_level}")
    console_print(f"  Daily limit:    {status.max_daily_messages}")
    console_print(f"  Banned:         {status.is_banned}")
    console_print(f"  Restricted:     {status.is_restricted}")
    console_print(f"  Needs review:   {status.requires_review}")
    for action in status.active_restrictions:
        console_print(f"    • {action.action_type} ({action.severity}) {action.reason}")
    console_print("")


async def cmd_rules(control: ConsoleControl, args: list[str]) -> None:
    """List adaptive filter rules with their performance."""
    rules = control.service.behavior_state.rules.rules()
    for line in box_title(f"Adaptive Rules ({len(rules)})"):
        console_print(line, "ansiblue")
    for rule in rules:
        perf = rule.performance
        style = "" if rule.is_active else "ansibrightblack"
        console_print(
            f"  • {rule.id} [{rule.rule_type}] confidence={rule.confidence} "
            f"triggers={perf.total_triggers} confirmed={perf.confirmed_positives} false={perf.false_positives}",
            style,
        )
    console_print("")


async def cmd_sweep(control: ConsoleControl, args: list[str]) -> None:
    """Run every maintenance task once, immediately."""
    for task in control.service.tasks:
        ok = await task.run_once()
        console_print(f"  {task.name}: {'done' if ok else 'failed'}", "ansigreen" if ok else "ansired")


async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    """Request graceful shutdown."""
    console_print("Shutdown requested.", "ansiyellow")
    control.request_shutdown()


# ==================== Command Registry ====================

COMMANDS: list[Command] = [
    Command(
        name="help",
        handler=cmd_help,
        aliases=["h", "?"],
        description="Show this help message with all available commands",
    ),
    Command(
        name="status",
        handler=cmd_status,
        aliases=["stat", "info"],
        description="Display service status, cache sizes and background tasks",
    ),
    Command(
        name="moderate",
        handler=cmd_moderate,
        aliases=["mod", "m"],
        description="Moderate a message as if it had been posted",
        usage="moderate [--work] <author_id> <text...>",
    ),
    Command(
        name="user",
        handler=cmd_user,
        aliases=["u"],
        description="Show a user's trust level and active restrictions",
        usage="user <human_id>",
    ),
    Command(
        name="rules",
        handler=cmd_rules,
        aliases=["r"],
        description="List adaptive filter rules and their performance",
    ),
    Command(
        name="sweep",
        handler=cmd_sweep,
        aliases=[],
        description="Run the maintenance tasks once now",
    ),
    Command(
        name="shutdown",
        handler=cmd_shutdown,
        aliases=["stop", "quit", "exit"],
        description="Gracefully shut down the service",
    ),
]


# ==================== Command Dispatcher ====================

async def handle_console_command(command: str, control: ConsoleControl) -> None:
    """Interpret and execute a single console command line."""
    if not command.strip():
        return

    parts = command.strip().split()
    cmd_name = parts[0].lower()
    args = parts[1:]

    for cmd in COMMANDS:
        if cmd.matches(cmd_name):
            try:
                await cmd.handler(control, args)
            except ModerationError as exc:
                console_print(f"Error: {exc}", "ansired")
            except Exception as exc:
                logger.exception("Error executing command '%s': %s", cmd_name, exc)
                console_print(f"Error executing command: {exc}", "ansired")
            return

    console_print(f"Unknown command '{cmd_name}'. Type 'help' for available commands.", "ansired")


async def run_console(control: ConsoleControl) -> None:
    """Run the interactive console until shutdown is requested."""
    session = PromptSession("> ")

    for line in box_title("ChatWarden Interactive Console"):
        console_print(line, "ansigreen")
    console_print("Type 'help' for available commands or 'exit' to quit.\n", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
                if line.strip():
                    await handle_console_command(line, control)
            except (EOFError, KeyboardInterrupt):
                console_print("\nShutdown requested by user.", "ansiyellow")
                control.request_shutdown()
                break


@asynccontextmanager
async def console_session(control: ConsoleControl) -> AsyncIterator[ConsoleControl]:
    """Run the console alongside the service, cleaning up automatically."""
    console_task = asyncio.create_task(run_console(control))
    try:
        yield control
    finally:
        control.request_shutdown()
        console_task.cancel()
        try:
            await console_task
        except asyncio.CancelledError:
            pass
