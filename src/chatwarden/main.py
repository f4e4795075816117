"""
ChatWarden Moderation Service
=============================

Runs the automated moderation engine for a real-time chat: opens the store,
starts the maintenance loops and, when attached to a terminal, an operator
console. The transport embeds :class:`chatwarden.service.ModerationService`
and calls its engine for every posted message.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. CHATWARDEN_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("CHATWARDEN_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import signal

from dotenv import load_dotenv

load_dotenv(dotenv_path=BASE_DIR / ".env")

from chatwarden.configuration.app_configuration import app_config
from chatwarden.errors import PersistenceFailure
from chatwarden.service import ModerationService
from chatwarden.ui.console import ConsoleControl, console_session
from chatwarden.util.logger import configure_file_logging, get_logger, handle_exception

logger = get_logger("main")


def install_signal_handlers(control: ConsoleControl) -> None:
    """Turn SIGINT/SIGTERM into a graceful shutdown request."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, control.request_shutdown)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handler for %s not supported on this platform", sig)


async def run_service_session(service: ModerationService, interactive: bool) -> int:
    """Run the service until shutdown is requested, returning an exit code."""
    control = ConsoleControl(service)
    install_signal_handlers(control)

    if interactive:
        async with console_session(control):
            await control.shutdown_event.wait()
    else:
        logger.info("No terminal attached; running headless until SIGINT/SIGTERM")
        await control.shutdown_event.wait()
    return 0


async def async_main() -> int:
    """Bootstrap the moderation service and run it, returning an exit code."""
    service = ModerationService(app_config)

    try:
        await service.start()
    except PersistenceFailure as exc:
        logger.critical("Failed to open the moderation store: %s", exc)
        return 1

    try:
        return await run_service_session(service, interactive=sys.stdin.isatty())
    except Exception as exc:
        logger.critical("Moderation service runtime error: %s", exc)
        return 1
    finally:
        await service.shutdown()
        logger.info("Shutdown complete.")


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process code."""
    sys.excepthook = handle_exception
    log_path = configure_file_logging(app_config.logs_dir, app_config.log_max_bytes, app_config.log_backup_count)
    logger.debug("Session log: %s", log_path)
    logger.info("Starting ChatWarden moderation service…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the service: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
