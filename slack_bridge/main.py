"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import Sequence

from .chat_adapters.slack_adapter import SlackAdapter
from .core import Config, ConfigError, InMemoryRuntime, SlackError, load_config

LOGGER = logging.getLogger(__name__)


def cli(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(
        prog="slack-bridge",
        description="Slack Bridge - connect a chat-bot runtime to Slack over Socket Mode",
    )
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Directory containing .env and adapter.yaml (default: ~/.slack-bridge)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("run", help="Connect to Slack and process events (default)")
    subparsers.add_parser("check-config", help="Load the configuration and report problems")

    args = parser.parse_args(argv)
    _configure_logging()

    if args.command == "check-config":
        return _check_config(args.config_dir)

    try:
        asyncio.run(_run_async(args.config_dir))
    except ConfigError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1
    except SlackError as exc:
        LOGGER.error("Slack error: %s", exc)
        return 1
    except KeyboardInterrupt:
        LOGGER.info("Interrupted by user")
        return 130
    return 0


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    logging.getLogger().setLevel(log_level)


def _check_config(config_dir: str | Path | None) -> int:
    try:
        config = load_config(config_dir)
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        return 1
    problems = config.token_problems()
    for problem in problems:
        print(problem)
    if problems:
        return 1
    print(
        f"Configuration OK (conversation cache TTL {config.conversation_cache_ttl_ms} ms, "
        f"page size {config.api_page_size})"
    )
    return 0


async def _run_async(config_dir: str | Path | None) -> None:
    config: Config = load_config(config_dir)
    LOGGER.info(
        "Conversation cache TTL %s ms, user page size %s",
        config.conversation_cache_ttl_ms,
        config.api_page_size,
    )

    runtime = InMemoryRuntime(alias=config.alias)
    slack_adapter = SlackAdapter(config, runtime)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _request_shutdown() -> None:
        LOGGER.info("Shutdown requested")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_shutdown)
        except NotImplementedError:
            # Windows event loops before 3.11 do not support signal handlers.
            pass

    slack_task = asyncio.create_task(slack_adapter.start())
    LOGGER.info("Slack Bridge started")

    stop_task = asyncio.create_task(stop_event.wait())
    done, _ = await asyncio.wait({slack_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    if slack_task not in done:
        await slack_adapter.stop()
    stop_task.cancel()
    await slack_task
    LOGGER.info("Shutdown complete")


if __name__ == "__main__":
    raise SystemExit(cli())
