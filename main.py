#!/usr/bin/env python3
"""
StreamWatch - Twitch live status monitor in the terminal

Polls Helix every 30s for the configured streamers, redraws a status screen
and accepts commands on stdin (add/remove/list/toggle record/...).
"""

import argparse
import asyncio
import logging
import os
import pathlib
import sys
from typing import Tuple

from dotenv import load_dotenv
from twitchAPI.twitch import Twitch

from core.app_state import AppState
from core.command_processor import CommandProcessor
from core.config_store import ConfigStore
from core.display import Display
from core.errors import ConfigError
from core.poller import DEFAULT_INTERVAL, Poller
from core.session_recorder import SessionRecorder
from twitchapi.transports.helix_readonly import HelixReadOnlyClient

# Logger will be configured in setup_logging()
LOGGER = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(description="StreamWatch - Twitch live status monitor")
    parser.add_argument(
        '--config',
        type=str,
        default='config.json',
        help='Watch list file, JSON or YAML by extension (default: config.json)'
    )
    parser.add_argument(
        '--output',
        type=str,
        default='output.json',
        help='Session log written when recording is enabled (default: output.json)'
    )
    parser.add_argument(
        '--interval',
        type=float,
        default=DEFAULT_INTERVAL,
        help=f'Seconds between two refreshes (default: {DEFAULT_INTERVAL:g})'
    )
    parser.add_argument(
        '--env-file',
        type=str,
        default='.env',
        help='Optional file holding TWITCH_CLIENT_ID / TWITCH_CLIENT_SECRET (default: .env)'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default='logs/streamwatch.log',
        help='Log file (default: logs/streamwatch.log)'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Log level (default: INFO)'
    )
    parser.add_argument(
        '--helix-timeout',
        type=float,
        default=None,
        help='Timeout per Helix query in seconds (default: none)'
    )
    parser.add_argument(
        '--no-animation',
        action='store_true',
        help='Disable the header spinner'
    )
    args = parser.parse_args(argv)
    if args.interval <= 0:
        parser.error("--interval must be positive")
    return args


def setup_logging(log_file, level='INFO'):
    """
    Log to a file only: stdout belongs to the status screen.
    """
    log_path = pathlib.Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
        handlers=[logging.FileHandler(log_path, encoding="utf-8")],
        force=True  # Override any existing config
    )
    return log_path


def load_credentials(env_file='.env') -> Tuple[str, str]:
    """
    Read TWITCH_CLIENT_ID / TWITCH_CLIENT_SECRET.

    The env file is optional: without it the process environment is used.
    Exits with status 1 if either value is missing.
    """
    env_path = pathlib.Path(env_file)
    if env_path.exists():
        load_dotenv(env_path)
        LOGGER.info(f"🔐 Loaded environment from {env_path}")
    else:
        LOGGER.info(f"Note: {env_path} not found. Relying on system environment variables.")

    client_id = os.getenv("TWITCH_CLIENT_ID", "").strip()
    client_secret = os.getenv("TWITCH_CLIENT_SECRET", "").strip()
    if not client_id or not client_secret:
        message = (
            "TWITCH_CLIENT_ID and TWITCH_CLIENT_SECRET environment variables "
            "must be set (e.g., in a .env file)."
        )
        LOGGER.error(message)
        print(message, file=sys.stderr)
        sys.exit(1)
    return client_id, client_secret


def load_config(config_path) -> ConfigStore:
    """Load the watch list, exit with status 1 if the file is unusable"""
    try:
        return ConfigStore.load(config_path)
    except ConfigError as e:
        LOGGER.error(f"Failed to load config: {e}")
        print(f"Failed to load config: {e}", file=sys.stderr)
        sys.exit(1)


async def create_twitch(client_id: str, client_secret: str) -> Twitch:
    """App Token authentication (client credentials), exit 1 on failure"""
    try:
        return await Twitch(client_id, client_secret)
    except Exception as e:
        LOGGER.error(f"Failed to create Twitch client: {e}", exc_info=True)
        print(f"Failed to create Twitch client: {e}", file=sys.stderr)
        sys.exit(1)


async def main(argv=None):
    """Main entry point: credentials, Helix client, poller + REPL"""
    args = parse_args(argv)
    log_file = setup_logging(args.log_file, args.log_level)
    LOGGER.info(f"StreamWatch starting (log: {log_file})")

    client_id, client_secret = load_credentials(args.env_file)
    config = load_config(args.config)

    twitch = await create_twitch(client_id, client_secret)
    LOGGER.info("✅ Twitch App Token acquired")

    state = AppState(config)
    display = Display(animate=not args.no_animation)
    helix = HelixReadOnlyClient(twitch, helix_timeout=args.helix_timeout)
    recorder = SessionRecorder(args.output)
    poller = Poller(state, helix, display, recorder, interval=args.interval)
    repl = CommandProcessor(state, poller, display)

    await poller.start()
    try:
        await repl.run()
    finally:
        LOGGER.info("🛑 Shutting down...")
        await poller.stop()
        await twitch.close()
        LOGGER.info("👋 Stopped")


def run():
    """Console script entry point"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        # The REPL already printed "Exiting." and main() shut down
        pass


if __name__ == "__main__":
    run()
