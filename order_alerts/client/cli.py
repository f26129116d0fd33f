"""Console listener that shows order notifications on a staff terminal."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import webbrowser
from typing import Sequence

import anyio

from order_alerts.config import get_settings
from order_alerts.domain.entities import Identity
from order_alerts.infrastructure.security import peek_identity

from .channel import ConnectionStatusChanged, NotificationReceived
from .presentation import Navigator, order_detail_path
from .provider import NotificationAccessError, NotificationProvider
from .side_effects import (
    DesktopPermission,
    NotifySendBackend,
    NullChime,
    SideEffectDispatcher,
    TerminalBellChime,
)

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "ORDER_ALERTS_TOKEN"

HELP_TEXT = "commands: show | open <n> | read-all | clear | help | quit"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for the listener."""

    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="order-alerts",
        description="Listen for new order notifications as an admin or rider.",
    )
    parser.add_argument(
        "--server",
        default=settings.server_url,
        help=f"Websocket base URL of the notification server (default: {settings.server_url})",
    )
    parser.add_argument(
        "--token",
        default=None,
        help=f"Identity token issued at login. Falls back to ${TOKEN_ENV_VAR}.",
    )
    parser.add_argument(
        "--no-chime",
        action="store_true",
        help="Do not ring the terminal bell for new notifications.",
    )
    parser.add_argument(
        "--desktop",
        choices=[p.value for p in DesktopPermission if p is not DesktopPermission.UNSUPPORTED],
        default=settings.desktop_notifications,
        help="Stored desktop notification decision; 'default' asks once at startup.",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (default: %(default)s)",
    )
    return parser.parse_args(argv)


def browser_navigator(client_url: str, identity: Identity) -> Navigator:
    """Return a navigator that opens the order page in the web browser."""

    def navigate(order_id: int) -> None:
        url = client_url.rstrip("/") + order_detail_path(identity.role, order_id)
        logger.info("Opening %s", url)
        webbrowser.open(url)

    return navigate


async def prompt_desktop_permission() -> DesktopPermission:
    """Ask on the terminal whether desktop notifications may be shown."""

    answer = await anyio.to_thread.run_sync(
        input, "Show desktop notifications for new orders? [y/N] "
    )
    if answer.strip().lower() in {"y", "yes"}:
        return DesktopPermission.GRANTED
    return DesktopPermission.DENIED


def handle_command(provider: NotificationProvider, line: str) -> tuple[bool, str]:
    """Apply one console command; returns ``(keep_running, output)``."""

    parts = line.strip().split()
    if not parts:
        return True, ""

    command, args = parts[0].lower(), parts[1:]
    panel = provider.panel
    if command in {"quit", "exit", "q"}:
        return False, ""
    if command == "help":
        return True, HELP_TEXT
    if command == "show":
        return True, panel.render_text()
    if command == "read-all":
        panel.mark_all_read()
        return True, panel.render_text()
    if command == "clear":
        panel.clear_all()
        return True, panel.render_text()
    if command == "open":
        rows = panel.rows()
        try:
            index = int(args[0]) - 1
        except (IndexError, ValueError):
            return True, "usage: open <n>"
        if not 0 <= index < len(rows):
            return True, f"no notification #{index + 1}"
        panel.click(rows[index].notification_id)
        return True, panel.render_text()
    return True, f"unknown command '{command}'. {HELP_TEXT}"


async def _read_commands(provider: NotificationProvider) -> None:
    while not provider.session.rejected:
        line = await anyio.to_thread.run_sync(sys.stdin.readline, abandon_on_cancel=True)
        if not line:
            return
        keep_running, output = handle_command(provider, line)
        if output:
            print(output, flush=True)
        if not keep_running:
            return


async def run(args: argparse.Namespace) -> int:
    settings = get_settings().model_copy(
        update={"server_url": args.server, "desktop_notifications": args.desktop}
    )
    token = args.token or os.environ.get(TOKEN_ENV_VAR)
    if not token:
        raise SystemExit(f"An identity token is required (--token or ${TOKEN_ENV_VAR}).")

    try:
        identity = peek_identity(token)
    except ValueError as exc:
        raise SystemExit(f"Invalid identity token: {exc}") from exc

    chime = NullChime() if args.no_chime or not settings.chime_enabled else TerminalBellChime()
    dispatcher = SideEffectDispatcher(chime=chime, desktop=NotifySendBackend())

    try:
        provider = NotificationProvider(
            identity,
            token,
            navigator=browser_navigator(settings.client_url, identity),
            dispatcher=dispatcher,
            permission_request=prompt_desktop_permission,
            settings=settings,
        )
    except NotificationAccessError as exc:
        raise SystemExit(str(exc)) from exc

    provider.channel.subscribe(
        NotificationReceived, lambda _: print(provider.panel.render_text(), flush=True)
    )
    provider.channel.subscribe(
        ConnectionStatusChanged,
        lambda event: print(
            "connected" if event.connected else "disconnected (retrying)", flush=True
        ),
    )

    async with provider:
        print(HELP_TEXT, flush=True)
        commands = asyncio.create_task(
            _read_commands(provider), name="order-alerts-commands"
        )
        session_done = asyncio.create_task(
            provider.session.wait_closed(), name="order-alerts-session-watch"
        )
        await asyncio.wait({commands, session_done}, return_when=asyncio.FIRST_COMPLETED)
        for task in (commands, session_done):
            task.cancel()
        await asyncio.gather(commands, session_done, return_exceptions=True)

    return 1 if provider.session.rejected else 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for ``python -m order_alerts.client``."""

    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        exit_code = asyncio.run(run(args))
    except KeyboardInterrupt:
        exit_code = 0
    raise SystemExit(exit_code)
