"""Tests for the chime and desktop notification dispatcher."""

from __future__ import annotations

import io
import logging
import sys
import time

import pytest

from order_alerts.client import side_effects
from order_alerts.client.side_effects import (
    DesktopPermission,
    NotifySendBackend,
    SideEffectDispatcher,
    TerminalBellChime,
    negotiate_desktop_permission,
)


class CountingChime:
    def __init__(self, error: Exception | None = None) -> None:
        self.plays = 0
        self._error = error

    def play(self) -> None:
        self.plays += 1
        if self._error is not None:
            raise self._error


class RecordingDesktop:
    def __init__(self, *, supported: bool = True, error: Exception | None = None) -> None:
        self.supported = supported
        self.shown: list[tuple[str, str, str]] = []
        self._error = error

    def is_supported(self) -> bool:
        return self.supported

    def show(self, title: str, body: str, *, tag: str) -> None:
        if self._error is not None:
            raise self._error
        self.shown.append((title, body, tag))


class PermissionPrompt:
    def __init__(self, answer: DesktopPermission | str | Exception) -> None:
        self.calls = 0
        self._answer = answer

    async def __call__(self):
        self.calls += 1
        if isinstance(self._answer, Exception):
            raise self._answer
        return self._answer


def test_chime_failure_is_swallowed(make_notification, caplog) -> None:
    chime = CountingChime(error=OSError("autoplay blocked"))
    dispatcher = SideEffectDispatcher(chime=chime)

    with caplog.at_level(logging.DEBUG, logger=side_effects.__name__):
        dispatcher.dispatch(make_notification("a"))

    assert chime.plays == 1
    assert "Could not play notification sound" in caplog.text


def test_desktop_notification_requires_granted_permission(make_notification) -> None:
    desktop = RecordingDesktop()
    dispatcher = SideEffectDispatcher(desktop=desktop, permission=DesktopPermission.DENIED)

    dispatcher.dispatch(make_notification("a"))

    assert desktop.shown == []


def test_desktop_notification_is_tagged_by_order(make_notification) -> None:
    desktop = RecordingDesktop()
    dispatcher = SideEffectDispatcher(desktop=desktop, permission=DesktopPermission.GRANTED)

    dispatcher.dispatch(make_notification("a", order_id=5))
    dispatcher.dispatch(make_notification("b", order_id=5))

    assert [tag for _, _, tag in desktop.shown] == ["order-5", "order-5"]
    assert desktop.shown[0][0] == "New Order Received!"
    assert desktop.shown[0][1] == "New order #5 from Dilnoza"


def test_desktop_failure_does_not_block_chime(make_notification) -> None:
    chime = CountingChime()
    desktop = RecordingDesktop(error=RuntimeError("dbus unavailable"))
    dispatcher = SideEffectDispatcher(
        chime=chime, desktop=desktop, permission=DesktopPermission.GRANTED
    )

    dispatcher.dispatch(make_notification("a"))

    assert chime.plays == 1


def test_terminal_bell_writes_bel() -> None:
    stream = io.StringIO()

    TerminalBellChime(stream).play()

    assert stream.getvalue() == "\a"


@pytest.mark.anyio
async def test_unsupported_backend_never_prompts() -> None:
    prompt = PermissionPrompt(DesktopPermission.GRANTED)

    result = await negotiate_desktop_permission(
        RecordingDesktop(supported=False), "default", prompt
    )

    assert result is DesktopPermission.UNSUPPORTED
    assert prompt.calls == 0


@pytest.mark.anyio
@pytest.mark.parametrize("configured", ["granted", "denied"])
async def test_stored_decision_is_respected(configured: str) -> None:
    prompt = PermissionPrompt(DesktopPermission.GRANTED)

    result = await negotiate_desktop_permission(RecordingDesktop(), configured, prompt)

    assert result.value == configured
    assert prompt.calls == 0


@pytest.mark.anyio
async def test_default_permission_prompts_once_and_caches() -> None:
    prompt = PermissionPrompt("granted")
    dispatcher = SideEffectDispatcher(desktop=RecordingDesktop())

    first = await dispatcher.negotiate("default", prompt)
    second = await dispatcher.negotiate("default", prompt)

    assert first is second is DesktopPermission.GRANTED
    assert dispatcher.permission is DesktopPermission.GRANTED
    assert prompt.calls == 1


@pytest.mark.anyio
@pytest.mark.parametrize("answer", [RuntimeError("prompt closed"), "maybe"])
async def test_failed_prompt_leaves_default(answer) -> None:
    result = await negotiate_desktop_permission(
        RecordingDesktop(), "default", PermissionPrompt(answer)
    )

    assert result is DesktopPermission.DEFAULT


class FakeProcess:
    def __init__(self, args, **kwargs) -> None:
        self.args = args
        self.kwargs = kwargs
        self.returncode: int | None = None
        self.killed = False
        self.waited = False

    def poll(self):
        return self.returncode

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    def wait(self, timeout=None):
        self.waited = True
        return self.returncode


@pytest.fixture
def processes(monkeypatch) -> list[FakeProcess]:
    started: list[FakeProcess] = []

    def fake_popen(args, **kwargs):
        process = FakeProcess(args, **kwargs)
        started.append(process)
        return process

    monkeypatch.setattr(side_effects.subprocess, "Popen", fake_popen)
    return started


def test_notify_send_backend_passes_stacking_hints(processes) -> None:
    NotifySendBackend().show("New Order", "Order #9 from Aziz", tag="order-9")

    args = processes[0].args
    assert args[0] == "notify-send"
    assert "string:x-canonical-private-synchronous:order-9" in args
    assert "string:x-dunst-stack-tag:order-9" in args
    assert args[-2:] == ["New Order", "Order #9 from Aziz"]
    assert processes[0].waited is False


def test_notify_send_kills_processes_past_timeout(processes, monkeypatch) -> None:
    clock = [100.0]
    monkeypatch.setattr(side_effects.time, "monotonic", lambda: clock[0])
    backend = NotifySendBackend(timeout=5.0)

    backend.show("New Order", "first", tag="order-1")
    backend.show("New Order", "second", tag="order-2")
    processes[1].returncode = 0
    clock[0] = 106.0
    backend.show("New Order", "third", tag="order-3")

    assert processes[0].killed is True
    assert processes[1].killed is False
    assert processes[2].killed is False


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell script")
def test_slow_notify_send_does_not_block_dispatch(make_notification, tmp_path) -> None:
    script = tmp_path / "slow-notify"
    marker = tmp_path / "started"
    script.write_text(f"#!/bin/sh\ntouch '{marker}'\nsleep 1\n")
    script.chmod(0o755)
    dispatcher = SideEffectDispatcher(
        desktop=NotifySendBackend(str(script)), permission=DesktopPermission.GRANTED
    )

    started = time.monotonic()
    dispatcher.dispatch(make_notification("a", order_id=5))
    elapsed = time.monotonic() - started

    assert elapsed < 0.5
    deadline = time.monotonic() + 2
    while not marker.exists() and time.monotonic() < deadline:
        time.sleep(0.01)
    assert marker.exists()


def test_notify_send_support_depends_on_executable(monkeypatch) -> None:
    monkeypatch.setattr(side_effects.shutil, "which", lambda name: None)
    assert NotifySendBackend().is_supported() is False

    monkeypatch.setattr(side_effects.shutil, "which", lambda name: f"/usr/bin/{name}")
    assert NotifySendBackend().is_supported() is True
