from __future__ import annotations

import pytest

from polite.adapters import mute_sink
from polite.adapters.mute_sink import CommandMuteSink, LoggingMuteSink, build_sink
from polite.core.config import SinkConfig
from polite.core.rules_engine import MuteDecision

SILENT = MuteDecision(mute=True, vibrate=False)
VIBRATE = MuteDecision(mute=True, vibrate=True)
NORMAL = MuteDecision(mute=False, vibrate=False)


def test_command_sink_runs_only_on_change(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(mute_sink.subprocess, "run", lambda command, check: calls.append(command))
    sink = CommandMuteSink(
        SinkConfig(
            method="command",
            silent_command=["mute"],
            vibrate_command=["buzz"],
            unmute_command=["unmute"],
        )
    )

    for decision in (SILENT, SILENT, VIBRATE, NORMAL, NORMAL):
        sink.apply(decision)

    assert calls == [["mute"], ["buzz"], ["unmute"]]


def test_vibrate_falls_back_to_silent_command(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(mute_sink.subprocess, "run", lambda command, check: calls.append(command))
    sink = CommandMuteSink(SinkConfig(method="command", silent_command=["mute"]))
    sink.apply(VIBRATE)
    assert calls == [["mute"]]


def test_build_sink() -> None:
    assert isinstance(build_sink(SinkConfig(method="log")), LoggingMuteSink)
    assert isinstance(build_sink(SinkConfig(method="command")), CommandMuteSink)
    with pytest.raises(ValueError):
        build_sink(SinkConfig(method="telepathy"))
