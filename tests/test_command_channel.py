from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from drivers.remote_browser.channel import CommandChannel, decode_reply
from drivers.remote_browser.command import Command
from drivers.remote_browser.config import SessionConfig
from drivers.remote_browser.errors import (
    DeadChannel,
    ErrorKind,
    FrameNotFound,
    GenericBrowserError,
    ProtocolError,
    ScriptTimeoutError,
)
from drivers.remote_browser.frames import FrameLog


class DummyTransport:
    def __init__(self, replies: list[Any]) -> None:
        self.replies = list(replies)
        self.sent: list[Command] = []
        self.restarts = 0

    def send(self, command: Command) -> str:
        self.sent.append(command)
        reply = self.replies.pop(0) if self.replies else {"response": True}
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, str) else json.dumps(reply)

    def restart(self) -> None:
        self.restarts += 1


class DummySupervisor:
    def __init__(self) -> None:
        self.restarts = 0

    def restart(self) -> None:
        self.restarts += 1


def _wire(command: Command) -> dict[str, Any]:
    return json.loads(command.message())


# ═══════════════════════════════════════════════════════════════════════════════
# FRAMING
# ═══════════════════════════════════════════════════════════════════════════════


def test_command_message_envelope() -> None:
    cmd = Command.build("click", 1, 2, ["shift"], {"x": 5, "y": 6})
    msg = _wire(cmd)
    assert msg["name"] == "click"
    assert msg["id"] == cmd.id
    assert msg["args"] == [1, 2, ["shift"], {"x": 5, "y": 6}]


def test_command_ids_are_unique() -> None:
    assert Command.build("title").id != Command.build("title").id


def test_command_requires_name() -> None:
    with pytest.raises(ValueError):
        Command.build("")


@pytest.mark.parametrize(
    "args",
    [(), ("css", "#a"), (3, None, True, 1.5, "x"), ([1, [2, [3]]], {"b": 1, "a": 2}, "tail")],
)
def test_dispatch_preserves_argument_order(args: tuple[Any, ...]) -> None:
    transport = DummyTransport([{"response": None}])
    CommandChannel(transport).dispatch("evaluate", *args)
    assert _wire(transport.sent[0])["args"] == list(args)


# ═══════════════════════════════════════════════════════════════════════════════
# DECODING
# ═══════════════════════════════════════════════════════════════════════════════


def test_dispatch_find_returns_payload() -> None:
    transport = DummyTransport([{"response": {"page_id": 3, "ids": [7, 8]}}])
    result = CommandChannel(transport).dispatch("find", "css", "#a")
    assert result == {"page_id": 3, "ids": [7, 8]}
    msg = _wire(transport.sent[0])
    assert (msg["name"], msg["args"]) == ("find", ["css", "#a"])


@pytest.mark.parametrize("payload", [None, False, 0, "", [], {"nested": [1, 2]}])
def test_response_payload_is_returned_verbatim(payload: Any) -> None:
    assert decode_reply(json.dumps({"response": payload})) == payload


def test_wire_error_raises_typed_error() -> None:
    transport = DummyTransport([{"error": {"name": "Poltergeist.ScriptTimeoutError", "args": []}}])
    with pytest.raises(ScriptTimeoutError) as excinfo:
        CommandChannel(transport).dispatch("evaluate_async", "done()", 1)
    assert excinfo.value.kind is ErrorKind.SCRIPT_TIMEOUT_ERROR
    assert transport.restarts == 0


def test_unknown_wire_error_raises_generic() -> None:
    transport = DummyTransport([{"error": {"name": "Poltergeist.Whatever", "message": "odd"}}])
    with pytest.raises(GenericBrowserError) as excinfo:
        CommandChannel(transport).dispatch("visit", "http://example.test/")
    assert excinfo.value.kind is ErrorKind.GENERIC
    assert excinfo.value.message == "odd"


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"other": 1}', b'{"nope": true}'])
def test_malformed_reply_raises_protocol_error(raw: Any) -> None:
    with pytest.raises(ProtocolError):
        decode_reply(raw)


def test_bytes_reply_is_decoded() -> None:
    assert decode_reply(b'{"response": "ok"}') == "ok"


# ═══════════════════════════════════════════════════════════════════════════════
# RESTART PROTOCOL
# ═══════════════════════════════════════════════════════════════════════════════


def test_dead_channel_restarts_replays_and_reraises() -> None:
    transport = DummyTransport([DeadChannel("socket closed")])
    supervisor = DummySupervisor()
    config = SessionConfig(debug=True, js_errors=False, extensions=("a.js", "b.js"))
    channel = CommandChannel(transport, supervisor, session_config=config)

    with pytest.raises(DeadChannel):
        channel.dispatch("visit", "http://example.test/")

    assert supervisor.restarts == 1
    assert transport.restarts == 1
    assert channel.generation == 1
    replayed = [(_wire(c)["name"], _wire(c)["args"]) for c in transport.sent[1:]]
    assert replayed == [
        ("set_debug", [True]),
        ("set_js_errors", [False]),
        ("add_extension", ["a.js"]),
        ("add_extension", ["b.js"]),
    ]
    # The failed command is not retried.
    assert [_wire(c)["name"] for c in transport.sent].count("visit") == 1


def test_channel_usable_after_restart() -> None:
    transport = DummyTransport([DeadChannel(), {"response": None}, {"response": None}, {"response": "Title"}])
    channel = CommandChannel(transport, DummySupervisor())
    with pytest.raises(DeadChannel):
        channel.dispatch("title")
    assert channel.dispatch("title") == "Title"


def test_engine_restarts_before_transport() -> None:
    order: list[str] = []

    class OrderedTransport(DummyTransport):
        def restart(self) -> None:
            order.append("transport")

    class OrderedSupervisor:
        def restart(self) -> None:
            order.append("engine")

    channel = CommandChannel(OrderedTransport([DeadChannel()]), OrderedSupervisor())
    with pytest.raises(DeadChannel):
        channel.dispatch("body")
    assert order == ["engine", "transport"]


def test_wire_errors_do_not_restart() -> None:
    transport = DummyTransport([{"error": {"name": "Poltergeist.FrameNotFound", "args": ["x"]}}])
    supervisor = DummySupervisor()
    with pytest.raises(FrameNotFound):
        CommandChannel(transport, supervisor).dispatch("push_frame", "x")
    assert supervisor.restarts == 0
    assert transport.restarts == 0


def test_failed_transport_restart_replays_on_next_dispatch() -> None:
    class FlakyRestartTransport(DummyTransport):
        def restart(self) -> None:
            self.restarts += 1
            if self.restarts == 1:
                raise DeadChannel("engine still booting")

    transport = FlakyRestartTransport([DeadChannel("socket closed")])
    config = SessionConfig(debug=True, js_errors=False, extensions=("a.js",))
    channel = CommandChannel(transport, DummySupervisor(), session_config=config)

    with pytest.raises(DeadChannel):
        channel.dispatch("visit", "http://example.test/")
    assert channel.replay_pending

    transport.replies = [{"response": None}, {"response": None}, {"response": None}, {"response": "Title"}]
    assert channel.dispatch("title") == "Title"
    assert [(_wire(c)["name"], _wire(c)["args"]) for c in transport.sent[1:]] == [
        ("set_debug", [True]),
        ("set_js_errors", [False]),
        ("add_extension", ["a.js"]),
        ("title", []),
    ]
    assert not channel.replay_pending


def test_failed_supervisor_restart_replays_on_next_dispatch() -> None:
    class FlakySupervisor(DummySupervisor):
        def restart(self) -> None:
            self.restarts += 1
            if self.restarts == 1:
                raise RuntimeError("engine failed to start")

    transport = DummyTransport([DeadChannel()])
    channel = CommandChannel(transport, FlakySupervisor(), session_config=SessionConfig(debug=True))
    with pytest.raises(RuntimeError):
        channel.dispatch("body")

    channel.dispatch("body")
    assert [_wire(c)["name"] for c in transport.sent] == ["body", "set_debug", "set_js_errors", "body"]


def test_replay_is_sent_once() -> None:
    transport = DummyTransport([DeadChannel()])
    channel = CommandChannel(transport, DummySupervisor())
    with pytest.raises(DeadChannel):
        channel.dispatch("title")
    channel.dispatch("title")
    channel.dispatch("title")
    assert [_wire(c)["name"] for c in transport.sent] == ["title", "set_debug", "set_js_errors", "title", "title"]


def test_stale_generation_skips_duplicate_restart() -> None:
    transport = DummyTransport([])
    supervisor = DummySupervisor()
    channel = CommandChannel(transport, supervisor)
    channel.restart()
    # A failure observed before the first restart must not trigger a second one.
    channel._restart(0)  # noqa: SLF001
    assert supervisor.restarts == 1
    assert channel.generation == 1


# ═══════════════════════════════════════════════════════════════════════════════
# FRAME MIRRORING
# ═══════════════════════════════════════════════════════════════════════════════


def test_frames_are_logged_and_redacted(caplog: pytest.LogCaptureFixture) -> None:
    transport = DummyTransport([{"response": True}])
    with caplog.at_level(logging.DEBUG, logger="remote_browser.frames"):
        CommandChannel(transport).dispatch("set_http_auth", "admin", "hunter2")
    text = caplog.text
    assert "set_http_auth" in text
    assert "admin" in text
    assert "hunter2" not in text
    assert '{"response": true}' in text


def test_frames_dump_file(tmp_path: Path) -> None:
    dump = tmp_path / "frames" / "dump.log"
    transport = DummyTransport([{"response": 200}])
    CommandChannel(transport, frame_log=FrameLog(str(dump))).dispatch("status_code")
    content = dump.read_text()
    assert content.startswith("--out--\n")
    assert "--in--\n" in content
    assert '"status_code"' in content


def test_broken_dump_path_does_not_break_dispatch(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    transport = DummyTransport([{"response": "ok"}])
    channel = CommandChannel(transport, frame_log=FrameLog(str(blocker / "dump.log")))
    assert channel.dispatch("title") == "ok"
