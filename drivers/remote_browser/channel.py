"""
Command/response protocol layer.

CommandChannel.dispatch(name, *args) frames a Command, sends it through the
Transport, decodes the JSON reply and either returns the `response` payload or
raises the typed BrowserError for the reply's `error`.

When the transport reports DeadChannel the channel runs the restart protocol
(engine restart, transport reconnect, SessionConfig replay) and re-raises
DeadChannel: the in-flight command is never retried here.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

from .command import Command
from .config import SessionConfig
from .errors import DeadChannel, ProtocolError, error_from_wire
from .frames import FrameLog
from .transport import EngineSupervisor, NoopSupervisor, Transport

logger = logging.getLogger("remote_browser.channel")


def decode_reply(raw: Any) -> Any:
    """Decode raw reply text into the success payload or raise the typed error."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode(errors="replace")
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"Reply is not valid JSON: {str(raw)[:200]!r}", raw=raw) from exc

    if not isinstance(data, dict):
        raise ProtocolError(f"Reply is not a JSON object: {str(raw)[:200]!r}", raw=raw)
    if data.get("error"):
        raise error_from_wire(data["error"])
    if "response" in data:
        return data["response"]
    raise ProtocolError(f"Reply has neither 'response' nor 'error': {str(raw)[:200]!r}", raw=raw)


class CommandChannel:
    """Synchronous request/response channel to the remote engine.

    Not safe for concurrent dispatch; only the restart protocol is serialized.
    """

    def __init__(
        self,
        transport: Transport,
        supervisor: EngineSupervisor | None = None,
        *,
        session_config: SessionConfig | None = None,
        frame_log: FrameLog | None = None,
    ) -> None:
        self.transport = transport
        self.supervisor = supervisor or NoopSupervisor()
        self.session_config = session_config or SessionConfig()
        self.frame_log = frame_log or FrameLog()
        self._restart_lock = threading.Lock()
        self._generation = 0
        self._replay_pending = False

    @property
    def generation(self) -> int:
        """Number of completed restarts."""
        return self._generation

    def dispatch(self, name: str, *args: Any) -> Any:
        command = Command.build(name, *args)
        generation = self._generation
        try:
            if self._replay_pending:
                self._finish_replay()
            return self._roundtrip(command)
        except DeadChannel:
            logger.warning("dead_channel command=%s id=%s", command.name, command.id)
            self._restart(generation)
            raise

    def restart(self) -> None:
        """Restart the engine and transport, then replay session state."""
        self._restart(self._generation)

    @property
    def replay_pending(self) -> bool:
        """True while a restart has not yet replayed session state."""
        return self._replay_pending

    def _roundtrip(self, command: Command) -> Any:
        self.frame_log.outgoing(command)
        raw = self.transport.send(command)
        self.frame_log.incoming(command, raw)
        return decode_reply(raw)

    def _replay(self, config: SessionConfig) -> None:
        for name, args in config.replay_commands():
            self._roundtrip(Command.build(name, *args))
        self._replay_pending = False

    def _finish_replay(self) -> None:
        with self._restart_lock:
            if self._replay_pending:
                logger.info("replaying session state owed by an earlier restart")
                self._replay(self.session_config)

    def _restart(self, seen_generation: int) -> None:
        with self._restart_lock:
            if self._generation != seen_generation:
                # Another caller already rebuilt the channel after this failure.
                return
            snapshot = self.session_config
            logger.info("restart engine=%s transport=%s", type(self.supervisor).__name__, type(self.transport).__name__)
            # Cleared only by a completed replay; dispatch resumes an unfinished one.
            self._replay_pending = True
            self.supervisor.restart()
            self.transport.restart()
            self._generation += 1
            self._replay(snapshot)
            logger.info("restart complete generation=%d", self._generation)


__all__ = ["CommandChannel", "decode_reply"]
