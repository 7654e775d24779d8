"""
Transport collaborators for the command channel.

- Transport / EngineSupervisor: the interfaces CommandChannel consumes
- WebSocketTransport: websocket-client implementation of Transport
- NoopSupervisor: for engines whose process is managed elsewhere
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from contextlib import suppress
from typing import Any, Protocol

import websocket

from .command import Command
from .errors import DeadChannel

logger = logging.getLogger("remote_browser.transport")


class Transport(Protocol):
    def send(self, command: Command) -> str:
        """Deliver `command` and return the raw reply text; raise DeadChannel if unusable."""
        ...

    def restart(self) -> None:
        """Re-establish a usable channel (idempotent)."""
        ...


class EngineSupervisor(Protocol):
    def restart(self) -> None:
        """Restart the remote engine process."""
        ...


class NoopSupervisor:
    """Supervisor for an externally managed engine: restart only logs."""

    def restart(self) -> None:
        logger.info("engine_restart skipped: engine process is managed externally")


def _reply_command_id(raw: str) -> Any:
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return data.get("command_id") if isinstance(data, dict) else None


class WebSocketTransport:
    """Command transport over a WebSocket connection to the engine.

    Replies tagged with a foreign `command_id` (late answers to commands whose
    caller already gave up) are discarded; untagged replies are accepted.
    """

    def __init__(
        self,
        ws_url: str,
        *,
        timeout: float = 30.0,
        connect_timeout: float = 5.0,
        connect: Callable[..., Any] | None = None,
    ) -> None:
        self.ws_url = ws_url
        self.timeout = float(timeout)
        self.connect_timeout = float(connect_timeout)
        self._create_connection = connect or websocket.create_connection
        self.ws: Any = None

    @property
    def connected(self) -> bool:
        return self.ws is not None

    def _connect(self) -> None:
        try:
            self.ws = self._create_connection(self.ws_url, timeout=self.connect_timeout)
        except (OSError, websocket.WebSocketException) as exc:
            self.ws = None
            raise DeadChannel(f"Cannot connect to remote browser engine at {self.ws_url}: {exc}") from exc
        logger.info("connected ws_url=%s", self.ws_url)

    def _drop(self) -> None:
        ws, self.ws = self.ws, None
        if ws is not None:
            with suppress(Exception):
                ws.close()

    def send(self, command: Command) -> str:
        if self.ws is None:
            self._connect()
        try:
            self.ws.settimeout(self.connect_timeout)
            self.ws.send(command.message())
        except (OSError, websocket.WebSocketException) as exc:
            self._drop()
            raise DeadChannel(f"Sending '{command.name}' failed: {exc}") from exc
        return self._recv_until(command)

    def _recv_until(self, command: Command) -> str:
        deadline = time.monotonic() + self.timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self._drop()
                raise DeadChannel(f"Timed out after {self.timeout:g}s waiting for a reply to '{command.name}'")

            # Short socket timeouts so the overall deadline is enforced here.
            try:
                self.ws.settimeout(min(0.5, remaining))
                raw = self.ws.recv()
            except (websocket.WebSocketTimeoutException, TimeoutError):
                continue
            except (OSError, websocket.WebSocketException) as exc:
                self._drop()
                raise DeadChannel(f"Connection lost waiting for '{command.name}': {exc}") from exc

            if isinstance(raw, bytes):
                raw = raw.decode(errors="replace")
            if not raw:
                continue

            reply_id = _reply_command_id(raw)
            if reply_id is None or reply_id == command.id:
                return raw
            logger.debug("discarding stale reply command_id=%s", reply_id)

    def restart(self) -> None:
        self._drop()
        self._connect()

    def close(self) -> None:
        self._drop()


__all__ = ["EngineSupervisor", "NoopSupervisor", "Transport", "WebSocketTransport"]
