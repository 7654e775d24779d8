"""Diagnostic mirror of every request and raw reply on the command channel."""

from __future__ import annotations

import json
import logging
import os
from contextlib import suppress
from typing import Any

from .command import Command
from .redaction import redact_message

logger = logging.getLogger("remote_browser.frames")


class FrameLog:
    """Mirrors frames to the `remote_browser.frames` logger and an optional dump file.

    Never raises: a broken sink must not affect command dispatch.
    """

    def __init__(self, dump_path: str | None = None, *, raw: bool = False, max_chars: int = 5000) -> None:
        self.dump_path = dump_path
        self.raw = raw
        self.max_chars = max(0, int(max_chars))

    def outgoing(self, command: Command) -> None:
        payload = command.to_dict() if self.raw else redact_message(command.to_dict())
        text = json.dumps(payload, ensure_ascii=False, default=str)
        logger.debug("send %s", self._clip(text))
        self._dump(b"--out--\n", text)

    def incoming(self, command: Command, raw_reply: str) -> None:
        logger.debug("recv name=%s id=%s %s", command.name, command.id, self._clip(raw_reply))
        self._dump(b"--in--\n", raw_reply)

    def _clip(self, text: str) -> str:
        if self.max_chars and len(text) > self.max_chars:
            return text[: self.max_chars] + f"... <truncated len={len(text)}>"
        return text

    def _dump(self, marker: bytes, text: Any) -> None:
        if not self.dump_path:
            return
        with suppress(OSError):
            if dump_dir := os.path.dirname(self.dump_path):
                os.makedirs(dump_dir, exist_ok=True)
            with open(self.dump_path, "ab") as fp:
                fp.write(marker)
                fp.write((str(text) + "\n").encode())


__all__ = ["FrameLog"]
