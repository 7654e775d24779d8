"""Wire envelope for a single engine command."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Command:
    name: str
    arguments: tuple[Any, ...] = ()
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def build(cls, name: str, *args: Any) -> Command:
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Command name must be a non-empty string")
        return cls(name=name, arguments=tuple(args))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "args": list(self.arguments)}

    def message(self) -> str:
        """Serialize to the engine's JSON request format (positional args keep their order)."""
        return json.dumps(self.to_dict(), ensure_ascii=False)


__all__ = ["Command"]
