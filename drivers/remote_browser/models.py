"""Value objects decoded from engine success payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _parse_time(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class NodeRef:
    """Engine-side node handle: page id plus node id within that page."""

    page_id: Any
    id: Any

    def to_wire(self) -> list[Any]:
        return [self.page_id, self.id]


@dataclass(frozen=True, slots=True)
class Cookie:
    name: str
    value: str
    domain: str | None = None
    path: str | None = None
    secure: bool = False
    httponly: bool = False
    samesite: str | None = None
    expires: datetime | None = None

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Cookie:
        expiry = data.get("expiry")
        expires = None
        if isinstance(expiry, (int, float)) and not isinstance(expiry, bool):
            expires = datetime.fromtimestamp(expiry, tz=timezone.utc)
        return cls(
            name=str(data.get("name") or ""),
            value=str(data.get("value") or ""),
            domain=data.get("domain"),
            path=data.get("path"),
            secure=bool(data.get("secure")),
            httponly=bool(data.get("httponly")),
            samesite=data.get("samesite"),
            expires=expires,
        )


@dataclass(frozen=True, slots=True)
class NetworkResponse:
    url: str
    status: int | None = None
    status_text: str | None = None
    headers: list[dict[str, Any]] = field(default_factory=list)
    redirect_url: str | None = None
    body_size: int | None = None
    content_type: str | None = None
    time: datetime | None = None

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> NetworkResponse:
        return cls(
            url=str(data.get("url") or ""),
            status=data.get("status"),
            status_text=data.get("statusText"),
            headers=list(data.get("headers") or []),
            redirect_url=data.get("redirectURL"),
            body_size=data.get("bodySize"),
            content_type=data.get("contentType"),
            time=_parse_time(data.get("time")),
        )


@dataclass(frozen=True, slots=True)
class NetworkError:
    url: str
    code: int | None = None
    description: str | None = None

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> NetworkError:
        return cls(url=str(data.get("url") or ""), code=data.get("errorCode"), description=data.get("errorString"))


@dataclass(frozen=True, slots=True)
class NetworkRequest:
    url: str
    method: str | None = None
    headers: list[dict[str, Any]] = field(default_factory=list)
    request_id: Any = None
    time: datetime | None = None
    response_parts: list[NetworkResponse] = field(default_factory=list)
    error: NetworkError | None = None

    @classmethod
    def from_wire(cls, event: dict[str, Any]) -> NetworkRequest:
        request = event.get("request") or {}
        parts = [NetworkResponse.from_wire(p) for p in event.get("responseParts") or [] if isinstance(p, dict)]
        error = event.get("error")
        return cls(
            url=str(request.get("url") or ""),
            method=request.get("method"),
            headers=list(request.get("headers") or []),
            request_id=request.get("id"),
            time=_parse_time(request.get("time")),
            response_parts=parts,
            error=NetworkError.from_wire(error) if isinstance(error, dict) else None,
        )


__all__ = ["Cookie", "NetworkError", "NetworkRequest", "NetworkResponse", "NodeRef"]
