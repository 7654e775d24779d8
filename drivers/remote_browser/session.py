"""
Session: one method per automation action.

Every method is a thin pass-through to CommandChannel.dispatch. Setters for
session-level state (debug, js errors, extensions) also record the new value in
the channel's SessionConfig so it is replayed after a restart.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any

from .channel import CommandChannel
from .config import DriverConfig, SessionConfig
from .errors import NoSuchWindowError
from .frames import FrameLog
from .keys import KeyNormalizer
from .models import Cookie, NetworkRequest, NodeRef
from .transport import EngineSupervisor, Transport, WebSocketTransport

logger = logging.getLogger("remote_browser.session")


class Session:
    def __init__(self, channel: CommandChannel, *, normalizer: KeyNormalizer | None = None) -> None:
        self.channel = channel
        self.normalizer = normalizer or KeyNormalizer()

    @classmethod
    def from_config(
        cls,
        config: DriverConfig | None = None,
        *,
        transport: Transport | None = None,
        supervisor: EngineSupervisor | None = None,
    ) -> Session:
        config = config or DriverConfig.from_env()
        if transport is None:
            transport = WebSocketTransport(config.ws_url, timeout=config.timeout, connect_timeout=config.connect_timeout)
        channel = CommandChannel(
            transport,
            supervisor,
            session_config=config.initial_session_config(),
            frame_log=FrameLog(config.dump_frames, raw=config.dump_frames_raw),
        )
        return cls(channel, normalizer=KeyNormalizer(config.literal_case_policy))

    @property
    def session_config(self) -> SessionConfig:
        return self.channel.session_config

    def command(self, name: str, *args: Any) -> Any:
        return self.channel.dispatch(name, *args)

    def restart(self) -> None:
        self.channel.restart()

    # ── navigation ───────────────────────────────────────────────────────────

    def visit(self, url: str) -> Any:
        return self.command("visit", url)

    def current_url(self) -> str:
        return self.command("current_url")

    def frame_url(self) -> str:
        return self.command("frame_url")

    def status_code(self) -> int:
        return self.command("status_code")

    def body(self) -> str:
        return self.command("body")

    def source(self) -> str:
        return self.command("source")

    def title(self) -> str:
        return self.command("title")

    def frame_title(self) -> str:
        return self.command("frame_title")

    def go_back(self) -> Any:
        return self.command("go_back")

    def go_forward(self) -> Any:
        return self.command("go_forward")

    def refresh(self) -> Any:
        return self.command("refresh")

    def reset(self) -> Any:
        return self.command("reset")

    # ── nodes ────────────────────────────────────────────────────────────────

    def find(self, method: str, selector: str) -> list[NodeRef]:
        """Return NodeRefs for every match; the engine replies `{"page_id", "ids"}`."""
        result = self.command("find", method, selector)
        return [NodeRef(result["page_id"], node_id) for node_id in result["ids"]]

    def find_within(self, page_id: Any, id: Any, method: str, selector: str) -> Any:
        return self.command("find_within", page_id, id, method, selector)

    def parents(self, page_id: Any, id: Any) -> Any:
        return self.command("parents", page_id, id)

    def all_text(self, page_id: Any, id: Any) -> str:
        return self.command("all_text", page_id, id)

    def visible_text(self, page_id: Any, id: Any) -> str:
        return self.command("visible_text", page_id, id)

    def delete_text(self, page_id: Any, id: Any) -> Any:
        return self.command("delete_text", page_id, id)

    def property(self, page_id: Any, id: Any, name: Any) -> Any:
        return self.command("property", page_id, id, str(name))

    def attributes(self, page_id: Any, id: Any) -> dict[str, Any]:
        return self.command("attributes", page_id, id)

    def attribute(self, page_id: Any, id: Any, name: Any) -> Any:
        return self.command("attribute", page_id, id, str(name))

    def value(self, page_id: Any, id: Any) -> Any:
        return self.command("value", page_id, id)

    def set(self, page_id: Any, id: Any, value: Any) -> Any:
        return self.command("set", page_id, id, value)

    def select_file(self, page_id: Any, id: Any, value: Any) -> Any:
        return self.command("select_file", page_id, id, value)

    def tag_name(self, page_id: Any, id: Any) -> str:
        return str(self.command("tag_name", page_id, id)).lower()

    def is_visible(self, page_id: Any, id: Any) -> bool:
        return self.command("visible", page_id, id)

    def is_clickable(self, page_id: Any, id: Any) -> Any:
        return self.command("clickable", page_id, id)

    def is_disabled(self, page_id: Any, id: Any) -> bool:
        return self.command("disabled", page_id, id)

    def path(self, page_id: Any, id: Any) -> str:
        return self.command("path", page_id, id)

    def equals(self, page_id: Any, id: Any, other_id: Any) -> bool:
        return self.command("equals", page_id, id, other_id)

    # ── input ────────────────────────────────────────────────────────────────

    def click(self, page_id: Any, id: Any, keys: list[Any] | None = None, offset: dict[str, Any] | None = None) -> Any:
        return self.command("click", page_id, id, list(keys or []), dict(offset or {}))

    def right_click(
        self, page_id: Any, id: Any, keys: list[Any] | None = None, offset: dict[str, Any] | None = None
    ) -> Any:
        return self.command("right_click", page_id, id, list(keys or []), dict(offset or {}))

    def double_click(
        self, page_id: Any, id: Any, keys: list[Any] | None = None, offset: dict[str, Any] | None = None
    ) -> Any:
        return self.command("double_click", page_id, id, list(keys or []), dict(offset or {}))

    def click_coordinates(self, x: float, y: float) -> Any:
        return self.command("click_coordinates", x, y)

    def hover(self, page_id: Any, id: Any) -> Any:
        return self.command("hover", page_id, id)

    def drag(self, page_id: Any, id: Any, other_id: Any) -> Any:
        return self.command("drag", page_id, id, other_id)

    def drag_by(self, page_id: Any, id: Any, x: float, y: float) -> Any:
        return self.command("drag_by", page_id, id, x, y)

    def select(self, page_id: Any, id: Any, value: Any) -> Any:
        return self.command("select", page_id, id, value)

    def trigger(self, page_id: Any, id: Any, event: Any) -> Any:
        return self.command("trigger", page_id, id, str(event))

    def scroll_to(self, left: float, top: float) -> Any:
        return self.command("scroll_to", left, top)

    def send_keys(self, page_id: Any, id: Any, keys: Any) -> Any:
        """Type `keys` into the node.

        `keys` is a key specification: a string, a Named key (or a `":name"`
        string), or a (nested) list of them; nested lists hold their modifiers
        for their own contents. Text starting with a colon goes in a Literal.
        """
        spec = keys if isinstance(keys, (list, tuple)) else [keys]
        return self.command("send_keys", page_id, id, self.normalizer.to_wire(spec))

    # ── scripts ──────────────────────────────────────────────────────────────

    def evaluate(self, script: str, *args: Any) -> Any:
        return self.command("evaluate", script, *args)

    def evaluate_async(self, script: str, wait_time: float, *args: Any) -> Any:
        return self.command("evaluate_async", script, wait_time, *args)

    def execute(self, script: str, *args: Any) -> Any:
        return self.command("execute", script, *args)

    # ── frames & windows ─────────────────────────────────────────────────────

    @contextmanager
    def within_frame(self, handle: Any) -> Generator[None, None, None]:
        """Push a frame (NodeRef, name or index) for the block; always pops it."""
        try:
            self.command("push_frame", handle.to_wire() if isinstance(handle, NodeRef) else handle)
            yield
        finally:
            self.command("pop_frame")

    def switch_to_frame(self, handle: Any) -> Any:
        if isinstance(handle, NodeRef):
            return self.command("push_frame", handle.to_wire())
        if handle == "parent":
            return self.command("pop_frame")
        if handle == "top":
            return self.command("pop_frame", True)
        raise ValueError(f"Unsupported frame handle: {handle!r} (expected NodeRef, 'parent' or 'top')")

    def window_handle(self) -> str:
        return self.command("window_handle")

    def window_handles(self) -> list[str]:
        return self.command("window_handles")

    def switch_to_window(self, handle: str) -> Any:
        return self.command("switch_to_window", handle)

    def open_new_window(self) -> Any:
        return self.command("open_new_window")

    def close_window(self, handle: str) -> Any:
        return self.command("close_window", handle)

    def find_window_handle(self, locator: str) -> str:
        if locator in self.window_handles():
            return locator
        handle = self.command("window_handle", locator)
        if not handle:
            raise NoSuchWindowError()
        return handle

    @contextmanager
    def within_window(self, locator: str) -> Generator[None, None, None]:
        original = self.window_handle()
        try:
            self.switch_to_window(self.find_window_handle(locator))
            yield
        finally:
            self.switch_to_window(original)

    # ── rendering & viewport ─────────────────────────────────────────────────

    def _render_options(self, options: dict[str, Any] | None) -> dict[str, Any]:
        opts = dict(options or {})
        if opts.get("full") and "selector" in opts:
            logger.warning("Ignoring selector in render since full=True was given")
            opts.pop("selector")
        opts["full"] = bool(opts.get("full"))
        return opts

    def render(self, path: Any, options: dict[str, Any] | None = None) -> Any:
        return self.command("render", str(path), self._render_options(options))

    def render_base64(self, format: Any, options: dict[str, Any] | None = None) -> str:
        return self.command("render_base64", str(format), self._render_options(options))

    def set_zoom_factor(self, zoom_factor: float) -> Any:
        return self.command("set_zoom_factor", zoom_factor)

    def set_paper_size(self, size: dict[str, Any]) -> Any:
        return self.command("set_paper_size", size)

    def resize(self, width: int, height: int) -> Any:
        return self.command("resize", width, height)

    # ── network ──────────────────────────────────────────────────────────────

    def network_traffic(self, type: str | None = None) -> list[NetworkRequest]:
        return [NetworkRequest.from_wire(event) for event in self.command("network_traffic", type) or []]

    def clear_network_traffic(self) -> Any:
        return self.command("clear_network_traffic")

    def set_proxy(self, ip: str, port: int, type: str, user: str | None = None, password: str | None = None) -> Any:
        args: list[Any] = [ip, port, type]
        if user:
            args.append(user)
        if password:
            args.append(password)
        return self.command("set_proxy", *args)

    def get_headers(self) -> dict[str, Any]:
        return self.command("get_headers")

    def set_headers(self, headers: dict[str, Any]) -> Any:
        return self.command("set_headers", headers)

    def add_headers(self, headers: dict[str, Any]) -> Any:
        return self.command("add_headers", headers)

    def add_header(self, header: dict[str, Any], options: dict[str, Any] | None = None) -> Any:
        return self.command("add_header", header, dict(options or {}))

    def response_headers(self) -> dict[str, Any]:
        return self.command("response_headers")

    def set_url_whitelist(self, whitelist: list[str]) -> Any:
        return self.command("set_url_whitelist", *whitelist)

    def set_url_blacklist(self, blacklist: list[str]) -> Any:
        return self.command("set_url_blacklist", *blacklist)

    def set_http_auth(self, user: str, password: str) -> Any:
        return self.command("set_http_auth", user, password)

    def clear_memory_cache(self) -> Any:
        return self.command("clear_memory_cache")

    # ── cookies ──────────────────────────────────────────────────────────────

    def cookies(self) -> dict[str, Cookie]:
        out: dict[str, Cookie] = {}
        for raw in self.command("cookies") or []:
            cookie = Cookie.from_wire(raw)
            out[cookie.name] = cookie
        return out

    def set_cookie(self, cookie: dict[str, Any]) -> Any:
        """Set a cookie; `expires` (datetime or epoch seconds) is sent as epoch milliseconds."""
        payload = dict(cookie)
        expires = payload.get("expires")
        if isinstance(expires, datetime):
            payload["expires"] = int(expires.timestamp()) * 1000
        elif expires:
            payload["expires"] = int(expires) * 1000
        return self.command("set_cookie", payload)

    def remove_cookie(self, name: str) -> Any:
        return self.command("remove_cookie", name)

    def clear_cookies(self) -> Any:
        return self.command("clear_cookies")

    def set_cookies_enabled(self, flag: Any) -> Any:
        return self.command("cookies_enabled", bool(flag))

    # ── session state (replayed after restart) ───────────────────────────────

    def set_debug(self, value: Any) -> Any:
        self.channel.session_config = replace(self.channel.session_config, debug=bool(value))
        return self.command("set_debug", bool(value))

    def set_js_errors(self, value: Any) -> Any:
        self.channel.session_config = replace(self.channel.session_config, js_errors=bool(value))
        return self.command("set_js_errors", bool(value))

    def set_extensions(self, names: Any) -> None:
        if names is None:
            names = ()
        elif isinstance(names, str):
            names = (names,)
        names = tuple(names)
        self.channel.session_config = replace(self.channel.session_config, extensions=names)
        for name in names:
            self.command("add_extension", name)

    def set_page_settings(self, settings: dict[str, Any]) -> Any:
        return self.command("set_page_settings", settings)

    # ── modals ───────────────────────────────────────────────────────────────

    def accept_confirm(self) -> Any:
        return self.command("set_confirm_process", True)

    def dismiss_confirm(self) -> Any:
        return self.command("set_confirm_process", False)

    def accept_prompt(self, response: str | None = None) -> Any:
        # False tells the engine to use the prompt's default value.
        return self.command("set_prompt_response", response or False)

    def dismiss_prompt(self) -> Any:
        return self.command("set_prompt_response", None)

    def modal_message(self) -> str | None:
        return self.command("modal_message")


__all__ = ["Session"]
