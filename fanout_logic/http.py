from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import json
from typing import Awaitable, Callable, Final, TypeAlias
from urllib.parse import parse_qsl, urlencode, urlsplit

import aiohttp

DEFAULT_TIMEOUT_SECONDS: Final[float] = 10.0
USER_AGENT: Final[str] = "Mozilla/5.0 (X11; Linux x86_64) afterpot"
_HIDDEN_QUERY_KEYS: Final[frozenset[str]] = frozenset({"q"})
_SECRET_QUERY_KEYS: Final[frozenset[str]] = frozenset({"key"})

JsonValue: TypeAlias = (
    dict[str, "JsonValue"] | list["JsonValue"] | str | int | float | bool | None
)
AsyncFetcher = Callable[[str], Awaitable[str]]
AsyncPoster = Callable[[str, JsonValue], Awaitable[str]]


class FetchError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FetchTimeoutError(FetchError):
    pass


class FetchStatusError(FetchError):
    """Non-2xx response; ``body`` keeps the raw payload for diagnostics."""

    def __init__(self, message: str, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _host_timeouts() -> dict[str, float]:
    return {}


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Per-request time budget.

    A URL containing one of ``by_pattern`` wins over its host entry in
    ``by_host``; anything else gets ``default``. Non-positive entries are
    ignored.
    """

    default: float = DEFAULT_TIMEOUT_SECONDS
    by_host: dict[str, float] = field(default_factory=_host_timeouts)
    by_pattern: tuple[tuple[str, float], ...] = ()

    def for_url(self, url: str) -> float:
        for marker, seconds in self.by_pattern:
            if marker and seconds > 0 and marker in url:
                return seconds
        host = (urlsplit(url).hostname or "").lower()
        seconds = self.by_host.get(host, 0.0)
        if seconds > 0:
            return seconds
        return self.default


async def fetch_text_async(
    url: str,
    session: aiohttp.ClientSession,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> str:
    return await _send("GET", url, session, timeout)


async def post_json_async(
    url: str,
    payload: JsonValue,
    session: aiohttp.ClientSession,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> str:
    body = json.dumps(payload, ensure_ascii=False)
    return await _send("POST", url, session, timeout, body=body)


def build_async_fetcher(
    session: aiohttp.ClientSession,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    *,
    timeouts_by_host: dict[str, float] | None = None,
    timeouts_by_pattern: tuple[tuple[str, float], ...] | None = None,
) -> AsyncFetcher:
    """GET fetcher; concurrent calls for the same URL share one request."""
    policy = TimeoutPolicy(
        default=timeout,
        by_host=dict(timeouts_by_host or {}),
        by_pattern=timeouts_by_pattern or (),
    )
    shared: dict[str, asyncio.Task[str]] = {}

    async def fetch(url: str) -> str:
        key = normalize_url_key(url)
        running = shared.get(key)
        if running is None:
            running = asyncio.create_task(
                fetch_text_async(url, session, policy.for_url(url))
            )
            shared[key] = running
            running.add_done_callback(lambda done: _forget(shared, key, done))
        return await running

    return fetch


def build_async_poster(
    session: aiohttp.ClientSession,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    *,
    timeouts_by_host: dict[str, float] | None = None,
) -> AsyncPoster:
    policy = TimeoutPolicy(default=timeout, by_host=dict(timeouts_by_host or {}))

    async def post(url: str, payload: JsonValue) -> str:
        return await post_json_async(url, payload, session, policy.for_url(url))

    return post


def normalize_url_key(url: str) -> str:
    parts = urlsplit(url)
    netloc = (parts.hostname or "").lower()
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    query = urlencode(sorted(parse_qsl(parts.query, keep_blank_values=True)))
    return f"{netloc}{parts.path}?{query}" if query else f"{netloc}{parts.path}"


def display_url(url: str) -> str:
    """URL safe for logs: no translated text, no API key."""
    parts = urlsplit(url)
    visible: list[tuple[str, str]] = []
    for name, value in parse_qsl(parts.query, keep_blank_values=True):
        if name in _HIDDEN_QUERY_KEYS:
            continue
        visible.append((name, "***" if name in _SECRET_QUERY_KEYS else value))
    netloc = (parts.hostname or "").lower()
    query = urlencode(visible)
    return f"{netloc}{parts.path}?{query}" if query else f"{netloc}{parts.path}"


async def _send(
    method: str,
    url: str,
    session: aiohttp.ClientSession,
    timeout: float,
    *,
    body: str | None = None,
) -> str:
    label = display_url(url)
    headers = {"User-Agent": USER_AGENT}
    if body is not None:
        headers["Content-Type"] = "application/json"
    try:
        async with session.request(
            method,
            url,
            data=body,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            text = await response.text(errors="replace")
            if not 200 <= response.status < 300:
                raise FetchStatusError(
                    f"{method} {label} returned HTTP {response.status}",
                    status_code=response.status,
                    body=text,
                )
            return text
    except FetchError:
        raise
    except asyncio.TimeoutError as exc:
        raise FetchTimeoutError(f"{method} {label} timed out after {timeout}s") from exc
    except aiohttp.ClientError as exc:
        raise FetchError(f"{method} {label} failed: {exc}") from exc


def _forget(
    shared: dict[str, asyncio.Task[str]], key: str, done: asyncio.Task[str]
) -> None:
    if shared.get(key) is done:
        del shared[key]
