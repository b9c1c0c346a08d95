from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Final

import aiohttp

from fanout_logic.http import (
    AsyncFetcher,
    AsyncPoster,
    build_async_fetcher,
    build_async_poster,
)
from fanout_logic.providers import gemini, google
from fanout_logic.providers.gemini import GeminiTranslation


@dataclass(frozen=True, slots=True)
class ProviderBudget:
    google_timeout_s: float = 10.0
    detection_timeout_s: float = 8.0
    gemini_timeout_s: float = 15.0


_PROVIDER_BUDGET: Final[ProviderBudget] = ProviderBudget()
_PROVIDER_TIMEOUTS_BY_HOST: Final[dict[str, float]] = {
    "translate.google.com": _PROVIDER_BUDGET.google_timeout_s,
    "generativelanguage.googleapis.com": _PROVIDER_BUDGET.gemini_timeout_s,
}
_PROVIDER_TIMEOUTS_BY_PATTERN: Final[tuple[tuple[str, float], ...]] = (
    (google.DETECTION_QUERY_MARKER, _PROVIDER_BUDGET.detection_timeout_s),
)


@dataclass(slots=True)
class HttpBackends:
    """Remote collaborators of the orchestrator sharing one aiohttp session."""

    _session: aiohttp.ClientSession | None = None
    _fetcher: AsyncFetcher | None = None
    _poster: AsyncPoster | None = None
    _session_lock: asyncio.Lock | None = None

    async def detect_language(self, text: str) -> str:
        fetcher, _poster = await self._ensure_clients()
        return await google.detect_language(text, fetcher)

    async def translate_google(
        self, text: str, target_lang: str, source_lang: str
    ) -> str:
        fetcher, _poster = await self._ensure_clients()
        return await google.translate_google(text, target_lang, source_lang, fetcher)

    async def translate_gemini(
        self, text: str, target_language_name: str, api_key: str, model_or_auto: str
    ) -> GeminiTranslation:
        fetcher, poster = await self._ensure_clients()
        return await gemini.translate_gemini(
            text,
            target_language_name,
            api_key,
            model_or_auto,
            fetcher=fetcher,
            poster=poster,
        )

    async def gemini_models(self, api_key: str) -> list[str]:
        fetcher, _poster = await self._ensure_clients()
        return await gemini.list_models(api_key, fetcher)

    async def close(self) -> None:
        if self._session is None:
            return
        await self._session.close()
        self._session = None
        self._fetcher = None
        self._poster = None

    async def _ensure_clients(self) -> tuple[AsyncFetcher, AsyncPoster]:
        if self._fetcher is not None and self._poster is not None:
            return self._fetcher, self._poster
        lock = self._session_lock
        if lock is None:
            lock = asyncio.Lock()
            self._session_lock = lock
        async with lock:
            if self._fetcher is not None and self._poster is not None:
                return self._fetcher, self._poster
            session = aiohttp.ClientSession()
            self._session = session
            self._fetcher = build_async_fetcher(
                session,
                timeouts_by_host=_PROVIDER_TIMEOUTS_BY_HOST,
                timeouts_by_pattern=_PROVIDER_TIMEOUTS_BY_PATTERN,
            )
            self._poster = build_async_poster(
                session,
                timeout=_PROVIDER_BUDGET.gemini_timeout_s,
                timeouts_by_host=_PROVIDER_TIMEOUTS_BY_HOST,
            )
            return self._fetcher, self._poster
