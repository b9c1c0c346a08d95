from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from concurrent.futures import Future
from contextlib import suppress
import threading
from typing import Any, TypeVar

_T = TypeVar("_T")


class AsyncRuntime:
    """Event loop running on a daemon thread.

    Orchestrator state is only touched from this loop; other threads hand work
    over with ``call_soon`` or ``submit``.
    """

    def __init__(self, name: str = "afterpot-loop") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._worker: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        loop = self._loop
        if loop is None:
            raise RuntimeError("Async runtime is not started.")
        return loop

    @property
    def running(self) -> bool:
        return self._loop is not None

    def start(self) -> None:
        worker = self._worker
        if worker is not None and worker.is_alive():
            return
        self._started.clear()
        worker = threading.Thread(target=self._serve, name=self._name, daemon=True)
        self._worker = worker
        worker.start()
        self._started.wait()

    def stop(self, timeout: float = 2.0) -> None:
        loop = self._loop
        if loop is None:
            return
        # Loop may already be closing on its own thread.
        with suppress(RuntimeError):
            loop.call_soon_threadsafe(loop.stop)
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)

    def call_soon(self, callback: Callable[..., object], *args: object) -> None:
        self.loop.call_soon_threadsafe(callback, *args)

    def submit(self, coro: Coroutine[Any, Any, _T]) -> Future[_T]:
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def _serve(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._started.set()
        try:
            loop.run_forever()
        finally:
            _drain(loop)
            self._loop = None
            self._worker = None


def _drain(loop: asyncio.AbstractEventLoop) -> None:
    leftovers = asyncio.all_tasks(loop)
    for task in leftovers:
        task.cancel()
    if leftovers:
        loop.run_until_complete(asyncio.gather(*leftovers, return_exceptions=True))
    loop.run_until_complete(loop.shutdown_asyncgens())
    loop.close()
