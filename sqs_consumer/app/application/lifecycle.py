"""
Consumer lifecycle: IDLE -> RUNNING -> STOPPING -> STOPPED (-> RUNNING on restart).

Each consumer owns its controller, so stopping one consumer never touches
another. stop() may be called from a signal handler or another thread; the
stop event is always set on the loop that started the consumer, and at most
once per run.
"""
from __future__ import annotations

import asyncio
import threading

from sqs_consumer.app.constants import ConsumerState


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class LifecycleController:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = ConsumerState.IDLE
        self._stop_event: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> ConsumerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is ConsumerState.RUNNING

    def start(self) -> asyncio.Event:
        """Enter RUNNING with a fresh stop event. Must be awaited from inside a running loop."""
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._state in (ConsumerState.RUNNING, ConsumerState.STOPPING):
                raise RuntimeError(f"consumer already started (state={self._state.value})")
            self._stop_event = asyncio.Event()
            self._loop = loop
            self._state = ConsumerState.RUNNING
            return self._stop_event

    def stop(self) -> bool:
        """Trigger the stop event. Returns False when there was nothing to stop."""
        with self._lock:
            if self._state is not ConsumerState.RUNNING:
                return False
            self._state = ConsumerState.STOPPING
            event, loop = self._stop_event, self._loop
        if event is None or loop is None:
            return False
        if _running_loop() is loop:
            event.set()
        elif not loop.is_closed():
            loop.call_soon_threadsafe(event.set)
        return True

    def finish(self) -> None:
        with self._lock:
            self._state = ConsumerState.STOPPED

    def should_stop(self, cancel_event: asyncio.Event | None = None) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        event = self._stop_event
        return event is not None and event.is_set()
