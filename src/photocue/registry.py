"""Registry of photos and the queue that processes them one by one."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Callable, Iterator

from photocue.models import PhotoStatus
from photocue.photo import Photo

logger = logging.getLogger(__name__)


class PhotoRegistry:
    """
    Owns the photos of a session and processes queued photos in order.

    Queued photos are `waiting` until their turn; only one photo runs at
    a time. Every status change of a registered photo is forwarded to
    the `on_update` callbacks so views can refresh aggregate counts.

    Example:
        registry = PhotoRegistry()

        @registry.on_update
        def refresh(photo, old, new):
            print(registry.counts())

        registry.add(photo)
        registry.enqueue(photo)
        await registry.wait_idle()
    """

    def __init__(self) -> None:
        self._photos: dict[str, Photo] = {}
        self._queue: list[Photo] = []
        self._current: Photo | None = None
        self._worker: asyncio.Task | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._on_update_callbacks: list[Callable] = []

    def __len__(self) -> int:
        return len(self._photos)

    def __iter__(self) -> Iterator[Photo]:
        return iter(list(self._photos.values()))

    def __contains__(self, photo: Photo) -> bool:
        return photo.id in self._photos

    # --- Registration ---

    def add(self, photo: Photo) -> Photo:
        """Register a photo. Adding the same content twice returns the first one."""
        existing = self._photos.get(photo.id)
        if existing is not None:
            return existing

        self._photos[photo.id] = photo
        photo.on_status_changed(self._emit_update)
        return photo

    def get(self, photo_id: str) -> Photo | None:
        return self._photos.get(photo_id)

    def remove(self, photo: Photo) -> None:
        """Forget a photo, cancelling it if it is queued or running."""
        self.dequeue(photo)
        if photo.running:
            photo.cancel(PhotoStatus.CANCELLED)
        self._photos.pop(photo.id, None)

    def on_update(self, func):
        """Register a callback called with (photo, old_status, new_status)."""
        self._on_update_callbacks.append(func)
        return func

    def _emit_update(self, photo: Photo, old: PhotoStatus, new: PhotoStatus) -> None:
        for callback in self._on_update_callbacks:
            try:
                callback(photo, old, new)
            except Exception:
                logger.exception("Update callback %r failed", callback)

    def counts(self) -> dict[PhotoStatus, int]:
        """Number of registered photos per status."""
        tally = Counter(photo.status for photo in self._photos.values())
        return {status: tally.get(status, 0) for status in PhotoStatus}

    # --- Queue ---

    @property
    def queued(self) -> list[Photo]:
        return list(self._queue)

    @property
    def current(self) -> Photo | None:
        return self._current

    def enqueue(self, photo: Photo) -> None:
        """Queue a photo for processing. Must be called from a running event loop."""
        self.add(photo)

        if photo in self._queue or photo is self._current:
            return

        photo.status = PhotoStatus.WAITING
        self._queue.append(photo)
        self._idle.clear()

        if self._worker is None:
            loop = asyncio.get_running_loop()
            self._worker = loop.create_task(self._process())

    def dequeue(self, photo: Photo) -> bool:
        """Take a waiting photo out of the queue."""
        if photo not in self._queue:
            return False

        self._queue.remove(photo)
        photo.status = PhotoStatus.PENDING
        if not self._queue and self._current is None:
            self._idle.set()
        return True

    async def wait_idle(self) -> None:
        """Wait until every queued photo has been processed."""
        await self._idle.wait()

    async def stop(self) -> None:
        """Stop processing, cancelling the running photo."""
        for photo in list(self._queue):
            self.dequeue(photo)

        if self._current is not None and self._current.running:
            self._current.cancel(PhotoStatus.CANCELLED)

        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        self._current = None
        self._idle.set()

    async def _process(self) -> None:
        try:
            while self._queue:
                photo = self._queue.pop(0)
                self._current = photo
                try:
                    logger.debug("Processing %s", photo)
                    await photo.start()
                    if photo.waiting:
                        # Zero executions: start() was a no-op
                        photo.status = PhotoStatus.PENDING
                finally:
                    self._current = None
        finally:
            self._worker = None
            self._idle.set()
