"""Completion notification policy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Protocol

if TYPE_CHECKING:
    from photocue.photo import Photo

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Dream fulfilled!"
NOTIFICATION_BODY = "All runs have finished."


class Notifier(Protocol):
    """Delivers desktop notifications. Fire-and-forget."""

    def notify(
        self,
        title: str,
        body: str,
        icon: str | None = None,
        on_click: Callable[[], None] | None = None,
    ) -> None:
        ...


class Surface(Protocol):
    """The window or view the user interacts with."""

    def is_minimized(self) -> bool:
        ...

    def focus(self) -> None:
        ...

    def show_results(self, photo_id: str) -> None:
        ...


def send_completion_notification(
    photo: Photo,
    notifier: Notifier | None,
    surface: Surface | None,
) -> bool:
    """
    Tell the user a photo finished, if they asked for it and aren't looking.

    Errors from the notifier or surface are logged and swallowed.

    Returns:
        True if a notification was sent.
    """
    if not photo.settings.notify_all_runs:
        return False

    if notifier is None or surface is None:
        return False

    try:
        if not surface.is_minimized():
            return False

        def on_click() -> None:
            surface.focus()
            surface.show_results(photo.id)

        notifier.notify(
            NOTIFICATION_TITLE,
            NOTIFICATION_BODY,
            icon=str(photo.file.path),
            on_click=on_click,
        )
    except Exception:
        logger.warning("Unable to send a notification.", exc_info=True)
        return False

    return True
