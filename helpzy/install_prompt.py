"""Custom "install the app" prompt shown instead of the browser's mini-infobar."""

import logging
import time
from collections.abc import Callable, MutableMapping
from typing import Any

logger = logging.getLogger(__name__)

# Storage key holding the dismissal time in milliseconds since the epoch.
DISMISSED_KEY = "installPromptDismissed"

# A dismissed prompt stays hidden for seven days.
DISMISS_SUPPRESSION_MS = 7 * 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class InstallPrompt:
    """Stashes the deferred install event and decides when to offer it.

    The event object must provide ``prevent_default()``, ``prompt()`` and a
    ``user_choice`` mapping with an ``outcome`` key once prompted.
    """

    def __init__(
        self,
        storage: MutableMapping[str, str],
        now: Callable[[], int] = _now_ms,
    ) -> None:
        """Initialize the prompt.

        Args:
            storage: Persistent key/value store (the page's local storage).
            now: Returns the current time in milliseconds.
        """
        self._storage = storage
        self._now = now
        self._deferred: Any = None
        self._shown = False

    @property
    def visible(self) -> bool:
        return self._shown and self._deferred is not None and not self.recently_dismissed()

    def recently_dismissed(self) -> bool:
        """Return True if the prompt was dismissed within the suppression window."""
        raw = self._storage.get(DISMISSED_KEY)
        if raw is None:
            return False
        try:
            dismissed_at = int(raw)
        except ValueError:
            return False
        return self._now() - dismissed_at < DISMISS_SUPPRESSION_MS

    def on_before_install_prompt(self, event: Any) -> None:
        """Keep the browser from prompting and stash the event for later."""
        event.prevent_default()
        self._deferred = event
        self._shown = True

    def accept(self) -> str | None:
        """Show the browser's install dialog.

        Returns:
            The user's choice ("accepted" or "dismissed"), or None without a stashed event.
        """
        if self._deferred is None:
            return None

        self._deferred.prompt()
        outcome = self._deferred.user_choice.get("outcome")
        logger.info("User response to the install prompt: %s", outcome)
        self._deferred = None
        self._shown = False
        return outcome

    def dismiss(self) -> None:
        """Hide the prompt and remember when it was dismissed."""
        self._shown = False
        self._storage[DISMISSED_KEY] = str(self._now())
