"""Host-side registration model for cache agents.

Tracks the installing, waiting and active agent for one scope and the agent
controlling the page, and fires the events a page observes: ``updatefound``
when a new agent starts installing and ``controllerchange`` when a different
agent takes control.
"""

import logging
from collections.abc import Callable

from .agent import CacheAgent
from .models import WorkerState

logger = logging.getLogger(__name__)

UPDATE_FOUND = "updatefound"
CONTROLLER_CHANGE = "controllerchange"


class Registration:
    """Installing/waiting/active slots for a single scope."""

    def __init__(
        self,
        scope: str = "/",
        update_source: Callable[[], CacheAgent | None] | None = None,
    ) -> None:
        """Initialize an empty registration.

        Args:
            scope: URL scope the registration controls.
            update_source: Returns the latest agent build when polled, or None.
        """
        self.scope = scope
        self.installing: CacheAgent | None = None
        self.waiting: CacheAgent | None = None
        self.active: CacheAgent | None = None
        self.controller: CacheAgent | None = None
        self._update_source = update_source
        self._listeners: dict[str, list[Callable[[], None]]] = {
            UPDATE_FOUND: [],
            CONTROLLER_CHANGE: [],
        }

    def add_listener(self, event: str, callback: Callable[[], None]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown registration event: {event}")
        self._listeners[event].append(callback)

    def _fire(self, event: str) -> None:
        for callback in list(self._listeners[event]):
            callback()

    def register(self, agent: CacheAgent) -> bool:
        """Register an agent, installing it as a first install or as an update.

        Returns:
            True if the agent installed successfully.
        """
        if self.active is None:
            logger.info("Registering first agent %s for %s", agent.cache_name, self.scope)
        return self.install_update(agent)

    def install_update(self, agent: CacheAgent) -> bool:
        """Install a new agent next to the active one.

        The agent waits until it asks to skip waiting, or activates right away
        when nothing is active yet.
        """
        if self.installing is not None:
            logger.debug("Install of %s already in progress", self.installing.cache_name)
            return False

        agent.add_skip_waiting_listener(self._on_skip_waiting)
        self.installing = agent
        self._fire(UPDATE_FOUND)

        if not agent.install():
            self.installing = None
            return False

        self.installing = None
        if self.waiting is not None and self.waiting is not agent:
            self.waiting.mark_redundant()
        self.waiting = agent

        if self.active is None or agent.skip_waiting_requested:
            self._activate_waiting()
        return True

    def _on_skip_waiting(self, agent: CacheAgent) -> None:
        # Install requests skip-waiting before it finishes; install_update activates then.
        if agent is self.waiting and agent.worker_state == WorkerState.INSTALLED:
            self._activate_waiting()

    def _activate_waiting(self) -> None:
        agent = self.waiting
        if agent is None:
            return

        previous = self.active
        self.waiting = None
        self.active = agent
        if previous is not None:
            previous.mark_redundant()

        agent.activate()
        if agent.clients_claimed and self.controller is not agent:
            self.controller = agent
            logger.info("Agent %s now controls %s", agent.cache_name, self.scope)
            self._fire(CONTROLLER_CHANGE)

    def update(self) -> bool:
        """Check the update source for a newer agent and install it.

        Returns:
            True if a new agent was installed.
        """
        if self._update_source is None:
            return False

        candidate = self._update_source()
        if candidate is None:
            return False

        known = {a.cache_name for a in (self.active, self.waiting, self.installing) if a is not None}
        if candidate.cache_name in known:
            return False

        logger.info("Found new agent version %s", candidate.cache_name)
        return self.install_update(candidate)
