"""Update lifecycle coordinator for the page side of the cache agent.

Surfaces an "update available" state when a replacement agent has installed
while another agent already controls the page, forwards the user's
acceptance as a SKIP_WAITING message, and reloads the page exactly once when
control changes hands.

State machine:
    IDLE -> UPDATE_AVAILABLE -> MESSAGE_SENT -> RELOADING (terminal)
    UPDATE_AVAILABLE -> IDLE on dismissal
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .models import SKIP_WAITING, WorkerState
from .registration import CONTROLLER_CHANGE, UPDATE_FOUND

logger = logging.getLogger(__name__)

# Seconds between registration update checks.
DEFAULT_POLL_INTERVAL = 60


class UpdateState(Enum):
    """What the page shows about agent updates."""

    IDLE = "idle"
    UPDATE_AVAILABLE = "update-available"
    MESSAGE_SENT = "message-sent"
    RELOADING = "reloading"


@dataclass
class CoordinatorState:
    """Mutable state owned by one coordinator instance."""

    registration: Any = None
    has_reloaded: bool = False
    update_state: UpdateState = UpdateState.IDLE


class UpdateCoordinator:
    """Bridges agent lifecycle events to a user-visible update affordance."""

    def __init__(
        self,
        reload: Callable[[], None],
        on_change: Callable[[UpdateState], None] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            reload: Performs a full page reload.
            on_change: Called with the new state after every transition.
        """
        self.state = CoordinatorState()
        self._reload = reload
        self._on_change = on_change

    @property
    def update_state(self) -> UpdateState:
        return self.state.update_state

    @property
    def update_available(self) -> bool:
        return self.state.update_state == UpdateState.UPDATE_AVAILABLE

    def _transition(self, new_state: UpdateState) -> None:
        if new_state == self.state.update_state:
            return
        logger.debug("Update state: %s -> %s", self.state.update_state.value, new_state.value)
        self.state.update_state = new_state
        if self._on_change is not None:
            self._on_change(new_state)

    def _has_controller(self) -> bool:
        registration = self.state.registration
        return registration is not None and registration.controller is not None

    def attach(self, registration: Any) -> None:
        """Take a ready registration and subscribe to its lifecycle events."""
        registration.add_listener(UPDATE_FOUND, self.on_update_found)
        registration.add_listener(CONTROLLER_CHANGE, self.on_controller_change)
        self.on_ready(registration)

    def on_ready(self, registration: Any) -> None:
        """Handle the registration becoming ready.

        A replacement already waiting from an earlier visit is surfaced at once.
        """
        self.state.registration = registration
        if registration.waiting is not None and self.state.update_state == UpdateState.IDLE:
            logger.info("Update already waiting")
            self._transition(UpdateState.UPDATE_AVAILABLE)

    def on_update_found(self) -> None:
        """Watch the newly installing agent for the installed state."""
        registration = self.state.registration
        if registration is None or registration.installing is None:
            return

        registration.installing.add_state_listener(
            lambda worker: self.on_install_state_change(worker.worker_state, self._has_controller())
        )

    def on_install_state_change(self, state: WorkerState, has_controller: bool) -> None:
        """Surface an update when an upgrade, not a first install, has installed.

        Args:
            state: New state of the installing agent.
            has_controller: Whether another agent controls the page right now.
        """
        if state != WorkerState.INSTALLED:
            return
        if not has_controller:
            logger.info("Content is cached for offline use")
            return
        if self.state.update_state == UpdateState.IDLE:
            logger.info("New version available")
            self._transition(UpdateState.UPDATE_AVAILABLE)

    def accept(self) -> bool:
        """Tell the waiting agent to activate.

        Returns:
            True if a SKIP_WAITING message was sent.
        """
        registration = self.state.registration
        if registration is None or registration.waiting is None:
            logger.debug("No waiting agent to activate")
            return False

        # controllerchange can fire before handle_message returns.
        self._transition(UpdateState.MESSAGE_SENT)
        registration.waiting.handle_message({"type": SKIP_WAITING})
        return True

    def dismiss(self) -> None:
        """Hide the affordance; the waiting agent stays waiting."""
        if self.state.update_state == UpdateState.UPDATE_AVAILABLE:
            self._transition(UpdateState.IDLE)

    def on_controller_change(self) -> None:
        """Reload once when a new agent takes control."""
        if self.state.has_reloaded:
            return
        self.state.has_reloaded = True
        logger.info("New version activated, reloading")
        self._transition(UpdateState.RELOADING)
        self._reload()

    def poll(self) -> None:
        """Ask the registration to check for a new agent version."""
        registration = self.state.registration
        if registration is None:
            return
        try:
            registration.update()
        except Exception as e:
            logger.warning("Update check failed: %s", e)


class UpdatePoller:
    """Polls the coordinator's registration for updates on a fixed interval."""

    def __init__(self, coordinator: UpdateCoordinator, interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self.coordinator = coordinator
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the polling thread."""
        if self._thread and self._thread.is_alive():
            logger.warning("Update poller already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="update-poller", daemon=True)
        self._thread.start()
        logger.info("Update poller started (interval: %ss)", self.interval)

    def stop(self) -> None:
        """Stop the polling thread."""
        if not self._thread or not self._thread.is_alive():
            return

        self._stop_event.set()
        self._thread.join(timeout=5)
        if self._thread.is_alive():
            logger.warning("Update poller thread did not stop gracefully")
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        # The first check runs one interval after start.
        while not self._stop_event.wait(self.interval):
            self.coordinator.poll()
