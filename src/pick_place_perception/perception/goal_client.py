"""Define a client managing one asynchronous request to the object-detection action server.

Callbacks from the action server may arrive on any thread. They are posted as events onto a
    single-consumer queue, and every state transition happens on the thread that calls
    PerceptionGoalClient.spin_once().
"""

from __future__ import annotations

import queue
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List

from pick_place_perception.errors import (
    PerceptionError,
    PerceptionGoalRejected,
    PerceptionResultFailure,
    PerceptionUnreachable,
)
from pick_place_perception.logging import log_debug, log_error, log_info, log_warn
from pick_place_perception.perception.grasp_candidate import GraspCandidate


class ResultCode(Enum):
    """Specifies how the action server finished a goal."""

    SUCCEEDED = 1
    ABORTED = 2
    CANCELED = 3
    UNKNOWN = 4


class ClientState(Enum):
    """Specifies the progress of the client's single perception request."""

    IDLE = 1
    WAITING_FOR_SERVER = 2
    GOAL_SENT = 3
    DONE = 4


@dataclass(frozen=True)
class PerceptionResult:
    """The outcome of one perception request."""

    objects: tuple[GraspCandidate, ...] = ()  # Detected objects, in the reported order
    complete: bool = False  # Whether the request has finished (successfully or not)
    failure: PerceptionError | None = None  # Reason the request failed (None on success)

    @property
    def succeeded(self) -> bool:
        """Check whether the request finished with a list of detected objects."""
        return self.complete and self.failure is None


ResponseCallback = Callable[[bool], None]
FeedbackCallback = Callable[[Any], None]
ResultCallback = Callable[[ResultCode, List[GraspCandidate]], None]


class PerceptionActionClient(ABC):
    """An interface to the object-detection action server."""

    @abstractmethod
    def wait_for_server(self, timeout_s: float) -> bool:
        """Wait for the action server to become available.

        :param timeout_s: Maximum duration (seconds) to wait for the server
        :return: True if the server is available, else False
        """

    @abstractmethod
    def send_goal(
        self,
        plan_grasps: bool,
        on_response: ResponseCallback,
        on_feedback: FeedbackCallback,
        on_result: ResultCallback,
    ) -> None:
        """Send a detection goal to the action server without waiting for its result.

        :param plan_grasps: Whether the server should also plan grasps for detected objects
        :param on_response: Called with True if the goal is accepted, False if rejected
        :param on_feedback: Called with each feedback message from the server
        :param on_result: Called once with the result code and detected objects
        """

    @abstractmethod
    def cancel_goal(self) -> None:
        """Request cancellation of the active goal, if any."""


class _EventType(Enum):
    """Specifies the kind of an event posted onto the client's queue."""

    SEND_GOAL = 1
    GOAL_RESPONSE = 2
    FEEDBACK = 3
    RESULT = 4


@dataclass
class _Event:
    """An event to be processed by PerceptionGoalClient.spin_once()."""

    event_type: _EventType
    payload: Any = None


class PerceptionGoalClient:
    """Requests the detected objects from the action server, exactly once."""

    def __init__(self, action_client: PerceptionActionClient, server_timeout_s: float = 10.0):
        """Initialize the client without contacting the action server.

        :param action_client: Interface to the object-detection action server
        :param server_timeout_s: Maximum duration (seconds) to wait for the server (defaults to 10)
        """
        self.server_timeout_s = server_timeout_s

        self._action_client = action_client
        self._events: queue.Queue[_Event] = queue.Queue()
        self._timer: threading.Timer | None = None

        self._state = ClientState.IDLE
        self._goal_accepted: bool | None = None  # None until the server responds to the goal
        self._result = PerceptionResult()

    @property
    def state(self) -> ClientState:
        """Retrieve the current state of the client's request."""
        return self._state

    def is_done(self) -> bool:
        """Check whether the request has finished, without blocking."""
        return self._state == ClientState.DONE

    def get_result(self) -> PerceptionResult:
        """Retrieve the result of the request (empty and incomplete until the request is done)."""
        return self._result

    def schedule_goal(self, delay_s: float) -> None:
        """Arrange for the goal to be sent by spin_once() after the given delay.

        :param delay_s: Delay (seconds) before the goal is sent
        """
        self._cancel_timer()
        self._timer = threading.Timer(delay_s, self._post, args=(_EventType.SEND_GOAL,))
        self._timer.daemon = True
        self._timer.start()

    def send_goal(self) -> None:
        """Wait for the action server and send it a detection goal.

        If the server is unreachable within the timeout, the request finishes with no objects.
        """
        self._cancel_timer()

        if self._state == ClientState.DONE:
            log_warn("Perception request already finished; not sending another goal.")
            return
        if self._state == ClientState.GOAL_SENT:
            log_warn("Perception goal already sent; waiting for its result.")
            return

        self._state = ClientState.WAITING_FOR_SERVER
        if not self._action_client.wait_for_server(self.server_timeout_s):
            log_error("Action server not available after waiting.")
            self._finish(
                failure=PerceptionUnreachable(
                    f"Perception server unreachable after {self.server_timeout_s} seconds."
                )
            )
            return

        log_info("Sending goal")
        self._state = ClientState.GOAL_SENT
        self._action_client.send_goal(
            plan_grasps=False,
            on_response=lambda accepted: self._post(_EventType.GOAL_RESPONSE, accepted),
            on_feedback=lambda feedback: self._post(_EventType.FEEDBACK, feedback),
            on_result=lambda code, objects: self._post(_EventType.RESULT, (code, objects)),
        )

    def spin_once(self, timeout_s: float = 0.0) -> bool:
        """Process at most one pending event.

        :param timeout_s: Maximum duration (seconds) to wait for an event (0 = don't block)
        :return: True if an event was processed, else False
        """
        try:
            if timeout_s > 0.0:
                event = self._events.get(timeout=timeout_s)
            else:
                event = self._events.get_nowait()
        except queue.Empty:
            return False

        self._handle_event(event)
        return True

    def wait_until_done(
        self,
        poll_timeout_s: float = 0.1,
        max_wait_s: float | None = None,
    ) -> PerceptionResult:
        """Process events until the request finishes.

        :param poll_timeout_s: Maximum duration (seconds) of each wait for an event
        :param max_wait_s: Duration (seconds) after which the request is abandoned (None = never)
        :return: Result of the finished request
        """
        if self._state == ClientState.IDLE and self._timer is None and self._events.empty():
            self.send_goal()

        start_time_s = time.monotonic()
        while not self.is_done():
            self.spin_once(poll_timeout_s)

            elapsed_s = time.monotonic() - start_time_s
            if not self.is_done() and max_wait_s is not None and elapsed_s > max_wait_s:
                log_error(f"No perception result after waiting {elapsed_s:.1f} seconds.")
                if self._state == ClientState.GOAL_SENT:
                    self._action_client.cancel_goal()
                    self._finish(failure=PerceptionResultFailure(ResultCode.CANCELED))
                else:
                    self._finish(failure=PerceptionUnreachable("Perception goal was never sent."))

        return self._result

    def _post(self, event_type: _EventType, payload: Any = None) -> None:
        """Post an event onto the queue; safe to call from any thread."""
        self._events.put(_Event(event_type, payload))

    def _cancel_timer(self) -> None:
        """Cancel the pending goal timer, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _handle_event(self, event: _Event) -> None:
        """Update the client's state in response to an event."""
        if event.event_type == _EventType.SEND_GOAL:
            self.send_goal()
        elif event.event_type == _EventType.GOAL_RESPONSE:
            self._handle_goal_response(event.payload)
        elif event.event_type == _EventType.FEEDBACK:
            log_debug("Ignoring feedback...")
        elif event.event_type == _EventType.RESULT:
            code, objects = event.payload
            self._handle_result(code, objects)

    def _handle_goal_response(self, accepted: bool) -> None:
        """Record whether the server accepted the goal; the result arrives separately."""
        self._goal_accepted = accepted
        if accepted:
            log_info("Goal accepted by server, waiting for result")
        else:
            log_error("Goal was rejected by server")

    def _handle_result(self, code: ResultCode, objects: list[GraspCandidate]) -> None:
        """Finish the request using the result reported by the server."""
        if self._state == ClientState.DONE:
            log_debug(f"Ignoring result ({code.name}) of an already finished request.")
            return

        if code == ResultCode.SUCCEEDED:
            log_info(f"Result received with {len(objects)} detected objects.")
            self._finish(objects=tuple(objects))
            return

        if code == ResultCode.ABORTED:
            log_error("Goal was aborted")
        elif code == ResultCode.CANCELED:
            log_error("Goal was canceled")
        else:
            log_error("Unknown result code")

        if self._goal_accepted is False:
            self._finish(failure=PerceptionGoalRejected("Perception goal was rejected."))
        else:
            self._finish(failure=PerceptionResultFailure(code))

    def _finish(
        self,
        objects: tuple[GraspCandidate, ...] = (),
        failure: PerceptionError | None = None,
    ) -> None:
        """Mark the request as finished with the given objects or failure."""
        self._cancel_timer()
        self._state = ClientState.DONE
        self._result = PerceptionResult(objects=objects, complete=True, failure=failure)
