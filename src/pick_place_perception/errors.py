"""Define the exceptions raised when a pick-and-place cycle cannot be completed."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pick_place_perception.motion.stages import Stage
    from pick_place_perception.perception.goal_client import ResultCode


class PickPlaceError(Exception):
    """Base class of all errors that terminate a pick-and-place cycle."""


class PerceptionError(PickPlaceError):
    """The perception request finished without producing a list of objects."""


class PerceptionUnreachable(PerceptionError):
    """The perception action server could not be reached within the timeout."""


class PerceptionGoalRejected(PerceptionError):
    """The perception action server rejected the detection goal."""


class PerceptionResultFailure(PerceptionError):
    """The perception goal finished with a result code other than SUCCEEDED."""

    def __init__(self, code: ResultCode) -> None:
        """Initialize the error using the result code reported by the action server.

        :param code: Result code of the finished perception goal
        """
        super().__init__(f"Perception goal finished with result code {code.name}.")
        self.code = code


class NoCandidateFound(PickPlaceError):
    """No detected object satisfies the geometric constraints of a graspable box."""


class MotionError(PickPlaceError):
    """A motion stage failed, aborting all remaining stages."""

    def __init__(self, stage: Stage, message: str) -> None:
        """Initialize the error for the given stage.

        :param stage: Stage of the pick-and-place sequence that failed
        :param message: Description of the failure
        """
        super().__init__(f"[{stage.name}] {message}")
        self.stage = stage


class PlanningFailure(MotionError):
    """The planning backend could not find a valid plan for a stage."""


class ExecutionFailure(MotionError):
    """The planning backend reported that executing a stage's trajectory failed."""


class PartialCartesianPath(ExecutionFailure):
    """Only part of a stage's Cartesian path could be computed."""

    def __init__(self, stage: Stage, fraction: float, min_fraction: float) -> None:
        """Initialize the error using the achieved and required path fractions.

        :param stage: Stage whose Cartesian path was incomplete
        :param fraction: Fraction of the requested path that was computed, in [0, 1]
        :param min_fraction: Minimum fraction accepted for execution
        """
        message = f"Cartesian path only {fraction:.1%} complete (requires {min_fraction:.1%})."
        super().__init__(stage, message)
        self.fraction = fraction
        self.min_fraction = min_fraction
