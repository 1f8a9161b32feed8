"""Define the task that chains perception, candidate selection, and the motion sequence."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pick_place_perception.config import PickPlaceConfig
from pick_place_perception.errors import NoCandidateFound, PickPlaceError
from pick_place_perception.logging import log_error, log_info
from pick_place_perception.motion.sequencer import MotionSequencer, SequenceResult
from pick_place_perception.perception.candidate_selector import BoxSizeLimits, select_candidate
from pick_place_perception.perception.goal_client import PerceptionGoalClient, PerceptionResult


@dataclass
class PickPlaceReport:
    """The outcome of one perceive-then-manipulate cycle."""

    perception: PerceptionResult = field(default_factory=PerceptionResult)
    target_xy: tuple[float, float] | None = None  # Position of the selected object
    sequence: SequenceResult | None = None  # None if no motion was attempted
    error: PickPlaceError | None = None  # First error that ended the cycle

    @property
    def succeeded(self) -> bool:
        """Check whether the object was picked and placed."""
        return self.error is None and self.sequence is not None and self.sequence.succeeded

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert the report into a dictionary suitable for YAML export."""
        return {
            "succeeded": self.succeeded,
            "num_detected_objects": len(self.perception.objects),
            "target_xy": None if self.target_xy is None else [float(v) for v in self.target_xy],
            "sequence": None if self.sequence is None else self.sequence.to_yaml_dict(),
            "error": None if self.error is None else f"{type(self.error).__name__}: {self.error}",
        }


class PickPlaceTask:
    """Detects a small box, then picks it up and places it at the fixed place location.

    Perception is requested once per run; the motion sequence runs only if a box is found.
    """

    def __init__(
        self,
        perception: PerceptionGoalClient,
        sequencer: MotionSequencer,
        config: PickPlaceConfig,
    ) -> None:
        """Initialize the task from its collaborators.

        :param perception: Client of the object-detection action server (not yet started)
        :param sequencer: Controller of the arm and gripper
        :param config: Immutable pick-and-place configuration
        """
        self.perception = perception
        self.sequencer = sequencer
        self.config = config

    def run(self, max_perception_wait_s: float | None = None) -> PickPlaceReport:
        """Run one pick-and-place cycle.

        :param max_perception_wait_s: Duration (seconds) after which perception is abandoned
        :return: Report describing how far the cycle progressed
        """
        report = PickPlaceReport()

        self.perception.schedule_goal(self.config.goal_delay_s)
        report.perception = self.perception.wait_until_done(max_wait_s=max_perception_wait_s)

        if report.perception.failure is not None:
            log_error(f"Perception failed; no motion attempted: {report.perception.failure}")
            report.error = report.perception.failure
            return report

        limits = BoxSizeLimits.from_config(self.config)
        report.target_xy = select_candidate(report.perception.objects, limits)
        if report.target_xy is None:
            report.error = NoCandidateFound(
                f"No box among {len(report.perception.objects)} objects fits within {limits}."
            )
            log_error(str(report.error))
            return report

        x, y = report.target_xy
        log_info(f"X Pose of the cube: {x:f}")
        log_info(f"Y Pose of the cube: {y:f}")

        report.sequence = self.sequencer.run(report.target_xy)
        report.error = report.sequence.error
        return report
