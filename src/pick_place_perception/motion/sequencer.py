"""Define the controller that drives the arm and gripper through the pick-and-place stages."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from pick_place_perception.config import PickPlaceConfig
from pick_place_perception.errors import (
    ExecutionFailure,
    MotionError,
    PartialCartesianPath,
    PlanningFailure,
)
from pick_place_perception.kinematics import Pose3D
from pick_place_perception.logging import log_error, log_info, log_warn
from pick_place_perception.motion.backend import PlanningBackend, PlanResult
from pick_place_perception.motion.stages import STAGE_ORDER, GripperTarget, Stage
from pick_place_perception.motion.waypoints import (
    make_approach_waypoints,
    make_pregrasp_pose,
    make_retreat_waypoints,
    retarget_base_joint,
)


@dataclass
class MotionOutcome:
    """What the sequencer achieved during one stage."""

    planned: bool = False  # Whether the backend found a valid plan for the stage
    executed: bool = False  # Whether the backend reported successful execution
    fraction: float | None = None  # Achieved fraction of a Cartesian path (None otherwise)


@dataclass
class SequenceResult:
    """The record of one run through the pick-and-place stages."""

    pregrasp: Pose3D | None = None  # Pose above the selected object
    trace: list[Stage] = field(default_factory=list)  # Stages attempted, in order
    outcomes: dict[Stage, MotionOutcome] = field(default_factory=dict)
    failed_stage: Stage | None = None
    error: MotionError | None = None

    @property
    def succeeded(self) -> bool:
        """Check whether every stage was completed."""
        return self.error is None and self.trace == list(STAGE_ORDER)

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert the result into a dictionary suitable for YAML export."""
        return {
            "succeeded": self.succeeded,
            "pregrasp": None if self.pregrasp is None else self.pregrasp.to_yaml_dict(),
            "trace": [stage.name for stage in self.trace],
            "outcomes": {
                stage.name: {
                    "planned": outcome.planned,
                    "executed": outcome.executed,
                    "fraction": outcome.fraction,
                }
                for stage, outcome in self.outcomes.items()
            },
            "failed_stage": None if self.failed_stage is None else self.failed_stage.name,
            "error": None if self.error is None else str(self.error),
        }


class MotionSequencer:
    """Runs the fixed sequence of pick-and-place stages, one blocking backend call at a time.

    The first failing stage aborts the remaining stages, leaving the arm and gripper in their
        last commanded state.
    """

    def __init__(
        self,
        arm: PlanningBackend,
        gripper: PlanningBackend,
        config: PickPlaceConfig,
    ) -> None:
        """Initialize the sequencer with the backends of both actuation groups.

        :param arm: Planning backend of the arm
        :param gripper: Planning backend of the gripper
        :param config: Immutable pick-and-place configuration
        """
        self.arm = arm
        self.gripper = gripper
        self.config = config

        self._result = SequenceResult()
        self._pregrasp: Pose3D | None = None
        self._grasp_pose: Pose3D | None = None  # Lowest approach waypoint

    def run(self, target_xy: tuple[float, float]) -> SequenceResult:
        """Pick the object at the given position and place it at the fixed place location.

        :param target_xy: Perceived (x, y) position (meters) of the object to be picked
        :return: Record of the attempted stages and, if one failed, which one and why
        """
        self._result = SequenceResult()
        self._pregrasp = make_pregrasp_pose(target_xy[0], target_xy[1], self.config)
        self._result.pregrasp = self._pregrasp
        self._grasp_pose = None

        stage_methods = {
            Stage.PREGRASP: self._move_to_pregrasp,
            Stage.OPEN_GRIPPER: lambda: self._move_gripper(Stage.OPEN_GRIPPER, GripperTarget.OPEN),
            Stage.APPROACH: self._approach,
            Stage.CLOSE_GRIPPER: lambda: self._move_gripper(
                Stage.CLOSE_GRIPPER, GripperTarget.CLOSE
            ),
            Stage.RETREAT: self._retreat,
            Stage.REPOSITION: self._reposition,
            Stage.RELEASE: lambda: self._move_gripper(Stage.RELEASE, GripperTarget.OPEN),
        }

        for stage in STAGE_ORDER:
            log_info(f"Starting stage {stage.name}.")
            self._result.trace.append(stage)
            self._result.outcomes[stage] = MotionOutcome()

            try:
                stage_methods[stage]()
            except MotionError as error:
                log_error(f"Aborting the pick-and-place sequence: {error}")
                self._result.failed_stage = stage
                self._result.error = error
                break

        if self._result.succeeded:
            log_info("Pick-and-place sequence completed.")
        return self._result

    def _move_to_pregrasp(self) -> None:
        """Move the arm above the object."""
        assert self._pregrasp is not None
        position = self._pregrasp.position
        log_info(f"Pregrasp position: ({position.x:.4f}, {position.y:.4f}, {position.z:.4f}).")

        plan = self.arm.plan_to_pose(self._pregrasp)
        self._execute_plan(Stage.PREGRASP, self.arm, plan)

    def _move_gripper(self, stage: Stage, target: GripperTarget) -> None:
        """Move the gripper to one of its named configurations."""
        log_info(f"Moving gripper to '{target.value}'.")
        plan = self.gripper.plan_to_named_target(target.value)
        self._execute_plan(stage, self.gripper, plan)

    def _approach(self) -> None:
        """Lower the gripper around the object along a straight line."""
        assert self._pregrasp is not None
        waypoints = make_approach_waypoints(self._pregrasp, self.config)
        self._grasp_pose = waypoints[-1]
        self._follow_cartesian_path(Stage.APPROACH, waypoints)

    def _retreat(self) -> None:
        """Lift the grasped object back along the approach line."""
        assert self._grasp_pose is not None
        waypoints = make_retreat_waypoints(self._grasp_pose, self.config)
        self._follow_cartesian_path(Stage.RETREAT, waypoints)

    def _reposition(self) -> None:
        """Rotate the arm's base joint to carry the object to the place location."""
        positions = self.arm.get_current_joint_positions(self.config.state_timeout_s)
        if len(positions) <= self.config.place_joint_index:
            message = f"Current positions of group '{self.arm.group_name}' are unavailable."
            raise PlanningFailure(Stage.REPOSITION, message)

        retarget_base_joint(
            positions,
            self.config.place_joint_angle_rad,
            joint_index=self.config.place_joint_index,
        )
        log_info(f"Rotating arm to joint positions: {positions}")

        plan = self.arm.plan_to_joint_target(positions)
        self._execute_plan(Stage.REPOSITION, self.arm, plan)

    def _execute_plan(self, stage: Stage, backend: PlanningBackend, plan: PlanResult) -> None:
        """Execute a planned trajectory, or fail the stage if planning failed.

        :raises: PlanningFailure, if planning failed (and execution is gated on planning)
        :raises: ExecutionFailure, if the backend reports that execution failed
        """
        outcome = self._result.outcomes[stage]
        outcome.planned = plan.success

        if not plan.success:
            if not self.config.execute_on_plan_failure:
                message = f"No valid plan found for group '{backend.group_name}'."
                raise PlanningFailure(stage, message)
            log_warn(f"[{stage.name}] Planning failed; executing the returned trajectory anyway.")

        outcome.executed = backend.execute(plan.trajectory)
        if not outcome.executed:
            message = f"Execution failed for group '{backend.group_name}'."
            raise ExecutionFailure(stage, message)

    def _follow_cartesian_path(self, stage: Stage, waypoints: Sequence[Pose3D]) -> None:
        """Compute and execute a Cartesian path of the arm through the given waypoints.

        :raises: PartialCartesianPath, if too little of the path could be computed (and execution
            is gated on planning)
        :raises: ExecutionFailure, if the backend reports that execution failed
        """
        path = self.arm.compute_cartesian_path(
            waypoints,
            eef_step=self.config.cartesian_step,
            jump_threshold=self.config.jump_threshold,
        )

        outcome = self._result.outcomes[stage]
        outcome.fraction = path.fraction
        outcome.planned = path.fraction >= self.config.min_cartesian_fraction
        log_info(f"[{stage.name}] Cartesian path computed ({path.fraction:.1%} achieved).")

        if not outcome.planned:
            if not self.config.execute_on_plan_failure:
                raise PartialCartesianPath(stage, path.fraction, self.config.min_cartesian_fraction)
            log_warn(f"[{stage.name}] Path below the accepted fraction; executing it anyway.")
        elif path.fraction < 1.0:
            log_warn(f"[{stage.name}] Executing a partial Cartesian path ({path.fraction:.1%}).")

        outcome.executed = self.arm.execute(path.trajectory)
        if not outcome.executed:
            raise ExecutionFailure(stage, f"Execution failed for group '{self.arm.group_name}'.")
