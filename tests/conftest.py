"""Define in-memory stand-ins for the perception and planning backends shared by the tests."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Callable

import pytest

from pick_place_perception.kinematics import JointPositions, Point3D, Pose3D, UnitQuaternion
from pick_place_perception.motion.backend import CartesianPathResult, PlanningBackend, PlanResult
from pick_place_perception.perception.goal_client import (
    FeedbackCallback,
    PerceptionActionClient,
    ResponseCallback,
    ResultCallback,
    ResultCode,
)
from pick_place_perception.perception.grasp_candidate import GraspCandidate, ShapeType


def make_candidate(
    shape_type: ShapeType,
    dims: tuple[float, float, float],
    x: float = 0.0,
    y: float = 0.0,
    z: float = 0.0,
) -> GraspCandidate:
    """Construct a detected object at the given position."""
    pose = Pose3D(Point3D(x, y, z), UnitQuaternion.identity())
    return GraspCandidate(shape_type, dims, pose)


class FakeActionClient(PerceptionActionClient):
    """Records perception goals and lets tests decide when and how they finish."""

    def __init__(
        self,
        server_available: bool = True,
        auto_result: tuple[ResultCode, list[GraspCandidate]] | None = None,
    ) -> None:
        """Initialize the fake server.

        :param server_available: Whether wait_for_server() reports the server as available
        :param auto_result: Result reported immediately after a goal is accepted (None = never)
        """
        self.server_available = server_available
        self.auto_result = auto_result

        self.wait_timeouts_s: list[float] = []
        self.sent_goals: list[bool] = []  # plan_grasps flag of each sent goal
        self.cancelled = False

        self._on_response: ResponseCallback | None = None
        self._on_feedback: FeedbackCallback | None = None
        self._on_result: ResultCallback | None = None

    def wait_for_server(self, timeout_s: float) -> bool:
        self.wait_timeouts_s.append(timeout_s)
        return self.server_available

    def send_goal(
        self,
        plan_grasps: bool,
        on_response: ResponseCallback,
        on_feedback: FeedbackCallback,
        on_result: ResultCallback,
    ) -> None:
        self.sent_goals.append(plan_grasps)
        self._on_response = on_response
        self._on_feedback = on_feedback
        self._on_result = on_result

        if self.auto_result is not None:
            code, objects = self.auto_result
            self.respond(accepted=True)
            self.finish(code, objects)

    def cancel_goal(self) -> None:
        self.cancelled = True

    def respond(self, accepted: bool) -> None:
        """Report whether the server accepted the goal."""
        assert self._on_response is not None, "No goal has been sent."
        self._on_response(accepted)

    def feedback(self, message: Any) -> None:
        """Report a feedback message for the active goal."""
        assert self._on_feedback is not None, "No goal has been sent."
        self._on_feedback(message)

    def finish(self, code: ResultCode, objects: list[GraspCandidate]) -> None:
        """Report the result of the active goal."""
        assert self._on_result is not None, "No goal has been sent."
        self._on_result(code, objects)


class FakeGroupBackend(PlanningBackend):
    """Records every request of one actuation group and returns scripted outcomes."""

    def __init__(
        self,
        group_name: str,
        call_log: list[tuple[str, str, Any]],
        joint_positions: JointPositions | None = None,
        failing_plans: Sequence[str] = (),
        fractions: Sequence[float] = (),
        execute_results: Sequence[bool] = (),
    ) -> None:
        """Initialize the fake backend.

        :param group_name: Name of the actuation group
        :param call_log: Log of (group name, method name, argument) shared between backends
        :param joint_positions: Positions reported as the current state
        :param failing_plans: Planning methods (or named targets) whose plans fail
        :param fractions: Fractions returned by successive Cartesian path requests (default 1.0)
        :param execute_results: Results of successive executions (default True)
        """
        super().__init__(group_name)
        self.call_log = call_log
        self.joint_positions = [] if joint_positions is None else list(joint_positions)
        self.failing_plans = set(failing_plans)
        self._fractions = list(fractions)
        self._execute_results = list(execute_results)
        self._num_trajectories = 0

    def calls(self, method: str) -> list[Any]:
        """Retrieve the arguments of every call of the named method on this group."""
        return [
            arg
            for (group, name, arg) in self.call_log
            if group == self.group_name and name == method
        ]

    def get_current_joint_positions(self, timeout_s: float) -> JointPositions:
        self.call_log.append((self.group_name, "get_current_joint_positions", timeout_s))
        return list(self.joint_positions)

    def plan_to_pose(self, target: Pose3D) -> PlanResult:
        return self._plan("plan_to_pose", target, "plan_to_pose" not in self.failing_plans)

    def plan_to_joint_target(self, target: JointPositions) -> PlanResult:
        success = "plan_to_joint_target" not in self.failing_plans
        return self._plan("plan_to_joint_target", list(target), success)

    def plan_to_named_target(self, name: str) -> PlanResult:
        return self._plan("plan_to_named_target", name, name not in self.failing_plans)

    def execute(self, trajectory: Any) -> bool:
        self.call_log.append((self.group_name, "execute", trajectory))
        return self._execute_results.pop(0) if self._execute_results else True

    def compute_cartesian_path(
        self,
        waypoints: Sequence[Pose3D],
        eef_step: float,
        jump_threshold: float,
    ) -> CartesianPathResult:
        request = {"waypoints": list(waypoints), "eef_step": eef_step, "jump": jump_threshold}
        self.call_log.append((self.group_name, "compute_cartesian_path", request))
        fraction = self._fractions.pop(0) if self._fractions else 1.0
        return CartesianPathResult(trajectory=self._new_trajectory(), fraction=fraction)

    def _plan(self, method: str, target: Any, success: bool) -> PlanResult:
        self.call_log.append((self.group_name, method, target))
        return PlanResult(trajectory=self._new_trajectory(), success=success)

    def _new_trajectory(self) -> str:
        self._num_trajectories += 1
        return f"{self.group_name}-trajectory-{self._num_trajectories}"


@pytest.fixture
def call_log() -> list[tuple[str, str, Any]]:
    """Return an empty log shared by the arm and gripper backends of a test."""
    return []


@pytest.fixture
def make_backends(
    call_log: list[tuple[str, str, Any]],
) -> Callable[..., tuple[FakeGroupBackend, FakeGroupBackend]]:
    """Return a factory constructing fake arm and gripper backends sharing one call log."""

    def factory(**arm_kwargs: Any) -> tuple[FakeGroupBackend, FakeGroupBackend]:
        gripper_kwargs = arm_kwargs.pop("gripper_kwargs", {})
        arm_kwargs.setdefault("joint_positions", [0.1, 0.2, 0.3, 0.4, 0.5, 0.6])
        arm = FakeGroupBackend("ur_manipulator", call_log, **arm_kwargs)
        gripper = FakeGroupBackend("gripper", call_log, **gripper_kwargs)
        return arm, gripper

    return factory
