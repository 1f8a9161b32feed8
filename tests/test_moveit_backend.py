"""Define unit tests for the MoveIt planning backend (skipped outside a ROS environment)."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

pytest.importorskip("rospy")
pytest.importorskip("moveit_commander")
geometry_msgs = pytest.importorskip("geometry_msgs.msg")

from pick_place_perception.config import PickPlaceConfig  # noqa: E402
from pick_place_perception.motion import moveit_backend  # noqa: E402
from pick_place_perception.motion.waypoints import make_pregrasp_pose  # noqa: E402


class RecordingMoveGroup:
    """Stands in for moveit_commander.MoveGroupCommander, recording each target it receives."""

    def __init__(self, group_name: str, wait_for_servers: float = 5.0) -> None:
        self.group_name = group_name
        self.pose_targets: list[Any] = []

    def set_start_state_to_current_state(self) -> None:
        pass

    def set_pose_target(self, target: Any) -> None:
        self.pose_targets.append(target)

    def plan(self) -> tuple[bool, str, float, Any]:
        return (True, "trajectory", 0.1, SimpleNamespace(val=1))

    def clear_pose_targets(self) -> None:
        pass


def test_pose_target_is_given_in_planning_frame(monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify that pose targets are sent unstamped, leaving the frame to the planning group."""
    # Arrange: A backend wrapping a recording move group
    monkeypatch.setattr(moveit_backend, "MoveGroupCommander", RecordingMoveGroup)
    backend = moveit_backend.MoveGroupBackend("ur_manipulator")
    pregrasp = make_pregrasp_pose(0.30, -0.10, PickPlaceConfig())

    # Act: Plan to the pregrasp pose
    result = backend.plan_to_pose(pregrasp)

    # Assert: The target is a bare Pose at the pregrasp position
    (target,) = backend._group.pose_targets
    assert result.success
    assert isinstance(target, geometry_msgs.Pose)
    assert not isinstance(target, geometry_msgs.PoseStamped)
    assert (target.position.x, target.position.y, target.position.z) == pytest.approx(
        (0.30, -0.10, 0.26)
    )
