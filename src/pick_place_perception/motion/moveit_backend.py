"""Define a planning backend that commands one MoveIt planning group through moveit_commander."""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

import rospy
from moveit_commander import MoveGroupCommander

from pick_place_perception.kinematics import JointPositions, Pose3D
from pick_place_perception.kinematics_ros import pose_to_msg
from pick_place_perception.logging import log_debug, log_error
from pick_place_perception.motion.backend import CartesianPathResult, PlanningBackend, PlanResult


class MoveGroupBackend(PlanningBackend):
    """Plans and executes motions of one MoveIt planning group.

    moveit_commander services its ROS communication on background threads; every method here
        blocks until MoveIt finishes the request.
    """

    state_poll_s = 0.1  # Period (seconds) between reads of the current robot state

    def __init__(self, group_name: str, wait_for_servers_s: float = 5.0) -> None:
        """Connect to the MoveIt planning group (requires an initialized ROS node).

        :param group_name: Name of the planning group (e.g., "ur_manipulator")
        :param wait_for_servers_s: Maximum duration (seconds) to wait for MoveIt's servers
        """
        super().__init__(group_name)
        self._group = MoveGroupCommander(group_name, wait_for_servers=wait_for_servers_s)

    def get_current_joint_positions(self, timeout_s: float) -> JointPositions:
        """Read the current joint positions, waiting up to the timeout for a robot state.

        :return: Ordered joint positions (empty if no robot state arrived in time)
        """
        deadline_s = time.monotonic() + timeout_s
        positions = list(self._group.get_current_joint_values())
        while not positions and time.monotonic() < deadline_s:
            rospy.sleep(self.state_poll_s)
            positions = list(self._group.get_current_joint_values())

        if not positions:
            log_error(f"[{self.group_name}] No robot state received within {timeout_s} seconds.")
        return positions

    def plan_to_pose(self, target: Pose3D) -> PlanResult:
        """Plan a motion moving the end-effector to the target pose in the planning frame."""
        self._group.set_start_state_to_current_state()
        self._group.set_pose_target(pose_to_msg(target))
        return self._plan()

    def plan_to_joint_target(self, target: JointPositions) -> PlanResult:
        """Plan a motion moving the joints to the target positions."""
        self._group.set_start_state_to_current_state()
        self._group.set_joint_value_target(list(target))
        return self._plan()

    def plan_to_named_target(self, name: str) -> PlanResult:
        """Plan a motion moving the group to a configuration named in the SRDF."""
        self._group.set_start_state_to_current_state()
        self._group.set_named_target(name)
        return self._plan()

    def execute(self, trajectory: Any) -> bool:
        """Execute a trajectory and wait for it to finish."""
        success = bool(self._group.execute(trajectory, wait=True))
        self._group.stop()  # Ensure that there is no residual movement
        return success

    def compute_cartesian_path(
        self,
        waypoints: Sequence[Pose3D],
        eef_step: float,
        jump_threshold: float,
    ) -> CartesianPathResult:
        """Compute a trajectory moving the end-effector through the waypoints, in order."""
        self._group.set_start_state_to_current_state()
        pose_msgs = [pose_to_msg(pose) for pose in waypoints]
        trajectory, fraction = self._group.compute_cartesian_path(
            pose_msgs, eef_step, jump_threshold
        )
        return CartesianPathResult(trajectory=trajectory, fraction=float(fraction))

    def _plan(self) -> PlanResult:
        """Plan toward the group's current target, then clear the target."""
        success, trajectory, planning_time_s, error_code = self._group.plan()
        self._group.clear_pose_targets()

        if not success:
            log_error(f"[{self.group_name}] Planning failed with error code {error_code.val}.")
        else:
            log_debug(f"[{self.group_name}] Planning took {planning_time_s:.3f} seconds.")

        return PlanResult(trajectory=trajectory, success=bool(success))
