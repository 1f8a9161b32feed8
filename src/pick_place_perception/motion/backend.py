"""Define the interface through which the sequencer commands one actuation group."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pick_place_perception.kinematics import JointPositions, Pose3D


@dataclass
class PlanResult:
    """A trajectory computed by the planning backend, with its success flag."""

    trajectory: Any  # Backend-specific trajectory, opaque to the sequencer
    success: bool


@dataclass
class CartesianPathResult:
    """A trajectory following a sequence of waypoints, possibly only part of the way."""

    trajectory: Any  # Backend-specific trajectory, opaque to the sequencer
    fraction: float  # Fraction of the requested path covered by the trajectory, in [0, 1]


class PlanningBackend(ABC):
    """Plans and executes motions of one actuation group (e.g., an arm or a gripper).

    Every method blocks until the backend finishes the requested operation.
    """

    def __init__(self, group_name: str) -> None:
        """Initialize the backend for the named actuation group.

        :param group_name: Name of the actuation group (e.g., "ur_manipulator")
        """
        self.group_name = group_name

    @abstractmethod
    def get_current_joint_positions(self, timeout_s: float) -> JointPositions:
        """Read the current positions of the group's joints.

        :param timeout_s: Maximum duration (seconds) to wait for the current robot state
        :return: Ordered positions of the group's joints
        """

    @abstractmethod
    def plan_to_pose(self, target: Pose3D) -> PlanResult:
        """Plan a motion moving the group's end-effector to the target pose."""

    @abstractmethod
    def plan_to_joint_target(self, target: JointPositions) -> PlanResult:
        """Plan a motion moving the group's joints to the target positions."""

    @abstractmethod
    def plan_to_named_target(self, name: str) -> PlanResult:
        """Plan a motion moving the group to a named configuration (e.g., "gripper_open")."""

    @abstractmethod
    def execute(self, trajectory: Any) -> bool:
        """Execute a trajectory computed by this backend.

        :param trajectory: Trajectory returned by one of the planning methods
        :return: True if execution succeeded, else False
        """

    @abstractmethod
    def compute_cartesian_path(
        self,
        waypoints: Sequence[Pose3D],
        eef_step: float,
        jump_threshold: float,
    ) -> CartesianPathResult:
        """Compute a trajectory moving the end-effector through the waypoints, in order.

        :param waypoints: Poses the end-effector passes through
        :param eef_step: Maximum end-effector distance (meters) between interpolated points
        :param jump_threshold: Joint-space jump threshold passed to the path planner
        :return: Computed trajectory and the fraction of the path it covers
        """
