"""Define the immutable configuration shared by the perception and motion components."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Tuple

from pick_place_perception.filesystem.load_from_yaml import load_yaml_into_dict
from pick_place_perception.kinematics import UnitQuaternion
from pick_place_perception.logging import log_error

QuaternionXYZW = Tuple[float, float, float, float]  # Orientation ordered as in ROS messages


@dataclass(frozen=True)
class PickPlaceConfig:
    """Named constants of the pick-and-place cycle (lengths in meters, angles in radians)."""

    # Systematic offset between perceived object positions and the gripper
    calibration_offset_x: float = 0.012079
    calibration_offset_y: float = -0.009217

    approach_height: float = 0.26  # Height of the pregrasp pose above the planning frame
    descend_step: float = 0.04  # Vertical distance between consecutive approach waypoints
    descend_steps: int = 2  # Number of waypoints in the approach and retreat paths

    # Strict upper bounds on the size of a graspable box
    box_max_x: float = 0.05
    box_max_y: float = 0.05
    box_max_z: float = 0.1

    cartesian_step: float = 0.01  # End-effector step of Cartesian path interpolation
    jump_threshold: float = 0.0  # Joint-space jump threshold of Cartesian path planning
    min_cartesian_fraction: float = 1.0  # Paths computed below this fraction are not executed

    # Execute a stage's trajectory even when planning it failed
    execute_on_plan_failure: bool = False

    pregrasp_orientation_xyzw: QuaternionXYZW = (0.707, -0.707, 0.0, 0.0)

    place_joint_index: int = 0  # Base (shoulder pan) joint rotated to reach the place location
    place_joint_angle_rad: float = 3.14

    arm_group: str = "ur_manipulator"
    gripper_group: str = "gripper"

    perception_action: str = "find_objects"
    server_timeout_s: float = 10.0  # Maximum wait for the perception action server
    goal_delay_s: float = 0.5  # Delay before the first perception goal is sent
    state_timeout_s: float = 10.0  # Maximum wait for the current robot state

    def __post_init__(self) -> None:
        """Validate the configured values."""
        if self.descend_steps < 1:
            error = f"Approach path requires at least one waypoint, not {self.descend_steps}."
            raise ValueError(error)

        if not 0.0 <= self.min_cartesian_fraction <= 1.0:
            error = f"Minimum Cartesian fraction must lie in [0, 1]: {self.min_cartesian_fraction}"
            raise ValueError(error)

        if len(self.pregrasp_orientation_xyzw) != 4:
            error = f"Expected an [x, y, z, w] quaternion: {self.pregrasp_orientation_xyzw}"
            raise ValueError(error)

    @property
    def pregrasp_orientation(self) -> UnitQuaternion:
        """Retrieve the fixed end-effector orientation used for every arm pose."""
        return UnitQuaternion.from_xyzw(list(self.pregrasp_orientation_xyzw))

    @classmethod
    def from_dict(cls, config_data: dict[str, Any]) -> PickPlaceConfig:
        """Construct a PickPlaceConfig by overriding the defaults with the given values.

        The pregrasp orientation may be given either as `pregrasp_orientation_xyzw: [x, y, z, w]`
            or as `pregrasp_orientation_rpy: [roll, pitch, yaw]`.

        :param config_data: Map from configuration field names to values
        :return: Constructed PickPlaceConfig instance
        :raises: KeyError, if an unrecognized configuration key is given
        :raises: ValueError, if the pregrasp orientation is given in both forms
        """
        overrides = dict(config_data)

        if "pregrasp_orientation_rpy" in overrides and "pregrasp_orientation_xyzw" in overrides:
            error = "Give the pregrasp orientation as [x, y, z, w] or as RPY angles, not both."
            raise ValueError(error)

        rpy = overrides.pop("pregrasp_orientation_rpy", None)
        if rpy is not None:
            q = UnitQuaternion.from_euler_rpy(*rpy)
            overrides["pregrasp_orientation_xyzw"] = tuple(q.to_xyzw())
        elif "pregrasp_orientation_xyzw" in overrides:
            overrides["pregrasp_orientation_xyzw"] = tuple(overrides["pregrasp_orientation_xyzw"])

        field_names = {field.name for field in dataclasses.fields(cls)}
        unknown_keys = sorted(set(overrides) - field_names)
        if unknown_keys:
            error = f"Unrecognized pick-and-place configuration keys: {unknown_keys}."
            raise KeyError(error)

        return cls(**overrides)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> PickPlaceConfig:
        """Construct a PickPlaceConfig using the 'pick_place' section of the given YAML file.

        :param yaml_path: Path to a YAML file containing configuration overrides
        :return: Constructed PickPlaceConfig instance (defaults if the section is missing)
        """
        yaml_data = load_yaml_into_dict(yaml_path)
        config_data = yaml_data.get("pick_place")

        if config_data is None:
            log_error(f"Expected to find the key 'pick_place' in YAML file: {yaml_path}")
            return cls()

        return cls.from_dict(config_data)
