"""Define dataclasses to represent 3D positions, orientations, and poses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

import numpy as np
from transforms3d.euler import euler2quat

JointPositions = List[float]  # Ordered positions (rad or m) of one actuation group's joints


@dataclass
class Point3D:
    """An (x,y,z) position in 3D space."""

    x: float
    y: float
    z: float

    def to_array(self) -> np.ndarray:
        """Convert the point to a NumPy array."""
        return np.array([self.x, self.y, self.z])

    def approx_equal(self, other: Point3D) -> bool:
        """Check whether another point is approximately equal to this point."""
        return np.allclose(self.to_array(), other.to_array())


@dataclass
class UnitQuaternion:
    """A unit quaternion representing a 3D orientation."""

    w: float  # Scalar component of the quaternion
    x: float  # x-component of the quaternion vector
    y: float  # y-component of the quaternion vector
    z: float  # z-component of the quaternion vector

    def __post_init__(self) -> None:
        """Normalize the quaternion after it is initialized."""
        self.normalize()

    def normalize(self) -> None:
        """Normalize the quaternion to ensure that it is a unit quaternion."""
        norm = float(np.linalg.norm(self.to_array()))
        assert norm > 0, f"Cannot normalize near-zero quaternion: {self}."

        self.w /= norm
        self.x /= norm
        self.y /= norm
        self.z /= norm

    @classmethod
    def identity(cls) -> UnitQuaternion:
        """Construct a quaternion corresponding to the identity rotation."""
        return UnitQuaternion(w=1, x=0, y=0, z=0)

    def to_array(self) -> np.ndarray:
        """Convert the quaternion to a NumPy array of the form [w,x,y,z]."""
        return np.array([self.w, self.x, self.y, self.z])

    @classmethod
    def from_xyzw(cls, xyzw: list[float]) -> UnitQuaternion:
        """Construct a quaternion from a list ordered as in ROS messages: [x,y,z,w]."""
        assert len(xyzw) == 4, f"Cannot construct a quaternion from {len(xyzw)} values."
        x, y, z, w = xyzw
        return cls(w=w, x=x, y=y, z=z)

    def to_xyzw(self) -> list[float]:
        """Convert the quaternion to a list ordered as in ROS messages: [x,y,z,w]."""
        return [float(self.x), float(self.y), float(self.z), float(self.w)]

    @classmethod
    def from_euler_rpy(cls, roll_rad: float, pitch_rad: float, yaw_rad: float) -> UnitQuaternion:
        """Construct a quaternion from three fixed-frame Euler angles.

        Note: We use the axes "sxyz", meaning roll, then pitch, then yaw, all in a fixed frame.

        :param roll_rad: Roll angle about the x-axis (radians)
        :param pitch_rad: Pitch angle about the y-axis (radians)
        :param yaw_rad: Yaw angle about the z-axis (radians)
        :return: Unit quaternion corresponding to the Euler angles
        """
        w, x, y, z = euler2quat(roll_rad, pitch_rad, yaw_rad, axes="sxyz")
        return cls(w, x, y, z)

    def approx_equal(self, other: UnitQuaternion) -> bool:
        """Check whether another quaternion is approximately equal to this one.

        Note: A quaternion is considered equal to its negation, which expresses the same rotation.
        """
        self_array = self.to_array()
        other_array = other.to_array()

        pos_case = np.allclose(self_array, other_array)
        neg_case = np.allclose(-self_array, other_array)

        return pos_case or neg_case


DEFAULT_FRAME = "base_link"  # Planning frame of the manipulator


@dataclass
class Pose3D:
    """A position and orientation in 3D space."""

    position: Point3D
    orientation: UnitQuaternion
    ref_frame: str = DEFAULT_FRAME  # Frame of reference for the pose

    def translated(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> Pose3D:
        """Construct a copy of this pose with its position shifted by the given offsets.

        The orientation and reference frame are unchanged; the offsets are expressed in the
            pose's reference frame (not its local frame).

        :param dx: Offset (meters) along the reference frame's x-axis
        :param dy: Offset (meters) along the reference frame's y-axis
        :param dz: Offset (meters) along the reference frame's z-axis
        :return: Shifted copy of this pose
        """
        position = Point3D(self.position.x + dx, self.position.y + dy, self.position.z + dz)
        orientation = UnitQuaternion(
            self.orientation.w, self.orientation.x, self.orientation.y, self.orientation.z
        )
        return Pose3D(position, orientation, self.ref_frame)

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert the pose into a dictionary suitable for YAML export."""
        return {
            "xyz": [float(self.position.x), float(self.position.y), float(self.position.z)],
            "quat_xyzw": self.orientation.to_xyzw(),
            "frame": self.ref_frame,
        }
