"""Define dataclasses to represent objects detected by the perception backend."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from pick_place_perception.kinematics import Pose3D

ObjectDims = Tuple[float, float, float]  # Represents object-frame size in (x,y,z)


class ShapeType(Enum):
    """A type of primitive 3D shape describing a detected object.

    Note: The Enum values correspond to the shape_msgs/SolidPrimitive types, except for MESH,
        which marks objects described only by triangle meshes.

    Reference: https://docs.ros.org/en/noetic/api/shape_msgs/html/msg/SolidPrimitive.html
    """

    MESH = 0
    BOX = 1
    SPHERE = 2
    CYLINDER = 3
    CONE = 4



@dataclass(frozen=True)
class GraspCandidate:
    """An object detected by the perception backend, described by one geometric primitive."""

    shape_type: ShapeType
    dimensions: ObjectDims  # Primitive dimensions as reported by the detector (meters)
    pose: Pose3D  # Pose of the primitive's center

    @property
    def xy(self) -> tuple[float, float]:
        """Retrieve the (x, y) position of the candidate in its reference frame."""
        return (self.pose.position.x, self.pose.position.y)
