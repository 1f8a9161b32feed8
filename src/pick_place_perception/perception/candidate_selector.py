"""Define functions to select which detected object the robot should grasp."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from pick_place_perception.config import PickPlaceConfig
from pick_place_perception.logging import log_info
from pick_place_perception.perception.grasp_candidate import GraspCandidate, ShapeType


@dataclass(frozen=True)
class BoxSizeLimits:
    """Strict upper bounds (meters) on the dimensions of a graspable box."""

    max_x: float = 0.05
    max_y: float = 0.05
    max_z: float = 0.1

    @classmethod
    def from_config(cls, config: PickPlaceConfig) -> BoxSizeLimits:
        """Construct the size limits from the pick-and-place configuration."""
        return cls(max_x=config.box_max_x, max_y=config.box_max_y, max_z=config.box_max_z)


def candidate_fits(candidate: GraspCandidate, limits: BoxSizeLimits) -> bool:
    """Check whether the candidate is a box small enough to be grasped.

    :param candidate: Object detected by the perception backend
    :param limits: Size limits of a graspable box
    :return: True if the candidate is a box strictly within every size limit, else False
    """
    if candidate.shape_type != ShapeType.BOX:
        return False

    size_x, size_y, size_z = candidate.dimensions
    return size_x < limits.max_x and size_y < limits.max_y and size_z < limits.max_z


def find_candidate_index(
    objects: Sequence[GraspCandidate],
    limits: BoxSizeLimits,
) -> int | None:
    """Find the index of the first graspable box in the given list of detected objects.

    :param objects: Detected objects, in the order reported by the perception backend
    :param limits: Size limits of a graspable box
    :return: Index of the first qualifying object, or None if no object qualifies
    """
    for idx, candidate in enumerate(objects):
        if candidate_fits(candidate, limits):
            return idx
    return None


def select_candidate(
    objects: Sequence[GraspCandidate],
    limits: BoxSizeLimits,
) -> tuple[float, float] | None:
    """Select the (x, y) position of the first graspable box among the detected objects.

    Finding no candidate is an expected outcome; the caller decides how to proceed.

    :param objects: Detected objects, in the order reported by the perception backend
    :param limits: Size limits of a graspable box
    :return: (x, y) position of the selected object, or None if no object qualifies
    """
    idx = find_candidate_index(objects, limits)
    if idx is None:
        log_info(f"None of the {len(objects)} detected objects is a graspable box.")
        return None

    x, y = objects[idx].xy
    log_info(f"Selected object {idx} as the box to grasp: x = {x:.4f}, y = {y:.4f}.")
    return (x, y)
