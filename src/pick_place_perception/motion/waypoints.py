"""Define functions composing the arm poses and joint targets of the pick-and-place sequence."""

from __future__ import annotations

from pick_place_perception.config import PickPlaceConfig
from pick_place_perception.kinematics import JointPositions, Point3D, Pose3D


def make_pregrasp_pose(x: float, y: float, config: PickPlaceConfig) -> Pose3D:
    """Construct the pose above the selected object from which the gripper descends.

    :param x: Perceived x-coordinate (meters) of the object
    :param y: Perceived y-coordinate (meters) of the object
    :param config: Pick-and-place configuration providing the height and orientation
    :return: Pregrasp pose of the end-effector
    """
    position = Point3D(x, y, config.approach_height)
    return Pose3D(position, config.pregrasp_orientation)


def make_approach_waypoints(pregrasp: Pose3D, config: PickPlaceConfig) -> list[Pose3D]:
    """Compose the waypoints of the straight-line descent from the pregrasp pose.

    The calibration offset is applied once, to the first waypoint; later waypoints only descend.

    :param pregrasp: Pregrasp pose of the end-effector
    :param config: Pick-and-place configuration providing the offset and descent steps
    :return: Waypoints ordered from highest to lowest
    """
    first = pregrasp.translated(
        dx=config.calibration_offset_x,
        dy=config.calibration_offset_y,
        dz=-config.descend_step,
    )

    waypoints = [first]
    while len(waypoints) < config.descend_steps:
        waypoints.append(waypoints[-1].translated(dz=-config.descend_step))

    return waypoints


def make_retreat_waypoints(grasp_pose: Pose3D, config: PickPlaceConfig) -> list[Pose3D]:
    """Compose the waypoints of the straight-line ascent that reverses the approach.

    :param grasp_pose: Lowest approach waypoint, where the object was grasped
    :param config: Pick-and-place configuration providing the ascent steps
    :return: Waypoints ordered from lowest to highest
    """
    waypoints = [grasp_pose.translated(dz=config.descend_step)]
    while len(waypoints) < config.descend_steps:
        waypoints.append(waypoints[-1].translated(dz=config.descend_step))

    return waypoints


def retarget_base_joint(
    positions: JointPositions,
    angle_rad: float,
    joint_index: int = 0,
) -> JointPositions:
    """Overwrite one joint of the given positions in place, leaving the others unchanged.

    :param positions: Current joint positions of the arm (modified in place)
    :param angle_rad: New position (radians) of the retargeted joint
    :param joint_index: Index of the retargeted joint (defaults to the base joint)
    :return: The same list of positions, after modification
    :raises: IndexError, if the arm has no joint with the given index
    """
    if not 0 <= joint_index < len(positions):
        error = f"Cannot retarget joint {joint_index} of an arm with {len(positions)} joints."
        raise IndexError(error)

    positions[joint_index] = angle_rad
    return positions
