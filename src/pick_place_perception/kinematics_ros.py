"""Define functions to convert 3D kinematic representations into ROS messages."""

from __future__ import annotations

from geometry_msgs.msg import Point, Pose, PoseStamped
from geometry_msgs.msg import Quaternion as QuaternionMsg

from pick_place_perception.kinematics import DEFAULT_FRAME, Point3D, Pose3D, UnitQuaternion


def point_to_msg(point: Point3D) -> Point:
    """Convert the given point into a geometry_msgs/Point message."""
    return Point(point.x, point.y, point.z)


def point_from_msg(point_msg: Point) -> Point3D:
    """Construct a Point3D from a geometry_msgs/Point message."""
    return Point3D(point_msg.x, point_msg.y, point_msg.z)


def quaternion_to_msg(q: UnitQuaternion) -> QuaternionMsg:
    """Convert the given quaternion into a geometry_msgs/Quaternion message."""
    return QuaternionMsg(q.x, q.y, q.z, q.w)


def quaternion_from_msg(q_msg: QuaternionMsg) -> UnitQuaternion:
    """Construct a UnitQuaternion from a geometry_msgs/Quaternion message."""
    if q_msg.x == q_msg.y == q_msg.z == q_msg.w == 0.0:  # Orientation left unset by publisher
        return UnitQuaternion.identity()
    return UnitQuaternion(w=q_msg.w, x=q_msg.x, y=q_msg.y, z=q_msg.z)


def pose_to_msg(pose: Pose3D) -> Pose:
    """Convert the given pose into a geometry_msgs/Pose message."""
    return Pose(point_to_msg(pose.position), quaternion_to_msg(pose.orientation))


def pose_from_msg(pose_msg: Pose | PoseStamped, ref_frame: str = DEFAULT_FRAME) -> Pose3D | None:
    """Construct a Pose3D from a geometry_msgs/Pose or geometry_msgs/PoseStamped message.

    :param pose_msg: ROS message representing a pose or time-stamped pose
    :param ref_frame: Reference frame assigned to an unstamped pose
    :return: Constructed Pose3D (None if unexpected type is given)
    """
    if isinstance(pose_msg, Pose):
        frame_id = ref_frame
        pose = pose_msg
    elif isinstance(pose_msg, PoseStamped):
        frame_id = pose_msg.header.frame_id
        pose = pose_msg.pose  # Extract just the Pose from the PoseStamped
    else:
        return None

    return Pose3D(point_from_msg(pose.position), quaternion_from_msg(pose.orientation), frame_id)
