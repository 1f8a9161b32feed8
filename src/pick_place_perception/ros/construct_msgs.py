"""Define utility functions to convert between grasping_msgs messages and local data structures."""

from __future__ import annotations

from grasping_msgs.msg import FindGraspableObjectsGoal, GraspableObject

from pick_place_perception.kinematics_ros import pose_from_msg
from pick_place_perception.logging import log_warn
from pick_place_perception.perception.grasp_candidate import GraspCandidate, ShapeType


def make_find_objects_goal(plan_grasps: bool) -> FindGraspableObjectsGoal:
    """Construct a grasping_msgs/FindGraspableObjectsGoal message.

    :param plan_grasps: Whether the perception server should also plan grasps
    :return: Constructed goal message
    """
    goal = FindGraspableObjectsGoal()
    goal.plan_grasps = plan_grasps
    return goal


def candidate_from_msg(object_msg: GraspableObject) -> GraspCandidate | None:
    """Construct a GraspCandidate from the first primitive of a grasping_msgs/GraspableObject.

    Objects without primitives are described by their first mesh, with unknown dimensions.

    :param object_msg: Object detected by the perception server
    :return: Constructed GraspCandidate, or None if the object has no usable geometry
    """
    obj = object_msg.object
    frame_id = obj.header.frame_id

    if obj.primitives and obj.primitive_poses:
        primitive = obj.primitives[0]
        dims = list(primitive.dimensions) + [0.0, 0.0, 0.0]  # Pad shapes with fewer dimensions
        try:
            shape_type = ShapeType(primitive.type)
        except ValueError:
            log_warn(f"Skipping object '{obj.name}' with unknown primitive type {primitive.type}.")
            return None

        pose = pose_from_msg(obj.primitive_poses[0], ref_frame=frame_id)
        return GraspCandidate(shape_type, (dims[0], dims[1], dims[2]), pose)

    if obj.meshes and obj.mesh_poses:
        pose = pose_from_msg(obj.mesh_poses[0], ref_frame=frame_id)
        return GraspCandidate(ShapeType.MESH, (0.0, 0.0, 0.0), pose)

    log_warn(f"Skipping object '{obj.name}' without primitives or meshes.")
    return None


def candidates_from_msgs(object_msgs: list[GraspableObject]) -> list[GraspCandidate]:
    """Convert the objects of a perception result, preserving their order.

    :param object_msgs: Objects detected by the perception server
    :return: Grasp candidates for every object with usable geometry
    """
    candidates = []
    for object_msg in object_msgs:
        candidate = candidate_from_msg(object_msg)
        if candidate is not None:
            candidates.append(candidate)
    return candidates
