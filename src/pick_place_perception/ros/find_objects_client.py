"""Define an actionlib-based client for the grasping_msgs/FindGraspableObjects action."""

from __future__ import annotations

from typing import Any

import actionlib
import rospy
from actionlib_msgs.msg import GoalStatus
from grasping_msgs.msg import FindGraspableObjectsAction

from pick_place_perception.perception.goal_client import (
    FeedbackCallback,
    PerceptionActionClient,
    ResponseCallback,
    ResultCallback,
    ResultCode,
)
from pick_place_perception.ros.construct_msgs import candidates_from_msgs, make_find_objects_goal


def result_code_from_status(status: int) -> ResultCode:
    """Map a terminal actionlib_msgs/GoalStatus value onto a ResultCode.

    :param status: Terminal status of an actionlib goal
    :return: Corresponding result code (UNKNOWN for rejected or lost goals)
    """
    if status == GoalStatus.SUCCEEDED:
        return ResultCode.SUCCEEDED
    if status == GoalStatus.ABORTED:
        return ResultCode.ABORTED
    if status in (GoalStatus.PREEMPTED, GoalStatus.RECALLED):
        return ResultCode.CANCELED
    return ResultCode.UNKNOWN


class ActionlibPerceptionClient(PerceptionActionClient):
    """Sends FindGraspableObjects goals using an actionlib.SimpleActionClient."""

    def __init__(self, action_name: str = "find_objects") -> None:
        """Create the underlying action client (requires an initialized ROS node).

        :param action_name: Name of the FindGraspableObjects action server
        """
        self.action_name = action_name
        self._client = actionlib.SimpleActionClient(action_name, FindGraspableObjectsAction)

    def wait_for_server(self, timeout_s: float) -> bool:
        """Wait for the action server to become available."""
        return self._client.wait_for_server(timeout=rospy.Duration(timeout_s))

    def send_goal(
        self,
        plan_grasps: bool,
        on_response: ResponseCallback,
        on_feedback: FeedbackCallback,
        on_result: ResultCallback,
    ) -> None:
        """Send a detection goal; the callbacks run on actionlib's threads."""

        def done_cb(status: int, result: Any) -> None:
            if status == GoalStatus.REJECTED:
                on_response(False)

            code = result_code_from_status(status)
            objects = [] if result is None else candidates_from_msgs(result.objects)
            on_result(code, objects)

        self._client.send_goal(
            make_find_objects_goal(plan_grasps),
            done_cb=done_cb,
            active_cb=lambda: on_response(True),
            feedback_cb=on_feedback,
        )

    def cancel_goal(self) -> None:
        """Request cancellation of the active goal."""
        self._client.cancel_goal()
