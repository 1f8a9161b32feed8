"""Define a ROS node that runs one perception-driven pick-and-place cycle, then exits."""

from __future__ import annotations

import sys
from pathlib import Path

import moveit_commander
import rospy

from pick_place_perception.config import PickPlaceConfig
from pick_place_perception.filesystem.export_to_yaml import output_yaml_data_to_path
from pick_place_perception.logging import log_error, log_info
from pick_place_perception.motion.moveit_backend import MoveGroupBackend
from pick_place_perception.motion.sequencer import MotionSequencer
from pick_place_perception.perception.goal_client import PerceptionGoalClient
from pick_place_perception.pick_place_task import PickPlaceReport, PickPlaceTask
from pick_place_perception.ros.find_objects_client import ActionlibPerceptionClient


def load_config() -> PickPlaceConfig:
    """Load the configuration from the YAML file named by the ~config_path parameter.

    :return: Loaded configuration, or the defaults if no path is given
    """
    config_path = rospy.get_param("~config_path", "")
    if not config_path:
        log_info("No ~config_path given; using the default pick-and-place configuration.")
        return PickPlaceConfig()

    return PickPlaceConfig.from_yaml(Path(config_path))


def export_report(report: PickPlaceReport) -> None:
    """Write the report to the YAML file named by the ~report_path parameter, if any."""
    report_path = rospy.get_param("~report_path", "")
    if not report_path:
        return

    yaml_path = Path(report_path)
    if yaml_path.suffix not in {".yaml", ".yml"}:
        log_error(f"Invalid YAML file suffix: {yaml_path}")
        return

    if output_yaml_data_to_path(report.to_yaml_dict(), yaml_path):
        log_info(f"Wrote pick-and-place report to {yaml_path}.")
    else:
        log_error(f"Failed to write to {yaml_path}.")


def run_cycle() -> PickPlaceReport:
    """Build the perception and motion clients, run one cycle, and export its report."""
    config = load_config()
    max_wait_s = rospy.get_param("~max_perception_wait_s", None)

    perception = PerceptionGoalClient(
        ActionlibPerceptionClient(config.perception_action),
        server_timeout_s=config.server_timeout_s,
    )
    sequencer = MotionSequencer(
        arm=MoveGroupBackend(config.arm_group),
        gripper=MoveGroupBackend(config.gripper_group),
        config=config,
    )

    report = PickPlaceTask(perception, sequencer, config).run(max_perception_wait_s=max_wait_s)
    export_report(report)
    return report


def main() -> None:
    """Run one pick-and-place cycle and exit with a nonzero status if it fails."""
    moveit_commander.roscpp_initialize(sys.argv)
    try:
        rospy.init_node("pick_and_place_perception")
        report = run_cycle()
    finally:
        moveit_commander.roscpp_shutdown()

    sys.exit(0 if report.succeeded else 1)


if __name__ == "__main__":
    main()
