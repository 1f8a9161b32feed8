"""Define unit tests for the MotionSequencer class."""

from __future__ import annotations

import pytest

from pick_place_perception.config import PickPlaceConfig
from pick_place_perception.errors import ExecutionFailure, PartialCartesianPath, PlanningFailure
from pick_place_perception.motion.sequencer import MotionSequencer
from pick_place_perception.motion.stages import STAGE_ORDER, Stage

TARGET_XY = (0.30, -0.10)


def test_full_sequence_runs_every_stage_in_order(make_backends, call_log) -> None:
    """Verify that a successful run visits all seven stages and interleaves the groups."""
    # Arrange: Backends whose plans and executions all succeed
    arm, gripper = make_backends()
    sequencer = MotionSequencer(arm, gripper, PickPlaceConfig())

    # Act: Run the sequence for an object at a known position
    result = sequencer.run(TARGET_XY)

    # Assert: Each stage was attempted once, in order, with one request at a time
    assert result.succeeded
    assert result.trace == list(STAGE_ORDER)
    assert result.failed_stage is None
    assert all(outcome.planned and outcome.executed for outcome in result.outcomes.values())

    assert [(group, method) for (group, method, _) in call_log] == [
        ("ur_manipulator", "plan_to_pose"),
        ("ur_manipulator", "execute"),
        ("gripper", "plan_to_named_target"),
        ("gripper", "execute"),
        ("ur_manipulator", "compute_cartesian_path"),
        ("ur_manipulator", "execute"),
        ("gripper", "plan_to_named_target"),
        ("gripper", "execute"),
        ("ur_manipulator", "compute_cartesian_path"),
        ("ur_manipulator", "execute"),
        ("ur_manipulator", "get_current_joint_positions"),
        ("ur_manipulator", "plan_to_joint_target"),
        ("ur_manipulator", "execute"),
        ("gripper", "plan_to_named_target"),
        ("gripper", "execute"),
    ]


def test_backends_receive_expected_targets(make_backends) -> None:
    """Verify the targets requested from the arm and gripper during a successful run."""
    # Arrange: Default configuration and successful backends
    arm, gripper = make_backends()
    sequencer = MotionSequencer(arm, gripper, PickPlaceConfig())

    # Act: Run the sequence
    sequencer.run(TARGET_XY)

    # Assert: The pregrasp pose lies at the fixed height above the object
    (pregrasp,) = arm.calls("plan_to_pose")
    position = pregrasp.position
    assert (position.x, position.y, position.z) == pytest.approx((0.30, -0.10, 0.26))

    # Assert: The gripper opens, closes, then opens again
    assert gripper.calls("plan_to_named_target") == [
        "gripper_open",
        "gripper_close",
        "gripper_open",
    ]

    # Assert: Both Cartesian paths pass through the offset waypoints
    approach, retreat = arm.calls("compute_cartesian_path")
    for request in (approach, retreat):
        assert request["eef_step"] == pytest.approx(0.01)
        assert request["jump"] == 0.0
        for wp in request["waypoints"]:
            assert (wp.position.x, wp.position.y) == pytest.approx((0.312079, -0.109217))

    assert [wp.position.z for wp in approach["waypoints"]] == pytest.approx([0.22, 0.18])
    assert [wp.position.z for wp in retreat["waypoints"]] == pytest.approx([0.22, 0.26])

    # Assert: Only the base joint is retargeted to the place location
    assert arm.calls("get_current_joint_positions") == [10.0]
    (joint_target,) = arm.calls("plan_to_joint_target")
    assert joint_target == pytest.approx([3.14, 0.2, 0.3, 0.4, 0.5, 0.6])


def test_planning_failure_aborts_remaining_stages(make_backends) -> None:
    """Verify that a failed gripper plan aborts the sequence without executing it."""
    # Arrange: A gripper that cannot plan to its closed configuration
    arm, gripper = make_backends(gripper_kwargs={"failing_plans": ["gripper_close"]})
    sequencer = MotionSequencer(arm, gripper, PickPlaceConfig())

    # Act: Run the sequence
    result = sequencer.run(TARGET_XY)

    # Assert: The sequence stops at CLOSE_GRIPPER, and nothing runs afterward
    assert not result.succeeded
    assert result.failed_stage == Stage.CLOSE_GRIPPER
    assert isinstance(result.error, PlanningFailure)
    assert result.error.stage == Stage.CLOSE_GRIPPER
    assert result.trace == [
        Stage.PREGRASP,
        Stage.OPEN_GRIPPER,
        Stage.APPROACH,
        Stage.CLOSE_GRIPPER,
    ]

    assert len(gripper.calls("execute")) == 1, "Only the opening should have been executed."
    assert len(arm.calls("compute_cartesian_path")) == 1
    assert arm.calls("plan_to_joint_target") == []
    assert not result.outcomes[Stage.CLOSE_GRIPPER].planned
    assert not result.outcomes[Stage.CLOSE_GRIPPER].executed


def test_permissive_mode_executes_failed_plans(make_backends) -> None:
    """Verify that execution can proceed despite failed planning, if so configured."""
    # Arrange: A failing pregrasp plan, with execution no longer gated on planning
    arm, gripper = make_backends(failing_plans=["plan_to_pose"])
    config = PickPlaceConfig(execute_on_plan_failure=True)
    sequencer = MotionSequencer(arm, gripper, config)

    # Act: Run the sequence
    result = sequencer.run(TARGET_XY)

    # Assert: Every stage ran, though the pregrasp plan is recorded as failed
    assert result.trace == list(STAGE_ORDER)
    assert result.error is None
    assert not result.outcomes[Stage.PREGRASP].planned
    assert result.outcomes[Stage.PREGRASP].executed
    assert arm.calls("execute")[0] == "ur_manipulator-trajectory-1"


def test_execution_failure_stops_at_retreat(make_backends) -> None:
    """Verify that a failed execution during the retreat aborts the reposition and release."""
    # Arrange: An arm whose third execution (the retreat) fails
    arm, gripper = make_backends(execute_results=[True, True, False])
    sequencer = MotionSequencer(arm, gripper, PickPlaceConfig())

    # Act: Run the sequence
    result = sequencer.run(TARGET_XY)

    # Assert: The retreat was planned but not executed, and the gripper remains closed
    assert result.failed_stage == Stage.RETREAT
    assert isinstance(result.error, ExecutionFailure)
    assert result.trace[-1] == Stage.RETREAT
    assert result.outcomes[Stage.RETREAT].planned
    assert not result.outcomes[Stage.RETREAT].executed
    assert gripper.calls("plan_to_named_target") == ["gripper_open", "gripper_close"]
    assert arm.calls("get_current_joint_positions") == []


def test_partial_cartesian_path_is_not_executed(make_backends) -> None:
    """Verify that an approach path computed only halfway is never executed."""
    # Arrange: The approach path is only half complete
    arm, gripper = make_backends(fractions=[0.5])
    sequencer = MotionSequencer(arm, gripper, PickPlaceConfig())

    # Act: Run the sequence
    result = sequencer.run(TARGET_XY)

    # Assert: The sequence fails at the approach, after only the pregrasp was executed
    assert result.failed_stage == Stage.APPROACH
    assert isinstance(result.error, PartialCartesianPath)
    assert result.error.fraction == pytest.approx(0.5)
    assert result.outcomes[Stage.APPROACH].fraction == pytest.approx(0.5)
    assert arm.calls("execute") == ["ur_manipulator-trajectory-1"]


def test_partial_cartesian_path_above_minimum_is_executed(make_backends) -> None:
    """Verify that a nearly complete path is executed if it meets the configured minimum."""
    # Arrange: Both paths are 95% complete, and 90% is accepted
    arm, gripper = make_backends(fractions=[0.95, 0.95])
    sequencer = MotionSequencer(arm, gripper, PickPlaceConfig(min_cartesian_fraction=0.9))

    # Act: Run the sequence
    result = sequencer.run(TARGET_XY)

    # Assert: Every stage completes
    assert result.succeeded
    assert result.outcomes[Stage.APPROACH].fraction == pytest.approx(0.95)
    assert result.outcomes[Stage.RETREAT].planned


def test_missing_joint_state_fails_reposition(make_backends) -> None:
    """Verify that the reposition fails cleanly when no joint state is available."""
    # Arrange: An arm that never reports its joint positions
    arm, gripper = make_backends(joint_positions=[])
    sequencer = MotionSequencer(arm, gripper, PickPlaceConfig())

    # Act: Run the sequence
    result = sequencer.run(TARGET_XY)

    # Assert: No joint target is planned, and the object is not released
    assert result.failed_stage == Stage.REPOSITION
    assert isinstance(result.error, PlanningFailure)
    assert arm.calls("plan_to_joint_target") == []
    assert gripper.calls("plan_to_named_target") == ["gripper_open", "gripper_close"]


def test_sequencer_can_run_again(make_backends) -> None:
    """Verify that each run starts from a fresh record."""
    arm, gripper = make_backends(gripper_kwargs={"failing_plans": ["gripper_open"]})
    sequencer = MotionSequencer(arm, gripper, PickPlaceConfig())

    first = sequencer.run(TARGET_XY)
    gripper.failing_plans.clear()
    second = sequencer.run(TARGET_XY)

    assert first.failed_stage == Stage.OPEN_GRIPPER
    assert second.succeeded
    assert first is not second


def test_permissive_mode_executes_partial_cartesian_path(make_backends) -> None:
    """Verify that a path below the accepted fraction is still executed, if so configured."""
    # Arrange: A half-complete approach path, with execution no longer gated on planning
    arm, gripper = make_backends(fractions=[0.5])
    config = PickPlaceConfig(execute_on_plan_failure=True)
    sequencer = MotionSequencer(arm, gripper, config)

    # Act: Run the sequence
    result = sequencer.run(TARGET_XY)

    # Assert: The approach is recorded as unplanned, yet its trajectory was executed
    approach = result.outcomes[Stage.APPROACH]
    assert approach.planned is False
    assert approach.fraction == pytest.approx(0.5)
    assert approach.executed
    assert arm.calls("execute")[:2] == [
        "ur_manipulator-trajectory-1",
        "ur_manipulator-trajectory-2",
    ]
    assert result.trace == list(STAGE_ORDER)
    assert result.error is None


def test_gripper_execution_failure_stops_at_close(make_backends) -> None:
    """Verify that a gripper that fails to close aborts the sequence before the retreat."""
    # Arrange: A gripper whose second execution (the closing) fails
    arm, gripper = make_backends(gripper_kwargs={"execute_results": [True, False]})
    sequencer = MotionSequencer(arm, gripper, PickPlaceConfig())

    # Act: Run the sequence
    result = sequencer.run(TARGET_XY)

    # Assert: The closing was planned but not executed, and the arm never retreats
    assert result.failed_stage == Stage.CLOSE_GRIPPER
    assert isinstance(result.error, ExecutionFailure)
    assert not isinstance(result.error, PartialCartesianPath)
    assert result.outcomes[Stage.CLOSE_GRIPPER].planned
    assert not result.outcomes[Stage.CLOSE_GRIPPER].executed
    assert len(arm.calls("compute_cartesian_path")) == 1
