"""Define the stages of the pick-and-place motion sequence."""

from __future__ import annotations

from enum import Enum


class Stage(Enum):
    """A stage of the pick-and-place sequence; stages always run in declaration order."""

    PREGRASP = 1
    OPEN_GRIPPER = 2
    APPROACH = 3
    CLOSE_GRIPPER = 4
    RETREAT = 5
    REPOSITION = 6
    RELEASE = 7


STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)


class GripperTarget(Enum):
    """A named gripper configuration known to the planning backend."""

    OPEN = "gripper_open"
    CLOSE = "gripper_close"
