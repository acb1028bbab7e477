"""
Interaction modes translating pointer and keyboard input into viewport edits.
"""

from .base import (
    AbstractManipulator,
    Button,
    ManipulatorMode,
    Modifier,
    PointerState,
    SpecialKey,
)
from .inspect_center import InspectCenterManipulator
from .flying_mode import FlyingModeManipulator

MANIPULATOR_CLASSES = {
    ManipulatorMode.INSPECT_CENTER: InspectCenterManipulator,
    ManipulatorMode.FLYING: FlyingModeManipulator,
}

__all__ = [
    'AbstractManipulator',
    'Button',
    'ManipulatorMode',
    'Modifier',
    'PointerState',
    'SpecialKey',
    'InspectCenterManipulator',
    'FlyingModeManipulator',
    'MANIPULATOR_CLASSES',
]
