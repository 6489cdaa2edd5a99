"""
Screen sequencing for onboarding flows.
"""

from .models import CUSTOM_SCREEN, ELEMENTS_SCREEN, VARIABLES_KEY, FlowStatus, ScreenConfig, ScreenView, ViewKind
from .session import FlowSession, NO_SCREENS_MESSAGE
from .variables import VariableStore, merged_scope

__all__ = [
    "CUSTOM_SCREEN",
    "ELEMENTS_SCREEN",
    "VARIABLES_KEY",
    "FlowStatus",
    "ScreenConfig",
    "ScreenView",
    "ViewKind",
    "FlowSession",
    "NO_SCREENS_MESSAGE",
    "VariableStore",
    "merged_scope",
]
