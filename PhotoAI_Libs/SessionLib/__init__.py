"""
SessionLib - Edit session orchestration

This module provides the EditSession state machine and the background
removal service boundary it calls.
"""

from PhotoAI_Libs.SessionLib.removal_service import (
    BackgroundRemovalService,
    RembgRemovalService,
)
from PhotoAI_Libs.SessionLib.edit_session import EditSession, SessionState

__all__ = [
    "BackgroundRemovalService",
    "RembgRemovalService",
    "EditSession",
    "SessionState",
]
