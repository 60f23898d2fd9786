"""
Session Management - Builder sessions bound to a storage key.
"""

from .manager import Session, SessionManager, SessionState

__all__ = ["Session", "SessionManager", "SessionState"]
