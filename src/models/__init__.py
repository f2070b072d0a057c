"""Data models for the inbox triage dashboard."""

from .email import EmailDocument, ReplyIntent
from .user import Session, User

__all__ = [
    "EmailDocument",
    "ReplyIntent",
    "Session",
    "User",
]
