"""
Kindred — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from app.models.mindfulness import MindfulnessEntry, MindfulnessStreak
from app.models.profile import Profile
from app.models.support import ChatMessage, SupportRequest

__all__ = [
    "Profile",
    "SupportRequest",
    "ChatMessage",
    "MindfulnessEntry",
    "MindfulnessStreak",
]
