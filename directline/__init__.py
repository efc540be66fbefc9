"""
Direct Line client package exposing the high-level ConversationSession together
with its configuration and activity data classes.
"""
from .conversation import ConversationSession
from .models import Activity, Attachment, ChannelAccount, SessionConfig

__all__ = ["ConversationSession", "Activity", "Attachment", "ChannelAccount", "SessionConfig"]
