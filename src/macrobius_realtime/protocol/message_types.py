"""Message type identifiers used on the wire.

The channel consumes liveness replies, system notifications and presence
updates itself; everything else is routed to handlers registered with
``Channel.on``.
"""

from __future__ import annotations

from typing import Final

# Liveness: ping is sent by the channel, pong replies are consumed
PING: Final = "ping"
PONG: Final = "pong"

# Forwarded to the platform event sink
SYSTEM_NOTIFICATION: Final = "system_notification"
USER_JOINED: Final = "user_joined"
USER_LEFT: Final = "user_left"

PRESENCE_TYPES: Final = frozenset({USER_JOINED, USER_LEFT})
CHANNEL_CONSUMED_TYPES: Final = frozenset({PONG, SYSTEM_NOTIFICATION, *PRESENCE_TYPES})

# Live quiz
CREATE_LIVE_QUIZ: Final = "create_live_quiz"
JOIN_LIVE_QUIZ: Final = "join_live_quiz"
LEAVE_LIVE_QUIZ: Final = "leave_live_quiz"
START_LIVE_QUIZ: Final = "start_live_quiz"
SUBMIT_LIVE_ANSWER: Final = "submit_live_answer"

# Leaderboard
SUBSCRIBE_LEADERBOARD: Final = "subscribe_leaderboard"
UNSUBSCRIBE_LEADERBOARD: Final = "unsubscribe_leaderboard"

# Challenges
CHALLENGE_USER: Final = "challenge_user"
ACCEPT_CHALLENGE: Final = "accept_challenge"
DECLINE_CHALLENGE: Final = "decline_challenge"

# AI learning sync
SYNC_LEARNING_PROGRESS: Final = "sync_learning_progress"
SUBSCRIBE_AI_UPDATES: Final = "subscribe_ai_updates"
ANALYZE_CULTURAL_CONTENT: Final = "analyze_cultural_content"

# Study groups
JOIN_STUDY_GROUP: Final = "join_study_group"
LEAVE_STUDY_GROUP: Final = "leave_study_group"
SHARE_PROGRESS: Final = "share_progress"


def is_channel_consumed(message_type: str) -> bool:
    """Return True if inbound messages of this type never reach handlers."""
    return message_type in CHANNEL_CONSUMED_TYPES
