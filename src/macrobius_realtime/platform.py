"""Platform feature operations on top of a Channel.

Each operation is a single fire-and-forget ``Channel.send``; replies come
back as inbound messages routed to handlers registered with ``Channel.on``.
"""

from __future__ import annotations

from typing import Any

from macrobius_realtime.logging_abstraction import get_logger
from macrobius_realtime.protocol import message_types
from macrobius_realtime.protocol.message import now_ms
from macrobius_realtime.transport.channel import Channel

logger = get_logger(__name__)


class RealtimePlatformClient:
    """Live quizzes, leaderboards, challenges, AI sync and study groups.

    Wraps an injected channel; queueing, ordering and reconnection are the
    channel's concern.
    """

    def __init__(self, channel: Channel):
        self.channel = channel

    # Live quiz

    def create_live_quiz(self, title: str, category: str, difficulty: str) -> None:
        """Create a live quiz hosted by the connected user."""
        self.channel.send(
            message_types.CREATE_LIVE_QUIZ,
            {
                "title": title,
                "category": category,
                "difficulty": difficulty,
                "hostId": self.channel.identity,
            },
        )

    def join_live_quiz(self, session_id: str) -> None:
        self.channel.send(message_types.JOIN_LIVE_QUIZ, {"sessionId": session_id}, session_id=session_id)

    def leave_live_quiz(self, session_id: str) -> None:
        self.channel.send(message_types.LEAVE_LIVE_QUIZ, {"sessionId": session_id}, session_id=session_id)

    def start_live_quiz(self, session_id: str) -> None:
        self.channel.send(message_types.START_LIVE_QUIZ, {"sessionId": session_id}, session_id=session_id)

    def submit_live_answer(self, session_id: str, question_id: str, answer: Any, time_spent: float) -> None:
        """Submit an answer; ``time_spent`` is reported as given (ms on the platform)."""
        self.channel.send(
            message_types.SUBMIT_LIVE_ANSWER,
            {
                "sessionId": session_id,
                "questionId": question_id,
                "answer": answer,
                "timeSpent": time_spent,
            },
            session_id=session_id,
        )

    # Leaderboard

    def subscribe_to_leaderboard(self, category: str, timeframe: str) -> None:
        self.channel.send(message_types.SUBSCRIBE_LEADERBOARD, {"category": category, "timeframe": timeframe})

    def unsubscribe_from_leaderboard(self) -> None:
        self.channel.send(message_types.UNSUBSCRIBE_LEADERBOARD, {})

    # Challenges

    def challenge_user(self, target_user_id: str, category: str) -> None:
        self.channel.send(
            message_types.CHALLENGE_USER,
            {
                "targetUserId": target_user_id,
                "category": category,
                "challengerId": self.channel.identity,
            },
        )

    def accept_challenge(self, challenge_id: str) -> None:
        self.channel.send(message_types.ACCEPT_CHALLENGE, {"challengeId": challenge_id})

    def decline_challenge(self, challenge_id: str) -> None:
        self.channel.send(message_types.DECLINE_CHALLENGE, {"challengeId": challenge_id})

    # AI learning sync

    def sync_learning_progress(self, path_id: str, progress: Any) -> None:
        self.channel.send(
            message_types.SYNC_LEARNING_PROGRESS,
            {"pathId": path_id, "progress": progress, "timestamp": now_ms()},
        )

    def subscribe_to_ai_updates(self, system_type: str) -> None:
        self.channel.send(message_types.SUBSCRIBE_AI_UPDATES, {"systemType": system_type})

    def request_cultural_analysis(self, text: str, options: dict[str, Any] | None = None) -> str:
        """Request analysis of ``text``.

        Returns:
            The request id; the backend echoes it in its reply

        """
        request_id = f"analysis_{now_ms()}"
        self.channel.send(
            message_types.ANALYZE_CULTURAL_CONTENT,
            {"text": text, "options": options or {}, "requestId": request_id},
        )
        logger.debug("Cultural analysis requested", extra={"request_id": request_id, "text_length": len(text)})
        return request_id

    # Study groups

    def join_study_group(self, group_id: str) -> None:
        self.channel.send(message_types.JOIN_STUDY_GROUP, {"groupId": group_id})

    def leave_study_group(self, group_id: str) -> None:
        self.channel.send(message_types.LEAVE_STUDY_GROUP, {"groupId": group_id})

    def share_progress(self, group_id: str, progress_data: Any) -> None:
        self.channel.send(
            message_types.SHARE_PROGRESS,
            {"groupId": group_id, "progressData": progress_data, "timestamp": now_ms()},
        )
