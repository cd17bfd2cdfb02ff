import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import select, col
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.logging import get_logger
from app.core.services.google_speech import GoogleSpeechService, google_speech_service
from app.speech.models import SpeechAnalysisResult

logger = get_logger()

FILLER_WORDS = [
    "um",
    "uh",
    "like",
    "you know",
    "so",
    "well",
    "actually",
    "basically",
]
SECONDS_PER_WORD = 0.6
TARGET_WORDS_PER_MINUTE = 150
MIN_DETAILED_ANSWER_WORDS = 10

_FILLER_PATTERNS = [
    re.compile(rf"\b{re.escape(filler)}\b", re.IGNORECASE) for filler in FILLER_WORDS
]
_HESITATION_PATTERN = re.compile(r"\b(um|uh)\b", re.IGNORECASE)


class SpeechSessionAccessError(Exception):
    """Raised when a user touches a speech session owned by someone else"""


@dataclass
class SpeechSession:
    owner_id: Optional[uuid.UUID] = None
    fragments: List[str] = field(default_factory=list)

    @property
    def transcript(self) -> str:
        return " ".join(self.fragments)


def perform_speech_analysis(transcript: str) -> Dict[str, int]:
    """
    Score a transcript with simple delivery heuristics.

    Speaking time is estimated at 0.6 seconds per word. Every metric is an
    integer; pace, clarity and confidence are on a 0-100 scale.
    """
    words = transcript.split()
    word_count = len(words)

    duration_seconds = word_count * SECONDS_PER_WORD
    words_per_minute = (
        round(word_count / duration_seconds * 60) if duration_seconds > 0 else 0
    )

    filler_count = sum(len(p.findall(transcript)) for p in _FILLER_PATTERNS)

    pace = min(100, max(0, 100 - abs(words_per_minute - TARGET_WORDS_PER_MINUTE) * 2))
    clarity = (
        max(0, 100 - (filler_count / word_count) * 200) if word_count else 100
    )
    confidence = max(50, pace - filler_count * 10)

    return {
        "pace": round(pace),
        "clarity": round(clarity),
        "confidence": round(confidence),
        "filler_words": filler_count,
        "words_per_minute": words_per_minute,
        "word_count": word_count,
    }


def generate_coaching_suggestions(transcription: str) -> List[str]:
    suggestions = []
    if _HESITATION_PATTERN.search(transcription):
        suggestions.append("Try to reduce filler words for more confident delivery")
    if len(transcription.split()) < MIN_DETAILED_ANSWER_WORDS:
        suggestions.append("Provide more detailed examples in your response")
    return suggestions


class SpeechAnalysisService:
    """
    Live speech coaching for interview sessions.

    Transcripts are accumulated per session id in memory until the session
    is finalized or discarded; only the final analysis is persisted. A
    session belongs to the user who opened it and no other user may feed,
    reset, finalize or discard it.
    """

    def __init__(self, speech_client: Optional[GoogleSpeechService] = None):
        self.speech_client = speech_client or google_speech_service
        self._sessions: Dict[str, SpeechSession] = {}

    @property
    def active_sessions(self) -> List[str]:
        return list(self._sessions)

    def check_access(self, session_id: str, user_id: Optional[uuid.UUID]) -> None:
        speech_session = self._sessions.get(session_id)
        if speech_session is not None and speech_session.owner_id != user_id:
            logger.warning(
                f"User {user_id} denied access to speech session {session_id}"
            )
            raise SpeechSessionAccessError(session_id)

    def initialize_session(
        self, session_id: str, user_id: Optional[uuid.UUID] = None
    ) -> None:
        self.check_access(session_id, user_id)
        self._sessions[session_id] = SpeechSession(owner_id=user_id)
        logger.info(f"Speech session {session_id} started")

    def discard_session(
        self, session_id: str, user_id: Optional[uuid.UUID] = None
    ) -> None:
        speech_session = self._sessions.get(session_id)
        if speech_session is None or speech_session.owner_id != user_id:
            return
        del self._sessions[session_id]
        logger.info(f"Speech session {session_id} discarded")

    async def transcribe_audio_chunk(self, base64_audio: str) -> str:
        return await self.speech_client.recognize(base64_audio)

    def analyze_transcription(
        self,
        transcription: str,
        session_id: str,
        user_id: Optional[uuid.UUID] = None,
    ) -> Dict[str, Any]:
        self.check_access(session_id, user_id)
        speech_session = self._sessions.setdefault(
            session_id, SpeechSession(owner_id=user_id)
        )
        speech_session.fragments.append(transcription)

        analysis = perform_speech_analysis(speech_session.transcript)
        return {
            **analysis,
            "suggestions": generate_coaching_suggestions(transcription),
            "timestamp": datetime.now(timezone.utc),
        }

    async def finalize_session(
        self,
        session_id: str,
        session: AsyncSession,
        user_id: Optional[uuid.UUID] = None,
    ) -> Dict[str, int]:
        self.check_access(session_id, user_id)
        speech_session = self._sessions.get(session_id)
        transcript = speech_session.transcript if speech_session else ""
        final_analysis = perform_speech_analysis(transcript)

        result = SpeechAnalysisResult(
            session_id=session_id,
            user_id=user_id,
            full_transcript=transcript,
            metrics=final_analysis,
        )
        session.add(result)
        await session.commit()

        self._sessions.pop(session_id, None)
        logger.info(
            f"Speech session {session_id} finalized: {final_analysis['word_count']} words"
        )
        return final_analysis

    async def get_session_results(
        self, session_id: str, session: AsyncSession, user_id: uuid.UUID
    ) -> List[SpeechAnalysisResult]:
        result = await session.exec(
            select(SpeechAnalysisResult)
            .where(
                SpeechAnalysisResult.session_id == session_id,
                SpeechAnalysisResult.user_id == user_id,
            )
            .order_by(col(SpeechAnalysisResult.created_at).desc())
        )
        return list(result.all())


speech_analysis_service = SpeechAnalysisService()
