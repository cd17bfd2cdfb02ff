import uuid
from typing import List, Set

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.speech import SpeechSessionAccessError, speech_analysis_service
from app.auth.models import User
from app.core.auth import ensure_active, get_current_active_user, get_user_from_token
from app.core.config import settings
from app.core.database import get_session, get_session_maker
from app.core.logging import get_logger
from app.speech.schemas import (
    AudioChunkPayload,
    SessionPayload,
    SocketMessage,
    SpeechAnalysis,
    SpeechAnalysisResultRead,
    SpeechMetrics,
)

logger = get_logger()

router = APIRouter()


async def _emit(websocket: WebSocket, event: str, data: dict) -> None:
    await websocket.send_json({"event": event, "data": data})


async def _handle_audio_chunk(
    websocket: WebSocket, payload: AudioChunkPayload, user_id: uuid.UUID
) -> None:
    speech_analysis_service.check_access(payload.session_id, user_id)

    transcription = await speech_analysis_service.transcribe_audio_chunk(
        payload.audio_data
    )
    if not transcription:
        return

    await _emit(websocket, "transcription-update", {"text": transcription})

    analysis = speech_analysis_service.analyze_transcription(
        transcription, payload.session_id, user_id
    )
    await _emit(
        websocket,
        "speech-analysis",
        SpeechAnalysis(**analysis).model_dump(mode="json"),
    )


async def _handle_end_session(
    websocket: WebSocket,
    payload: SessionPayload,
    user_id: uuid.UUID,
    session_maker: async_sessionmaker,
) -> None:
    async with session_maker() as session:
        final_analysis = await speech_analysis_service.finalize_session(
            payload.session_id, session, user_id
        )
    await _emit(
        websocket,
        "session-ended",
        {
            "session_id": payload.session_id,
            "analysis": SpeechMetrics(**final_analysis).model_dump(),
        },
    )


async def _authenticate(
    websocket: WebSocket, session_maker: async_sessionmaker
) -> User:
    access_token = websocket.cookies.get(settings.COOKIE_ACCESS_NAME)
    async with session_maker() as session:
        user = await get_user_from_token(access_token, session)
    return ensure_active(user)


@router.websocket("/ws")
async def speech_analysis_socket(
    websocket: WebSocket,
    session_maker: async_sessionmaker = Depends(get_session_maker),
):
    """
    Live speech coaching socket.

    Frames are JSON objects of the form {"event": ..., "data": {...}}.
    The connection is authenticated with the access token cookie and is
    refused for unknown or inactive users.
    """
    try:
        user = await _authenticate(websocket, session_maker)
    except HTTPException as e:
        logger.warning(f"Rejected speech socket connection: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = user.id
    await websocket.accept()
    logger.info(f"Speech socket connected for user {user_id}")

    open_sessions: Set[str] = set()
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = SocketMessage.model_validate_json(raw)

                if message.event == "start-session":
                    payload = SessionPayload.model_validate(message.data)
                    speech_analysis_service.initialize_session(
                        payload.session_id, user_id
                    )
                    open_sessions.add(payload.session_id)
                    await _emit(
                        websocket,
                        "session-started",
                        {"session_id": payload.session_id},
                    )

                elif message.event == "audio-chunk":
                    payload = AudioChunkPayload.model_validate(message.data)
                    await _handle_audio_chunk(websocket, payload, user_id)
                    open_sessions.add(payload.session_id)

                elif message.event == "end-session":
                    payload = SessionPayload.model_validate(message.data)
                    await _handle_end_session(
                        websocket, payload, user_id, session_maker
                    )
                    open_sessions.discard(payload.session_id)

            except ValidationError as e:
                logger.warning(f"Invalid speech socket frame: {e.errors()}")
                await _emit(websocket, "analysis-error", {"message": "Invalid message"})
            except SpeechSessionAccessError:
                await _emit(
                    websocket, "analysis-error", {"message": "Session not available"}
                )
            except WebSocketDisconnect:
                raise
            except Exception as e:
                logger.error(f"Audio processing failed: {e}")
                await _emit(
                    websocket, "analysis-error", {"message": "Speech analysis failed"}
                )
    except WebSocketDisconnect:
        logger.info(f"Speech socket disconnected for user {user_id}")
    finally:
        for session_id in open_sessions:
            speech_analysis_service.discard_session(session_id, user_id)


@router.get(
    "/sessions/{session_id}/results",
    response_model=List[SpeechAnalysisResultRead],
)
async def get_session_results(
    session_id: str,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Stored final analyses for one of the current user's speech sessions"""
    results = await speech_analysis_service.get_session_results(
        session_id, session, current_user.id
    )
    if not results:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No results found for this session",
        )
    return results
