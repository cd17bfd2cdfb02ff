import httpx
from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger()


class GoogleSpeechService:
    """Thin client for the Google Speech-to-Text ``speech:recognize`` REST call"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or settings.GOOGLE_CLOUD_API_KEY
        self.base_url = base_url or settings.GOOGLE_SPEECH_URL
        self.timeout = timeout or settings.SPEECH_TIMEOUT_SECONDS

    def _build_request(self, base64_audio: str) -> Dict[str, Any]:
        return {
            "config": {
                "encoding": "WEBM_OPUS",
                "sampleRateHertz": settings.SPEECH_SAMPLE_RATE_HERTZ,
                "languageCode": settings.SPEECH_LANGUAGE_CODE,
                "enableAutomaticPunctuation": True,
                "model": "latest_long",
            },
            "audio": {"content": base64_audio},
        }

    @staticmethod
    def _extract_transcript(result: Dict[str, Any]) -> str:
        results = result.get("results") or []
        if not results:
            return ""
        alternatives = results[0].get("alternatives") or []
        if not alternatives:
            return ""
        return alternatives[0].get("transcript", "")

    async def recognize(self, base64_audio: str) -> str:
        """Transcribe one base64 audio chunk, returning '' on any failure"""
        if not self.api_key:
            logger.warning("GOOGLE_CLOUD_API_KEY not configured, skipping transcription")
            return ""

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.base_url,
                    params={"key": self.api_key},
                    json=self._build_request(base64_audio),
                )
                response.raise_for_status()
                return self._extract_transcript(response.json())
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Transcription failed: {e.response.status_code} - {e.response.text}"
            )
            return ""
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Transcription failed: {e}")
            return ""


google_speech_service = GoogleSpeechService()
