"""
Transcription Clients
======================
Turns a captured 16kHz/16-bit/mono PCM recording into text via:
  - OpenAI Whisper (multipart upload)
  - Google Cloud Speech-to-Text (JSON + base64, speaker diarization)
  - Groq Whisper Large V3 Turbo (groq SDK)

TranscriptionService chains a primary provider with fallbacks.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from audio_manager import pcm_to_wav
from config import (
    GOOGLE_SPEECH_URL,
    GROQ_WHISPER_MODEL,
    HTTP_TIMEOUT,
    MIN_AUDIO_BYTES,
    SAMPLE_RATE,
    WHISPER_MODEL,
    WHISPER_URL,
    SpeechProvider,
    get_key,
)

logger = logging.getLogger(__name__)


class TranscriptionError(Exception):
    pass


@dataclass
class Transcript:
    text: str
    confidence: Optional[float] = None
    provider: str = ""


# ─── OpenAI Whisper ───────────────────────────────────────────────────────────

class WhisperTranscriber:
    """OpenAI Whisper over a multipart form upload; plain-text response."""

    name = SpeechProvider.WHISPER.value

    def __init__(self, api_key: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else get_key("OPENAI_API_KEY")
        self._transport = transport

    async def transcribe(self, pcm_bytes: bytes) -> Transcript:
        if not self.api_key:
            raise TranscriptionError("OpenAI API Key is missing.")
        if len(pcm_bytes) <= MIN_AUDIO_BYTES:
            logger.info("Audio too small, skipping Whisper API call.")
            return Transcript(text="", provider=self.name)

        wav_bytes = pcm_to_wav(pcm_bytes)
        data = {
            "model": WHISPER_MODEL,
            "language": "en",
            "response_format": "text",
        }
        files = {"file": ("audio.wav", wav_bytes, "audio/wav")}
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT, transport=self._transport) as client:
                response = await client.post(WHISPER_URL, headers=headers, data=data, files=files)
        except httpx.HTTPError as e:
            raise TranscriptionError(f"Whisper request error: {e}") from e

        if response.status_code != 200:
            logger.error(f"Whisper API error {response.status_code}: {response.text}")
            raise TranscriptionError(
                f"Whisper API request failed ({response.status_code}). Response: {response.text}"
            )

        # response_format=text returns plain text; tolerate JSON {"text": ...} too
        if response.headers.get("content-type", "").startswith("application/json"):
            try:
                text = response.json()["text"]
            except (ValueError, KeyError, TypeError) as e:
                raise TranscriptionError("Invalid response from Whisper API.") from e
        else:
            text = response.text
        return Transcript(text=text.strip(), provider=self.name)


# ─── Google Cloud Speech-to-Text ──────────────────────────────────────────────

INTERVIEWER_SPEAKER_TAG = 1


def interviewer_transcript(words: list[dict]) -> str:
    """Join the words spoken by the interviewer (speaker tag 1)."""
    spoken = [
        info["word"] for info in words
        if isinstance(info, dict)
        and isinstance(info.get("word"), str)
        and info.get("speakerTag") == INTERVIEWER_SPEAKER_TAG
    ]
    return " ".join(spoken)


def parse_google_response(payload: dict) -> Transcript:
    """Defensively walk results[0].alternatives[0] of a recognize response."""
    results = payload.get("results")
    if not isinstance(results, list) or not results:
        return Transcript(text="", provider=SpeechProvider.GOOGLE.value)
    alternatives = results[0].get("alternatives") if isinstance(results[0], dict) else None
    if not isinstance(alternatives, list) or not alternatives:
        return Transcript(text="", provider=SpeechProvider.GOOGLE.value)
    first = alternatives[0]

    words = first.get("words")
    if not isinstance(words, list):
        logger.info("No words array found in transcription response.")
        return Transcript(text="", provider=SpeechProvider.GOOGLE.value)

    confidence = first.get("confidence")
    return Transcript(
        text=interviewer_transcript(words),
        confidence=float(confidence) if isinstance(confidence, (int, float)) else None,
        provider=SpeechProvider.GOOGLE.value,
    )


class GoogleSpeechTranscriber:
    """Google Speech-to-Text with 2-speaker diarization; keeps the interviewer's words."""

    name = SpeechProvider.GOOGLE.value

    def __init__(self, api_key: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else get_key("GOOGLE_SPEECH_API_KEY")
        self._transport = transport

    @staticmethod
    def build_request(pcm_bytes: bytes) -> dict:
        return {
            "config": {
                "encoding": "LINEAR16",
                "sampleRateHertz": SAMPLE_RATE,
                "languageCode": "en-US",
                "enableAutomaticPunctuation": True,
                "enableWordTimeOffsets": True,
                "audioChannelCount": 1,
                "diarizationConfig": {
                    "enableSpeakerDiarization": True,
                    "minSpeakerCount": 2,
                    "maxSpeakerCount": 2,
                },
            },
            "audio": {"content": base64.b64encode(pcm_bytes).decode("ascii")},
        }

    async def transcribe(self, pcm_bytes: bytes) -> Transcript:
        if not self.api_key:
            raise TranscriptionError("Google Speech API key is missing.")
        if len(pcm_bytes) <= MIN_AUDIO_BYTES:
            return Transcript(text="", provider=self.name)

        logger.info(f"Attempting to transcribe audio data of size: {len(pcm_bytes)} bytes")
        headers = {"Content-Type": "application/json", "X-Goog-Api-Key": self.api_key}

        try:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT, transport=self._transport) as client:
                response = await client.post(GOOGLE_SPEECH_URL, headers=headers,
                                             json=self.build_request(pcm_bytes))
        except httpx.HTTPError as e:
            raise TranscriptionError(f"Google Speech request error: {e}") from e

        if response.status_code != 200:
            raise TranscriptionError(f"Google Speech API failed ({response.status_code}): {response.text}")
        try:
            payload = response.json()
        except ValueError as e:
            raise TranscriptionError("Invalid JSON from Google Speech API.") from e
        logger.debug(f"Raw Google Speech response: {payload}")
        return parse_google_response(payload if isinstance(payload, dict) else {})


# ─── Groq Whisper ─────────────────────────────────────────────────────────────

class GroqWhisperTranscriber:
    """High-accuracy STT using Groq Whisper Large V3 Turbo."""

    name = SpeechProvider.GROQ.value

    def __init__(self, api_key: Optional[str] = None, client=None):
        self.api_key = api_key if api_key is not None else get_key("GROQ_API_KEY")
        self._client = client

    def _get_client(self):
        if self._client is None:
            from groq import AsyncGroq
            self._client = AsyncGroq(api_key=self.api_key)
        return self._client

    async def transcribe(self, pcm_bytes: bytes) -> Transcript:
        if not self.api_key:
            raise TranscriptionError("Groq API key is missing.")
        if len(pcm_bytes) <= MIN_AUDIO_BYTES:
            return Transcript(text="", provider=self.name)
        try:
            result = await self._get_client().audio.transcriptions.create(
                file=("audio.wav", pcm_to_wav(pcm_bytes)),
                model=GROQ_WHISPER_MODEL,
                language="en",
                response_format="text",
            )
        except Exception as e:
            raise TranscriptionError(f"Groq Whisper error: {e}") from e
        text = str(result).strip() if result else ""
        return Transcript(text=text, provider=self.name)


# ─── Provider chain ───────────────────────────────────────────────────────────

PROVIDERS = {
    SpeechProvider.WHISPER: WhisperTranscriber,
    SpeechProvider.GOOGLE: GoogleSpeechTranscriber,
    SpeechProvider.GROQ: GroqWhisperTranscriber,
}


class TranscriptionService:
    """Tries the primary transcriber, then each fallback in order."""

    def __init__(self, primary, fallbacks: Optional[list] = None):
        self.transcribers = [primary] + list(fallbacks or [])

    @classmethod
    def for_provider(cls, provider: SpeechProvider) -> "TranscriptionService":
        """Primary = chosen provider; fallbacks = the others with a configured key."""
        primary = PROVIDERS[provider]()
        fallbacks = [
            factory() for p, factory in PROVIDERS.items()
            if p is not provider
        ]
        fallbacks = [t for t in fallbacks if t.api_key]
        return cls(primary, fallbacks)

    async def transcribe(self, pcm_bytes: bytes) -> Transcript:
        last_error: Optional[TranscriptionError] = None
        for transcriber in self.transcribers:
            try:
                result = await transcriber.transcribe(pcm_bytes)
                if result.text:
                    logger.info(f"{transcriber.name} transcript: {result.text!r}")
                return result
            except TranscriptionError as e:
                logger.warning(f"{transcriber.name} transcription failed: {e}")
                last_error = e
        raise last_error or TranscriptionError("No transcriber configured.")
