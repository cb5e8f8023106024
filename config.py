"""
Configuration
==============
Endpoints, model names, audio parameters and user-facing interview settings.
API keys are read from the environment (populated from .env by main.py).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum

# ─── Audio ────────────────────────────────────────────────────────────────────

SAMPLE_RATE = 16000
CHUNK_SIZE = 1024          # frames per buffer, ~64ms at 16kHz
CHANNELS = 1
SAMPLE_WIDTH = 2           # 16-bit PCM

MIN_AUDIO_BYTES = 1024     # anything this small is not worth uploading

# ─── Silence detection ────────────────────────────────────────────────────────

VOLUME_THRESHOLD_DB = -30.0
SILENCE_DURATION_SEC = 2.0
INITIAL_GRACE_PERIOD_SEC = 5.0

# Continuous-listening segmentation
SPEECH_THRESHOLD_DB = -30.0
SILENCE_FRAMES_NEEDED = 12   # ~770ms of silence ends an utterance
MIN_SPEECH_FRAMES = 5        # ~320ms minimum to avoid spurious triggers

# ─── Remote services ──────────────────────────────────────────────────────────

GEMINI_BASE = "https://generativelanguage.googleapis.com/v1/models"
GEMINI_MODEL = "gemini-1.5-flash"

GROQ_BASE = "https://api.groq.com/openai/v1"
GROQ_MODEL = "llama-3.3-70b-versatile"
GROQ_WHISPER_MODEL = "whisper-large-v3-turbo"

WHISPER_URL = "https://api.openai.com/v1/audio/transcriptions"
WHISPER_MODEL = "whisper-1"

GOOGLE_SPEECH_URL = "https://speech.googleapis.com/v1/speech:recognize"

HTTP_TIMEOUT = 30.0

# ─── Storage ──────────────────────────────────────────────────────────────────

DEFAULT_DATABASE_URL = "sqlite:///./interview_sensei.db"

NO_CV_SUMMARY = "No CV summary available."

REQUIRED_KEYS = {
    "GEMINI_API_KEY": "https://aistudio.google.com/app/apikey",
    "OPENAI_API_KEY": "https://platform.openai.com/api-keys",
}
OPTIONAL_KEYS = {
    "GOOGLE_SPEECH_API_KEY": "https://console.cloud.google.com/apis/credentials",
    "GROQ_API_KEY": "https://console.groq.com",
}


def get_key(name: str) -> str:
    return os.environ.get(name, "")


def database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# ─── User settings ────────────────────────────────────────────────────────────

class SpeechProvider(str, Enum):
    WHISPER = "whisper"
    GOOGLE = "google"
    GROQ = "groq"


class InterviewMode(str, Enum):
    MOCK = "Mock Interview"
    PRACTICE = "Practice"
    REVIEW = "Review"


class QuizCategory(str, Enum):
    TECHNICAL_KNOWLEDGE = "Technical Knowledge"
    BEHAVIORAL = "Behavioral Questions"

    @property
    def description(self) -> str:
        if self is QuizCategory.TECHNICAL_KNOWLEDGE:
            return "Test your technical skills and knowledge"
        return "Practice behavioral and situational questions"


JOB_ROLES = [
    "Software Engineer",
    "Product Manager",
    "Data Scientist",
    "UX Designer",
    "Project Manager",
]

EXPERIENCE_LEVELS = ["Entry Level", "Intermediate", "Senior", "Lead", "Principal"]


@dataclass
class InterviewSettings:
    selected_job_role: str = "Software Engineer"
    selected_categories: set[str] = field(default_factory=lambda: {"Behavioral", "Technical"})
    interview_mode: InterviewMode = InterviewMode.PRACTICE
    selected_experience_level: str = "Intermediate"
    selected_voice: str = "en-US"
    enable_voice_feedback: bool = True
    speech_provider: SpeechProvider = SpeechProvider.WHISPER
