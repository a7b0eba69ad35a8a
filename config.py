"""
config.py

Loads environment variables (and an optional .env file) into the
settings used by the server, the terminal game and the providers.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Gameplay
TOTAL_ROUNDS = int(os.getenv("SIZE_QUIZ_TOTAL_ROUNDS", "10"))
RETRY_DELAY_S = float(os.getenv("SIZE_QUIZ_RETRY_DELAY", "1.0"))        # after a failed question fetch
FEEDBACK_DELAY_S = float(os.getenv("SIZE_QUIZ_FEEDBACK_DELAY", "2.5"))  # answer shown -> next round
HISTORY_SIZE = int(os.getenv("SIZE_QUIZ_HISTORY_SIZE", "5"))

# Providers
QUESTION_SOURCE = os.getenv("SIZE_QUIZ_QUESTIONS", "static")   # static | gemini
AUDIO_MODE = os.getenv("SIZE_QUIZ_AUDIO", "silent")             # silent | speaker | stream

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_QUESTION_MODEL = os.getenv("GEMINI_QUESTION_MODEL", "gemini-2.5-flash")

TTS_LANG = os.getenv("SIZE_QUIZ_TTS_LANG", "zh-CN")
TTS_SLOW = _bool("SIZE_QUIZ_TTS_SLOW", True)

# Server / logging
LOG_LEVEL = os.getenv("SIZE_QUIZ_LOG_LEVEL", "INFO").upper()
HOST = os.getenv("SIZE_QUIZ_HOST", "127.0.0.1")
PORT = int(os.getenv("SIZE_QUIZ_PORT", "8080"))
