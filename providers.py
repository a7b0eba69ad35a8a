"""
providers.py

Builds the question and audio providers named in config.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

import config
from audio import AudioProvider, SilentAudioProvider, SpeakerAudioProvider, StreamingAudioProvider
from questions import QuestionBank, QuestionProvider

Send = Callable[[Dict[str, Any]], Awaitable[None]]


def build_question_provider(source: Optional[str] = None) -> QuestionProvider:
    source = (source or config.QUESTION_SOURCE).lower()
    if source == "static":
        return QuestionBank()
    if source == "gemini":
        # imported here so the static table works without the SDK configured
        from gemini import GeminiQuestionProvider
        return GeminiQuestionProvider(api_key=config.GEMINI_API_KEY, model_name=config.GEMINI_QUESTION_MODEL)
    raise ValueError(f"Unknown question source: {source!r} (expected 'static' or 'gemini')")


def build_audio_provider(mode: Optional[str] = None, send: Optional[Send] = None) -> AudioProvider:
    mode = (mode or config.AUDIO_MODE).lower()
    if mode == "silent":
        return SilentAudioProvider()
    if mode == "speaker":
        return SpeakerAudioProvider(lang=config.TTS_LANG, slow=config.TTS_SLOW)
    if mode == "stream":
        if send is None:
            raise ValueError("Streaming audio needs a send callback")
        return StreamingAudioProvider(send, lang=config.TTS_LANG, slow=config.TTS_SLOW)
    raise ValueError(f"Unknown audio mode: {mode!r} (expected 'silent', 'speaker' or 'stream')")
