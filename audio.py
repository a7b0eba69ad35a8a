# audio.py
from __future__ import annotations

import asyncio
import base64
import io
import logging
import random
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import numpy as np
import pygame
from gtts import gTTS

from questions import ProviderError, Question

log = logging.getLogger("size-quiz.audio")

SUCCESS_PHRASES = ["太棒了！", "答对了！", "真聪明！", "好极了！", "做得对！"]
FAILURE_PHRASES = ["哎呀，不对哦。", "不对，下次加油！", "那个不是哦。", "再试一次吧！", "好好想一下哦。"]

MIXER_RATE = 24000
GTTS_BITRATE = 32000      # gTTS returns 32 kbit/s mono MP3
STREAM_PADDING_S = 0.2

# (frequency Hz, seconds) for the fallback beeps
SUCCESS_TONE = (523.25, 0.3)
FAILURE_TONE = (349.23, 0.4)


@dataclass(frozen=True)
class AudioClip:
    text: str
    data: bytes = b""
    mime: str = "audio/mpeg"
    duration: float = 0.0


def tone(frequency: float, duration: float, rate: int = MIXER_RATE) -> bytes:
    """Decaying sine beep as 16-bit mono PCM."""
    n = int(rate * duration)
    t = np.arange(n) / rate
    wave = np.sin(2 * np.pi * frequency * t) * 0.3 * np.power(0.5, t / duration)
    return (wave * 32767).astype("<i2").tobytes()


def tone_clip(text: str, frequency: float, duration: float) -> AudioClip:
    return AudioClip(text=text, data=tone(frequency, duration), mime="audio/pcm", duration=duration)


def gtts_synthesize(text: str, lang: str, slow: bool) -> bytes:
    """Blocking; run it in a worker thread."""
    buf = io.BytesIO()
    gTTS(text=text, lang=lang, slow=slow).write_to_fp(buf)
    return buf.getvalue()


class AudioProvider:
    """
    Produces and plays the spoken parts of a round.

    Subclasses implement synthesize() and play(); the prompt wording and
    phrase choice live here so every provider says the same things.
    """

    def __init__(self, seed: Optional[int] = None):
        self.rnd = random.Random(seed)

    def instruction_text(self, question: Question) -> str:
        target = "大" if question.target_attribute == "big" else "小"
        return f"请找出{question.object1.name}和{question.object2.name}中，{target}的那个"

    async def fetch_instruction_audio(self, question: Question) -> Tuple[AudioClip, str]:
        text = self.instruction_text(question)
        return await self.synthesize(text), text

    async def fetch_feedback_audio(self, was_correct: bool) -> AudioClip:
        phrases = SUCCESS_PHRASES if was_correct else FAILURE_PHRASES
        return await self.synthesize(self.rnd.choice(phrases))

    async def synthesize(self, text: str) -> AudioClip:
        raise NotImplementedError

    async def play(self, clip: AudioClip) -> None:
        raise NotImplementedError


class SilentAudioProvider(AudioProvider):
    """Text-only clips that finish immediately."""

    async def synthesize(self, text: str) -> AudioClip:
        return AudioClip(text=text, mime="text/plain")

    async def play(self, clip: AudioClip) -> None:
        log.debug("(silent) %s", clip.text)
        await asyncio.sleep(0)


class GTTSAudioProvider(AudioProvider):
    def __init__(self, lang: str = "zh-CN", slow: bool = True, seed: Optional[int] = None):
        super().__init__(seed=seed)
        self.lang = lang
        self.slow = slow

    async def synthesize(self, text: str) -> AudioClip:
        try:
            data = await asyncio.to_thread(gtts_synthesize, text, self.lang, self.slow)
        except Exception as e:
            raise ProviderError(f"Speech synthesis failed for {text!r}: {e}") from e
        if not data:
            raise ProviderError(f"Speech synthesis returned no audio for {text!r}")
        return AudioClip(text=text, data=data, mime="audio/mpeg", duration=len(data) * 8 / GTTS_BITRATE)


class MixerContext:
    """Process-wide pygame mixer: initialised on first use, then reused."""

    _lock = threading.Lock()
    _ready = False

    @classmethod
    def get(cls):
        with cls._lock:
            if not cls._ready:
                pygame.mixer.init(frequency=MIXER_RATE, size=-16, channels=1)
                cls._ready = True
                log.info("Audio mixer initialised at %d Hz", MIXER_RATE)
        return pygame.mixer

    @classmethod
    def shutdown(cls) -> None:
        with cls._lock:
            if cls._ready:
                pygame.mixer.quit()
                cls._ready = False


class SpeakerAudioProvider(GTTSAudioProvider):
    """Speech on the local speakers; feedback degrades to a beep when speech fails."""

    async def fetch_feedback_audio(self, was_correct: bool) -> AudioClip:
        try:
            return await super().fetch_feedback_audio(was_correct)
        except ProviderError as e:
            log.warning("Feedback speech unavailable, using beep: %s", e)
            freq, dur = SUCCESS_TONE if was_correct else FAILURE_TONE
            return tone_clip("", freq, dur)

    @staticmethod
    def _load(clip: AudioClip):
        mixer = MixerContext.get()
        if clip.mime == "audio/pcm":
            return mixer.Sound(buffer=clip.data)
        return mixer.Sound(file=io.BytesIO(clip.data))

    async def play(self, clip: AudioClip) -> None:
        if not clip.data:
            return
        try:
            sound = await asyncio.to_thread(self._load, clip)
            sound.play()
        except Exception as e:
            raise ProviderError(f"Playback failed: {e}") from e
        await asyncio.sleep(sound.get_length())


class StreamingAudioProvider(GTTSAudioProvider):
    """
    Hands clips to a remote presentation layer (e.g. a websocket) and waits
    out the clip's length so the round sequencing matches what the player hears.
    """

    def __init__(
        self,
        send: Callable[[Dict[str, Any]], Awaitable[None]],
        lang: str = "zh-CN",
        slow: bool = True,
        padding: float = STREAM_PADDING_S,
        seed: Optional[int] = None,
    ):
        super().__init__(lang=lang, slow=slow, seed=seed)
        self.send = send
        self.padding = padding

    async def play(self, clip: AudioClip) -> None:
        payload = {
            "type": "audio",
            "text": clip.text,
            "mime": clip.mime,
            "data": base64.b64encode(clip.data).decode("ascii"),
        }
        try:
            await self.send(payload)
        except Exception as e:
            raise ProviderError(f"Could not deliver audio: {e}") from e
        await asyncio.sleep(clip.duration + self.padding)
