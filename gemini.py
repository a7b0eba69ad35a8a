"""
gemini.py

Question provider backed by a Gemini model. The model picks a big/small
object pair; display order and correctness stay local.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from typing import Any, Dict, Optional, Sequence

import google.generativeai as genai

from questions import GameObject, InvalidQuestion, ProviderError, Question, QuestionProvider, TARGETS

log = logging.getLogger("size-quiz.gemini")

PROMPT = (
    "Generate a simple game question for a 4-year-old learning about sizes. "
    "Pick two cute, familiar things (animals, fruit, toys, everyday objects) where one is "
    "clearly BIG and the other clearly SMALL, and a target size (big or small). "
    "Names MUST be in Simplified Chinese (Mandarin). "
    "Give each object a single emoji and a soft pastel background colour hex code.\n"
    "Return JSON only, shaped like:\n"
    '{"big": {"name": "狮子", "emoji": "🦁", "colorHex": "#FFE0B2"}, '
    '"small": {"name": "老鼠", "emoji": "🐭", "colorHex": "#C5CAE9"}, '
    '"targetAttribute": "small"}'
)


def build_prompt(history: Sequence[Question] = ()) -> str:
    used = sorted({name for q in history for name in q.names})
    if not used:
        return PROMPT
    return PROMPT + "\nDo not use any of these objects: " + "、".join(used)


def _object(data: Any, is_big: bool) -> GameObject:
    if not isinstance(data, dict):
        raise InvalidQuestion(f"Expected an object, got {data!r}")
    name = str(data.get("name") or "").strip()
    if not name:
        raise InvalidQuestion("Object without a name")
    return GameObject(
        name=name,
        glyph=str(data.get("emoji") or "❓"),
        color_hint=str(data.get("colorHex") or "#FFFFFF"),
        is_big=is_big,
    )


def parse_question(text: str, rnd: random.Random) -> Question:
    """Turn the model's JSON reply into a Question, shuffling display order."""
    try:
        payload: Dict[str, Any] = json.loads(text)
    except (TypeError, ValueError) as e:
        raise InvalidQuestion(f"Model reply is not JSON: {e}") from e
    if not isinstance(payload, dict):
        raise InvalidQuestion("Model reply is not a JSON object")

    big = _object(payload.get("big"), is_big=True)
    small = _object(payload.get("small"), is_big=False)
    if big.name == small.name:
        raise InvalidQuestion(f"Model returned the same object twice: {big.name}")

    target = str(payload.get("targetAttribute") or "").lower()
    if target not in TARGETS:
        target = rnd.choice(TARGETS)

    if rnd.random() < 0.5:
        return Question(big, small, target)
    return Question(small, big, target)


class GeminiQuestionProvider(QuestionProvider):
    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-2.5-flash",
        seed: Optional[int] = None,
        model: Any = None,
        temperature: float = 1.0,
    ):
        if model is None:
            if not api_key:
                raise RuntimeError("GEMINI_API_KEY is missing. Set it in your .env file.")
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name)
        self.model = model
        self.temperature = temperature
        self.rnd = random.Random(seed)

    def _generate(self, prompt: str) -> str:
        response = self.model.generate_content(
            prompt,
            generation_config={
                "temperature": self.temperature,
                "response_mime_type": "application/json",
            },
        )
        return (response.text or "").strip()

    async def fetch_question(self, history: Sequence[Question] = ()) -> Question:
        try:
            text = await asyncio.to_thread(self._generate, build_prompt(history))
        except Exception as e:
            raise ProviderError(f"Gemini request failed: {e}") from e
        if not text:
            raise ProviderError("No response from Gemini")
        question = parse_question(text, self.rnd)
        log.debug("Gemini question: %s vs %s, find %s",
                  question.object1.name, question.object2.name, question.target_attribute)
        return question
