import asyncio
from typing import List, Optional, Sequence

from audio import AudioClip, AudioProvider
from questions import GameObject, ProviderError, Question, QuestionProvider

LION = GameObject("狮子", "🦁", "#FFE0B2", True)
MOUSE = GameObject("老鼠", "🐭", "#C5CAE9", False)
WHALE = GameObject("鲸鱼", "🐋", "#80DEEA", True)
FISH = GameObject("小鱼", "🐠", "#B39DDB", False)


def lion_mouse(target: str = "small") -> Question:
    return Question(LION, MOUSE, target)


class ScriptedQuestions(QuestionProvider):
    """Serves the given questions in order, failing the first `failures` calls."""

    def __init__(self, questions: Sequence[Question], failures: int = 0):
        self.questions = list(questions)
        self.failures = failures
        self.calls = 0
        self.served = 0
        self.histories: List[List[Question]] = []

    async def fetch_question(self, history: Sequence[Question] = ()) -> Question:
        self.calls += 1
        self.histories.append(list(history))
        if self.failures > 0:
            self.failures -= 1
            raise ProviderError("provider offline")
        q = self.questions[self.served % len(self.questions)]
        self.served += 1
        return q


class RecordingAudio(AudioProvider):
    def __init__(self, fail_feedback: bool = False, fail_play: bool = False,
                 gate: Optional[asyncio.Event] = None, feedback_hold: float = 0.0):
        super().__init__(seed=0)
        self.feedback_hold = feedback_hold
        self.fail_feedback = fail_feedback
        self.fail_play = fail_play
        self.gate = gate
        self.synthesized: List[str] = []
        self.played: List[str] = []

    async def fetch_feedback_audio(self, was_correct: bool) -> AudioClip:
        if self.fail_feedback:
            raise ProviderError("speech service down")
        if self.feedback_hold:
            await asyncio.sleep(self.feedback_hold)
        return await super().fetch_feedback_audio(was_correct)

    async def synthesize(self, text: str) -> AudioClip:
        self.synthesized.append(text)
        return AudioClip(text=text)

    async def play(self, clip: AudioClip) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_play:
            raise ProviderError("no speaker")
        self.played.append(clip.text)


async def wait_for(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)
