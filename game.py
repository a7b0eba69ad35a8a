from __future__ import annotations

import asyncio
import functools
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Set, Tuple

import config
from audio import AudioProvider
from questions import ProviderError, Question, QuestionProvider

log = logging.getLogger("size-quiz.game")

Listener = Callable[["RoundState"], Any]


class Screen(str, Enum):
    WELCOME = "welcome"
    LOADING = "loading"
    PLAYING = "playing"
    SUCCESS = "success"
    FAILURE = "failure"
    GAME_OVER = "game_over"


class InvalidTransition(Exception):
    """An operation was called while its preconditions do not hold."""


@dataclass(frozen=True)
class Feedback:
    shown: bool = False
    was_correct: bool = False


@dataclass(frozen=True)
class RoundState:
    screen: Screen = Screen.WELCOME
    round: int = 1
    score: int = 0
    total_rounds: int = config.TOTAL_ROUNDS
    current_question: Optional[Question] = None
    feedback: Feedback = field(default_factory=Feedback)
    audio_busy: bool = False
    prompt_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "screen": self.screen.value,
            "round": self.round,
            "score": self.score,
            "total_rounds": self.total_rounds,
            "current_question": self.current_question.to_dict() if self.current_question else None,
            "feedback": {"shown": self.feedback.shown, "was_correct": self.feedback.was_correct},
            "audio_busy": self.audio_busy,
            "prompt_text": self.prompt_text,
        }


def transition(method: Callable[..., Awaitable[bool]]) -> Callable[..., Awaitable[bool]]:
    """Public operations are total: a failed precondition is a logged no-op."""

    @functools.wraps(method)
    async def wrapper(self: "RoundSession", *args: Any, **kwargs: Any) -> bool:
        try:
            return await method(self, *args, **kwargs)
        except InvalidTransition as e:
            log.debug("Ignored %s: %s", method.__name__, e)
            return False

    return wrapper


class RoundSession:
    """
    Authoritative state for one play session.

    All mutation happens on the event loop that drives the session. The only
    suspension points are provider calls and the two timers (retry after a
    failed fetch, advance after feedback). Every deferred step carries the
    generation it was scheduled in and does nothing once close() has bumped it.
    """

    def __init__(
        self,
        questions: QuestionProvider,
        audio: AudioProvider,
        total_rounds: int = config.TOTAL_ROUNDS,
        retry_delay: float = config.RETRY_DELAY_S,
        feedback_delay: float = config.FEEDBACK_DELAY_S,
        history_size: int = config.HISTORY_SIZE,
        on_change: Optional[Listener] = None,
    ):
        if total_rounds < 1:
            raise ValueError(f"total_rounds must be >= 1, got {total_rounds}")
        self.questions = questions
        self.audio = audio
        self.retry_delay = retry_delay
        self.feedback_delay = feedback_delay

        self._state = RoundState(total_rounds=total_rounds)
        self._history: Deque[Question] = deque(maxlen=max(0, history_size))
        self._listeners: List[Listener] = []
        self._timers: Set[asyncio.Task] = set()
        self._generation = 0
        self._closed = False
        self._replaying: Optional[asyncio.Event] = None

        if on_change is not None:
            self.subscribe(on_change)

    # ----------------- Snapshot / listeners -----------------

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _set(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                log.exception("State listener failed")

    def _check(self, ok: bool, why: str) -> None:
        if self._closed:
            raise InvalidTransition("session is closed")
        if not ok:
            raise InvalidTransition(f"{why} (screen={self._state.screen.value}, audio_busy={self._state.audio_busy})")

    def _live(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    # ----------------- Public operations -----------------

    @transition
    async def start(self) -> bool:
        self._check(self._state.screen in (Screen.WELCOME, Screen.GAME_OVER), "start only from welcome or game over")
        self._cancel_timers()
        self._generation += 1
        self._history.clear()
        self._set(
            round=1,
            score=0,
            current_question=None,
            feedback=Feedback(),
            prompt_text="",
        )
        log.info("Session started (%d rounds)", self._state.total_rounds)
        await self._load_round(self._generation)
        return True

    @transition
    async def submit_answer(self, choice_is_big: bool) -> bool:
        st = self._state
        self._check(
            st.screen is Screen.PLAYING and st.current_question is not None and not st.audio_busy,
            "answer only while playing and not busy",
        )
        generation = self._generation
        loop = asyncio.get_running_loop()

        is_correct = st.current_question.is_correct(choice_is_big)
        shown_at = loop.time()
        # Input is gated from here on: screen leaves PLAYING before the first await.
        self._set(
            screen=Screen.SUCCESS if is_correct else Screen.FAILURE,
            score=st.score + (1 if is_correct else 0),
            feedback=Feedback(shown=True, was_correct=is_correct),
            audio_busy=True,
        )
        log.info("Round %d/%d: %s (score %d)", st.round, st.total_rounds,
                 "correct" if is_correct else "wrong", self._state.score)

        try:
            clip = await self.audio.fetch_feedback_audio(is_correct)
            await self.audio.play(clip)
        except Exception as e:
            log.warning("Feedback audio unavailable: %s", e)

        if not self._live(generation):
            return True
        self._set(audio_busy=False)

        remaining = max(0.0, self.feedback_delay - (loop.time() - shown_at))
        self._schedule(remaining, self._advance, generation)
        return True

    @transition
    async def replay_instruction(self) -> bool:
        st = self._state
        self._check(
            bool(st.prompt_text) and st.current_question is not None and not st.audio_busy,
            "nothing to replay or audio busy",
        )
        generation = self._generation
        question = st.current_question
        done = self._replaying = asyncio.Event()
        self._set(audio_busy=True)
        try:
            clip = await self.audio.synthesize(st.prompt_text)
            await self.audio.play(clip)
        except Exception as e:
            log.warning("Replay failed: %s", e)
        finally:
            done.set()
        if self._live(generation) and self._state.current_question is question:
            self._set(audio_busy=False)
        return True

    def close(self) -> None:
        """Tear down: no state changes happen after this returns."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._cancel_timers()
        log.debug("Session closed")

    # ----------------- Round lifecycle -----------------

    async def _load_round(self, generation: int) -> None:
        if not self._live(generation):
            return
        self._set(
            screen=Screen.LOADING,
            current_question=None,
            feedback=Feedback(),
            audio_busy=True,
            prompt_text="",
        )

        try:
            question = await self.questions.fetch_question(list(self._history))
            if not isinstance(question, Question):
                raise ProviderError(f"Provider returned {type(question).__name__}, not a Question")
        except ProviderError as e:
            self._retry_load(generation, e)
            return
        except Exception as e:
            log.exception("Question provider raised unexpectedly")
            self._retry_load(generation, e)
            return

        if not self._live(generation):
            return
        self._history.append(question)
        self._set(screen=Screen.PLAYING, current_question=question)

        try:
            clip, prompt = await self.audio.fetch_instruction_audio(question)
        except Exception as e:
            log.warning("Instruction audio unavailable: %s", e)
            clip, prompt = None, self.audio.instruction_text(question)

        if not self._live(generation):
            return
        self._set(prompt_text=prompt)
        if clip is not None:
            try:
                await self.audio.play(clip)
            except Exception as e:
                log.warning("Instruction playback failed: %s", e)

        if self._live(generation) and self._state.current_question is question:
            self._set(audio_busy=False)

    def _retry_load(self, generation: int, err: Exception) -> None:
        if not self._live(generation):
            return
        log.warning("Failed to load round %d: %s; retrying in %.1fs", self._state.round, err, self.retry_delay)
        self._set(audio_busy=False)
        self._schedule(self.retry_delay, self._load_round, generation)

    async def _advance(self, generation: int) -> None:
        if not self._live(generation):
            return
        # a replay started in the feedback window finishes before the next round
        while self._replaying is not None and not self._replaying.is_set():
            await self._replaying.wait()
            if not self._live(generation):
                return
        st = self._state
        if st.round < st.total_rounds:
            self._set(feedback=replace(st.feedback, shown=False), round=st.round + 1)
            await self._load_round(generation)
        else:
            self._set(feedback=replace(st.feedback, shown=False), screen=Screen.GAME_OVER, prompt_text="")
            log.info("Game over: %d/%d", st.score, st.total_rounds)

    # ----------------- Timers -----------------

    def _schedule(self, delay: float, step: Callable[[int], Awaitable[None]], generation: int) -> None:
        async def run() -> None:
            await asyncio.sleep(delay)
            await step(generation)

        task = asyncio.create_task(run())
        self._timers.add(task)
        task.add_done_callback(self._timers.discard)

    def _cancel_timers(self) -> None:
        for task in list(self._timers):
            task.cancel()
        self._timers.clear()


class SessionManager:
    """Tracks live sessions so the server can tear them down."""

    def __init__(self):
        self.sessions: Dict[str, RoundSession] = {}

    def create(
        self,
        questions: QuestionProvider,
        audio: AudioProvider,
        on_change: Optional[Listener] = None,
        **kwargs: Any,
    ) -> Tuple[str, RoundSession]:
        sid = f"s-{uuid.uuid4().hex[:8]}"
        session = RoundSession(questions, audio, on_change=on_change, **kwargs)
        self.sessions[sid] = session
        return sid, session

    def get(self, sid: str) -> Optional[RoundSession]:
        return self.sessions.get(sid)

    def close(self, sid: str) -> None:
        session = self.sessions.pop(sid, None)
        if session:
            session.close()

    def close_all(self) -> None:
        for sid in list(self.sessions.keys()):
            self.close(sid)
