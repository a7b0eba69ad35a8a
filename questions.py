# questions.py
from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set

TARGETS = ("big", "small")


class ProviderError(Exception):
    """A question or audio provider could not deliver."""


class InvalidQuestion(ProviderError, ValueError):
    """Question data that does not have exactly one correct answer."""


@dataclass(frozen=True)
class GameObject:
    name: str
    glyph: str
    color_hint: str
    is_big: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "glyph": self.glyph,
            "color_hint": self.color_hint,
            "is_big": self.is_big,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameObject":
        try:
            is_big = data["is_big"]
            if not isinstance(is_big, bool):
                raise InvalidQuestion(f"is_big must be a bool, got {is_big!r}")
            return cls(
                name=str(data["name"]),
                glyph=str(data["glyph"]),
                color_hint=str(data["color_hint"]),
                is_big=is_big,
            )
        except (KeyError, TypeError) as e:
            raise InvalidQuestion(f"Bad object data: {e!r}") from e


@dataclass(frozen=True)
class Question:
    """
    Two objects, one big and one small, plus the size the player must find.

    Which position is correct is always derived from is_big and
    target_attribute, never stored.
    """

    object1: GameObject
    object2: GameObject
    target_attribute: str

    def __post_init__(self) -> None:
        if self.target_attribute not in TARGETS:
            raise InvalidQuestion(f"target_attribute must be one of {TARGETS}, got {self.target_attribute!r}")
        if self.object1.is_big == self.object2.is_big:
            raise InvalidQuestion(
                f"{self.object1.name!r} and {self.object2.name!r} are the same size; no unique answer"
            )

    @property
    def correct_choice(self) -> int:
        return 1 if self.object1.is_big == (self.target_attribute == "big") else 2

    def is_correct(self, choice_is_big: bool) -> bool:
        return choice_is_big == (self.target_attribute == "big")

    def choice_is_big(self, choice: int) -> bool:
        if choice == 1:
            return self.object1.is_big
        if choice == 2:
            return self.object2.is_big
        raise ValueError(f"choice must be 1 or 2, got {choice!r}")

    @property
    def names(self) -> Set[str]:
        return {self.object1.name, self.object2.name}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object1": self.object1.to_dict(),
            "object2": self.object2.to_dict(),
            "target_attribute": self.target_attribute,
            "correct_choice": self.correct_choice,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        # correct_choice on the wire is informational only
        try:
            return cls(
                object1=GameObject.from_dict(data["object1"]),
                object2=GameObject.from_dict(data["object2"]),
                target_attribute=data["target_attribute"],
            )
        except (KeyError, TypeError) as e:
            raise InvalidQuestion(f"Bad question data: {e!r}") from e


@dataclass(frozen=True)
class ObjectPair:
    big: GameObject
    small: GameObject

    def __post_init__(self) -> None:
        if not self.big.is_big or self.small.is_big:
            raise InvalidQuestion(f"Pair {self.big.name}/{self.small.name} is not big/small")

    @property
    def names(self) -> Set[str]:
        return {self.big.name, self.small.name}


def _pair(big: tuple, small: tuple) -> ObjectPair:
    return ObjectPair(GameObject(*big, is_big=True), GameObject(*small, is_big=False))


OBJECT_PAIRS: List[ObjectPair] = [
    # animals
    _pair(("大象", "🐘", "#B3E5FC"), ("老鼠", "🐭", "#C5CAE9")),
    _pair(("鲸鱼", "🐋", "#80DEEA"), ("小鱼", "🐠", "#B39DDB")),
    _pair(("长颈鹿", "🦒", "#FFAB91"), ("小鸟", "🐦", "#DCEDC8")),
    _pair(("老虎", "🐯", "#FFAB91"), ("小猫", "🐱", "#D7CCC8")),
    # fruit
    _pair(("西瓜", "🍉", "#C8E6C9"), ("草莓", "🍓", "#F8BBD0")),
    _pair(("菠萝", "🍍", "#FFF9C4"), ("葡萄", "🍇", "#E1BEE7")),
    _pair(("椰子", "🥥", "#FFE0B2"), ("樱桃", "🍒", "#F8BBD0")),
    # everyday things
    _pair(("汽车", "🚗", "#B39DDB"), ("自行车", "🚲", "#FFCC80")),
    _pair(("房子", "🏠", "#FFAB91"), ("帐篷", "⛺", "#80DEEA")),
    _pair(("书包", "🎒", "#D7CCC8"), ("铅笔", "✏️", "#FFECB3")),
    # nature
    _pair(("大树", "🌳", "#A5D6A7"), ("小花", "🌷", "#F48FB1")),
    _pair(("太阳", "☀️", "#FFECB3"), ("星星", "⭐", "#E1BEE7")),
    _pair(("大山", "⛰️", "#A1887F"), ("石头", "🪨", "#BCAAA4")),
    # food
    _pair(("披萨", "🍕", "#FFCDD2"), ("糖果", "🍬", "#F8BBD0")),
    _pair(("汉堡", "🍔", "#FFE0B2"), ("薯条", "🍟", "#FFF9C4")),
]


def build_question(pair: ObjectPair, target_attribute: str, big_first: bool) -> Question:
    if big_first:
        return Question(pair.big, pair.small, target_attribute)
    return Question(pair.small, pair.big, target_attribute)


class QuestionProvider:
    """Source of questions. Implementations raise ProviderError and never retry."""

    async def fetch_question(self, history: Sequence[Question] = ()) -> Question:
        raise NotImplementedError


class QuestionBank(QuestionProvider):
    def __init__(self, pairs: Optional[Sequence[ObjectPair]] = None, seed: Optional[int] = None):
        self.rnd = random.Random(seed)
        self.pairs: List[ObjectPair] = list(OBJECT_PAIRS if pairs is None else pairs)
        if not self.pairs:
            raise ValueError("QuestionBank needs at least one pair")

    def sample_question(self, history: Sequence[Question] = ()) -> Question:
        seen: Set[str] = set()
        for q in history:
            seen |= q.names
        cand = [p for p in self.pairs if not (p.names & seen)]
        if not cand:
            # every pair was used recently: allow repeats
            cand = self.pairs
        pair = self.rnd.choice(cand)
        target = self.rnd.choice(TARGETS)
        return build_question(pair, target, big_first=self.rnd.random() < 0.5)

    async def fetch_question(self, history: Sequence[Question] = ()) -> Question:
        return self.sample_question(history)
