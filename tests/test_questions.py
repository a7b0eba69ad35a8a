import unittest

from questions import (
    OBJECT_PAIRS,
    GameObject,
    InvalidQuestion,
    ObjectPair,
    ProviderError,
    Question,
    QuestionBank,
    build_question,
)
from helpers import FISH, LION, MOUSE, WHALE, lion_mouse


class QuestionContractTest(unittest.TestCase):
    def test_same_size_objects_are_rejected(self) -> None:
        with self.assertRaises(InvalidQuestion):
            Question(LION, WHALE, "big")
        with self.assertRaises(InvalidQuestion):
            Question(MOUSE, FISH, "small")

    def test_unknown_target_is_rejected(self) -> None:
        with self.assertRaises(InvalidQuestion):
            Question(LION, MOUSE, "medium")

    def test_invalid_question_is_a_provider_error(self) -> None:
        self.assertTrue(issubclass(InvalidQuestion, ProviderError))
        self.assertTrue(issubclass(InvalidQuestion, ValueError))

    def test_correct_choice_follows_size_and_target(self) -> None:
        self.assertEqual(Question(LION, MOUSE, "big").correct_choice, 1)
        self.assertEqual(Question(LION, MOUSE, "small").correct_choice, 2)
        self.assertEqual(Question(MOUSE, LION, "big").correct_choice, 2)
        self.assertEqual(Question(MOUSE, LION, "small").correct_choice, 1)

    def test_judging_rule_all_four_cases(self) -> None:
        self.assertTrue(lion_mouse("big").is_correct(True))
        self.assertFalse(lion_mouse("big").is_correct(False))
        self.assertTrue(lion_mouse("small").is_correct(False))
        self.assertFalse(lion_mouse("small").is_correct(True))

    def test_choice_maps_position_to_size(self) -> None:
        q = Question(MOUSE, LION, "big")
        self.assertFalse(q.choice_is_big(1))
        self.assertTrue(q.choice_is_big(2))
        self.assertTrue(q.is_correct(q.choice_is_big(q.correct_choice)))
        with self.assertRaises(ValueError):
            q.choice_is_big(3)

    def test_wire_correct_choice_is_not_trusted(self) -> None:
        data = lion_mouse("small").to_dict()
        self.assertEqual(data["correct_choice"], 2)
        data["correct_choice"] = 1
        q = Question.from_dict(data)
        self.assertEqual(q, lion_mouse("small"))
        self.assertEqual(q.correct_choice, 2)

    def test_from_dict_with_missing_fields(self) -> None:
        with self.assertRaises(InvalidQuestion):
            Question.from_dict({"object1": LION.to_dict(), "target_attribute": "big"})
        with self.assertRaises(InvalidQuestion):
            GameObject.from_dict({"name": "狮子"})

    def test_is_big_must_be_a_real_bool(self) -> None:
        for raw in ("false", 1, 0, None):
            with self.subTest(is_big=raw):
                with self.assertRaises(InvalidQuestion):
                    GameObject.from_dict(dict(MOUSE.to_dict(), is_big=raw))
        self.assertEqual(GameObject.from_dict(MOUSE.to_dict()), MOUSE)

    def test_object_pair_must_be_big_then_small(self) -> None:
        with self.assertRaises(InvalidQuestion):
            ObjectPair(MOUSE, LION)
        with self.assertRaises(InvalidQuestion):
            ObjectPair(LION, WHALE)

    def test_build_question_order(self) -> None:
        pair = ObjectPair(LION, MOUSE)
        self.assertEqual(build_question(pair, "big", big_first=True).object1, LION)
        self.assertEqual(build_question(pair, "big", big_first=False).object1, MOUSE)


class QuestionBankTest(unittest.IsolatedAsyncioTestCase):
    def test_pair_table_is_big_small(self) -> None:
        self.assertGreaterEqual(len(OBJECT_PAIRS), 10)
        for pair in OBJECT_PAIRS:
            self.assertTrue(pair.big.is_big, pair.big.name)
            self.assertFalse(pair.small.is_big, pair.small.name)
        names = [n for p in OBJECT_PAIRS for n in p.names]
        self.assertEqual(len(names), len(set(names)))

    def test_every_sample_has_one_correct_answer(self) -> None:
        bank = QuestionBank(seed=7)
        targets, firsts = set(), set()
        for _ in range(300):
            q = bank.sample_question()
            matches = [o for o in (q.object1, q.object2) if o.is_big == (q.target_attribute == "big")]
            self.assertEqual(len(matches), 1)
            self.assertNotEqual(q.object1.is_big, q.object2.is_big)
            targets.add(q.target_attribute)
            firsts.add(q.object1.is_big)
        self.assertEqual(targets, {"big", "small"})
        self.assertEqual(firsts, {True, False})

    def test_recent_pairs_are_avoided(self) -> None:
        pairs = [ObjectPair(LION, MOUSE), ObjectPair(WHALE, FISH), OBJECT_PAIRS[4]]
        bank = QuestionBank(pairs=pairs, seed=1)
        history = [lion_mouse("big"), Question(FISH, WHALE, "small")]
        for _ in range(30):
            q = bank.sample_question(history)
            self.assertEqual(q.names, OBJECT_PAIRS[4].names)

    def test_repeats_allowed_when_everything_was_recent(self) -> None:
        bank = QuestionBank(pairs=[ObjectPair(LION, MOUSE)], seed=1)
        q = bank.sample_question([lion_mouse()])
        self.assertEqual(q.names, {"狮子", "老鼠"})

    def test_empty_table_rejected(self) -> None:
        with self.assertRaises(ValueError):
            QuestionBank(pairs=[])

    def test_seeded_bank_is_deterministic(self) -> None:
        a, b = QuestionBank(seed=3), QuestionBank(seed=3)
        self.assertEqual([a.sample_question() for _ in range(5)], [b.sample_question() for _ in range(5)])

    async def test_fetch_question(self) -> None:
        q = await QuestionBank(seed=5).fetch_question()
        self.assertIsInstance(q, Question)


if __name__ == "__main__":
    unittest.main()
