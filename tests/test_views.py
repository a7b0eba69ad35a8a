import unittest

from game import Feedback, RoundState, Screen
from views import format_view, render_view
from helpers import lion_mouse


class RenderViewTest(unittest.TestCase):
    def test_welcome(self) -> None:
        view = render_view(RoundState())
        self.assertEqual(view["kind"], "welcome")
        self.assertEqual(view["action"], "start")
        self.assertIn("[s]", format_view(view))

    def test_loading_has_header(self) -> None:
        view = render_view(RoundState(screen=Screen.LOADING, round=4, score=2, audio_busy=True))
        self.assertEqual(view["kind"], "loading")
        self.assertEqual(view["header"], {"round": 4, "total_rounds": 10, "score": 2, "can_replay": False})

    def test_playing_choices_follow_display_order(self) -> None:
        state = RoundState(screen=Screen.PLAYING, current_question=lion_mouse("small"), prompt_text="请找出…")
        view = render_view(state)
        self.assertEqual(view["kind"], "playing")
        self.assertEqual(view["target"], "small")
        self.assertEqual(view["prompt"], "请找出小的")
        self.assertEqual([c["name"] for c in view["choices"]], ["狮子", "老鼠"])
        self.assertTrue(all(c["enabled"] for c in view["choices"]))
        self.assertIsNone(view["overlay"])
        self.assertTrue(view["header"]["can_replay"])
        text = format_view(view)
        self.assertIn("[1] 🦁 狮子", text)
        self.assertIn("[r]", text)

    def test_choices_disabled_while_audio_busy(self) -> None:
        state = RoundState(screen=Screen.PLAYING, current_question=lion_mouse(), audio_busy=True)
        view = render_view(state)
        self.assertFalse(any(c["enabled"] for c in view["choices"]))
        self.assertIn("播放中", format_view(view))

    def test_feedback_overlay(self) -> None:
        state = RoundState(
            screen=Screen.FAILURE,
            current_question=lion_mouse(),
            feedback=Feedback(shown=True, was_correct=False),
        )
        view = render_view(state)
        self.assertEqual(view["overlay"], {"correct": False})
        self.assertFalse(any(c["enabled"] for c in view["choices"]))
        self.assertIn("❌", format_view(view))

    def test_game_over_medals(self) -> None:
        cases = [(10, "🏆", "哇！你是大小专家！"), (5, "⭐", "做得很棒，继续加油！"), (4, "💪", "做得很棒，继续加油！")]
        for score, medal, message in cases:
            with self.subTest(score=score):
                view = render_view(RoundState(screen=Screen.GAME_OVER, score=score, round=10))
                self.assertEqual(view["kind"], "game_over")
                self.assertEqual(view["medal"], medal)
                self.assertEqual(view["message"], message)
                self.assertIn(f"{score} / 10", format_view(view))


if __name__ == "__main__":
    unittest.main()
