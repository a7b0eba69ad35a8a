# views.py
from __future__ import annotations
from typing import Any, Dict, Optional

from game import RoundState, Screen

View = Dict[str, Any]

TITLE = "大小大挑战"
SUBTITLE = '学习 "大" 和 "小" 的概念'


def _header(state: RoundState) -> Dict[str, Any]:
    return {
        "round": state.round,
        "total_rounds": state.total_rounds,
        "score": state.score,
        "can_replay": bool(state.prompt_text) and state.current_question is not None and not state.audio_busy,
    }


def _medal(score: int, total: int) -> str:
    if score == total:
        return "🏆"
    if score * 2 >= total:
        return "⭐"
    return "💪"


def render_view(state: RoundState) -> View:
    """Describe what the presentation layer should show for a snapshot."""
    screen = state.screen

    if screen is Screen.WELCOME:
        return {"kind": "welcome", "title": TITLE, "subtitle": SUBTITLE, "action": "start"}

    if screen is Screen.GAME_OVER:
        perfect = state.score == state.total_rounds
        return {
            "kind": "game_over",
            "score": state.score,
            "total_rounds": state.total_rounds,
            "medal": _medal(state.score, state.total_rounds),
            "message": "哇！你是大小专家！" if perfect else "做得很棒，继续加油！",
            "action": "restart",
        }

    q = state.current_question
    if screen is Screen.LOADING or q is None:
        return {"kind": "loading", "header": _header(state)}

    enabled = screen is Screen.PLAYING and not state.audio_busy
    overlay: Optional[Dict[str, Any]] = None
    if screen in (Screen.SUCCESS, Screen.FAILURE) and state.feedback.shown:
        overlay = {"correct": state.feedback.was_correct}

    return {
        "kind": "playing",
        "header": _header(state),
        "target": q.target_attribute,
        "prompt": f"请找出{'大' if q.target_attribute == 'big' else '小'}的",
        "choices": [
            {"choice": i, "name": o.name, "glyph": o.glyph, "color": o.color_hint, "enabled": enabled}
            for i, o in ((1, q.object1), (2, q.object2))
        ],
        "overlay": overlay,
        "busy": state.audio_busy,
    }


def format_view(view: View) -> str:
    """Plain-text rendering for terminals."""
    kind = view["kind"]
    if kind == "welcome":
        return f"{view['title']}\n{view['subtitle']}\n[s] 开始游戏!"
    if kind == "game_over":
        return (f"游戏结束! {view['medal']}\n"
                f"你的得分: {view['score']} / {view['total_rounds']}\n"
                f"{view['message']}\n[s] 再玩一次")

    h = view["header"]
    top = f"第 {h['round']} / {h['total_rounds']} 题   得分: {h['score']}"
    if kind == "loading":
        return f"{top}\n..."

    lines = [top, view["prompt"]]
    for c in view["choices"]:
        lines.append(f"  [{c['choice']}] {c['glyph']} {c['name']}")
    if view["overlay"] is not None:
        lines.append("✅ 答对了!" if view["overlay"]["correct"] else "❌ 不对哦")
    elif view["busy"]:
        lines.append("播放中...")
    elif h["can_replay"]:
        lines.append("[r] 重听")
    return "\n".join(lines)
