"""
play.py

Play the size quiz in a terminal on this machine, no server needed.
With --audio speaker the prompts are spoken through the local speakers.
"""

import argparse
import asyncio
import logging

import config
from audio import MixerContext
from game import RoundSession, RoundState
from providers import build_audio_provider, build_question_provider
from views import format_view, render_view


def _show(state: RoundState) -> None:
    print("\n" + format_view(render_view(state)))


async def run(args: argparse.Namespace) -> None:
    session = RoundSession(
        build_question_provider(args.questions),
        build_audio_provider(args.audio),
        total_rounds=args.rounds,
        on_change=_show,
    )
    _show(session.state)
    pending = set()
    try:
        while True:
            key = (await asyncio.to_thread(input, "> ")).strip().lower()
            if key == "q":
                break
            q = session.state.current_question
            if key == "s":
                op = session.start()
            elif key == "r":
                op = session.replay_instruction()
            elif key in ("1", "2") and q is not None:
                op = session.submit_answer(q.choice_is_big(int(key)))
            else:
                continue
            task = asyncio.create_task(op)
            pending.add(task)
            task.add_done_callback(pending.discard)
    finally:
        session.close()
        for task in list(pending):
            task.cancel()
        if args.audio == "speaker":
            MixerContext.shutdown()


def main() -> None:
    parser = argparse.ArgumentParser(description="Big/small picture quiz for the terminal")
    parser.add_argument("--rounds", type=int, default=config.TOTAL_ROUNDS)
    parser.add_argument("--questions", choices=["static", "gemini"], default=config.QUESTION_SOURCE)
    parser.add_argument("--audio", choices=["silent", "speaker"],
                        default="speaker" if config.AUDIO_MODE == "speaker" else "silent")
    args = parser.parse_args()

    logging.basicConfig(level=config.LOG_LEVEL)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
