import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Set

import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

import config
from game import RoundSession, RoundState, SessionManager
from providers import build_audio_provider, build_question_provider
from views import render_view

logging.basicConfig(level=config.LOG_LEVEL)
log = logging.getLogger("size-quiz")

sessions = SessionManager()


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    sessions.close_all()


app = FastAPI(title="Size Quiz Server", version="0.1.0", lifespan=lifespan)

# Dev-friendly CORS for a local web client; restrict origins in production.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"ok": True, "sessions": len(sessions.sessions)}


def _safe_json_loads(raw: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
        return data if isinstance(data, dict) else {}
    except ValueError:
        return {}


def _state_msg(state: RoundState) -> Dict[str, Any]:
    return {"type": "state", "state": state.to_dict(), "view": render_view(state)}


def _operation(session: RoundSession, msg: Dict[str, Any]):
    """Map a client message to a session coroutine; returns an error string for bad input."""
    t = msg.get("type")
    if t == "start":
        return session.start()
    if t == "replay":
        return session.replay_instruction()
    if t == "answer":
        if "choice_is_big" in msg:
            if not isinstance(msg["choice_is_big"], bool):
                return "choice_is_big must be true or false"
            return session.submit_answer(msg["choice_is_big"])
        choice = msg.get("choice")
        if type(choice) is not int or choice not in (1, 2):
            return "answer needs choice 1 or 2"
        q = session.state.current_question
        if q is None:
            return None
        return session.submit_answer(q.choice_is_big(choice))
    return f"Unknown type: {t}"


async def _pump(ws: WebSocket, outbox: "asyncio.Queue[Dict[str, Any]]") -> None:
    while True:
        payload = await outbox.get()
        try:
            await ws.send_text(json.dumps(payload, ensure_ascii=False))
        except Exception as e:
            log.debug("Stopped sending: %s", e)
            return


@app.websocket("/ws")
async def ws_endpoint(ws: WebSocket):
    await ws.accept()
    outbox: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()
    tasks: Set[asyncio.Task] = set()

    async def send_audio(payload: Dict[str, Any]) -> None:
        await outbox.put(payload)

    try:
        questions = build_question_provider()
        audio = build_audio_provider(send=send_audio)
    except (RuntimeError, ValueError) as e:
        log.error("Cannot create session: %s", e)
        await ws.send_text(json.dumps({"type": "error", "message": str(e)}, ensure_ascii=False))
        await ws.close(code=1011)
        return

    sid, session = sessions.create(questions, audio, on_change=lambda st: outbox.put_nowait(_state_msg(st)))
    sender = asyncio.create_task(_pump(ws, outbox))
    outbox.put_nowait({"type": "hello", "session_id": sid})
    outbox.put_nowait(_state_msg(session.state))
    log.info("Session %s connected", sid)

    try:
        while True:
            raw = await ws.receive_text()
            msg = _safe_json_loads(raw)
            if not msg:
                outbox.put_nowait({"type": "error", "message": "Invalid JSON"})
                continue

            op = _operation(session, msg)
            if isinstance(op, str):
                outbox.put_nowait({"type": "error", "message": op})
            elif op is not None:
                # run in the background so taps keep arriving while audio plays
                task = asyncio.create_task(op)
                tasks.add(task)
                task.add_done_callback(tasks.discard)

    except WebSocketDisconnect:
        log.info("Session %s disconnected", sid)

    except Exception as e:
        log.exception("Server error for session %s: %s", sid, e)

    finally:
        sessions.close(sid)
        for task in list(tasks):
            task.cancel()
        sender.cancel()


def main(host: Optional[str] = None, port: Optional[int] = None) -> None:
    uvicorn.run(app, host=host or config.HOST, port=port or config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
