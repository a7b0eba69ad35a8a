import asyncio, json, sys

import websockets

from views import format_view

URI = "ws://127.0.0.1:8080/ws"

KEYS = "[s] start  [1/2] answer  [r] replay  [q] quit"


async def main(uri: str):
    async with websockets.connect(uri) as ws:

        async def reader():
            while True:
                data = json.loads(await ws.recv())
                t = data.get("type")
                if t == "state":
                    print("\n" + format_view(data["view"]))
                elif t == "audio":
                    # audio bytes are for a real speaker; a terminal just shows the words
                    if data.get("text"):
                        print(f"🔊 {data['text']}")
                else:
                    print(f"<< {data}")

        async def writer():
            mapping = {"s": {"type": "start"}, "r": {"type": "replay"},
                       "1": {"type": "answer", "choice": 1}, "2": {"type": "answer", "choice": 2}}
            while True:
                key = (await asyncio.to_thread(input, f"{KEYS}\n> ")).strip().lower()
                if key == "q":
                    return
                if key in mapping:
                    await ws.send(json.dumps(mapping[key]))

        read_task = asyncio.create_task(reader())
        try:
            await writer()
        finally:
            read_task.cancel()

if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else URI))
