import asyncio
import json

import httpx  # streaming HTTP client; to install: pip install httpx

async def main():
    url = "http://127.0.0.1:3001/events"
    # no read timeout: the stream stays open until the server goes away
    async with httpx.AsyncClient(timeout=httpx.Timeout(5.0, read=None)) as client:
        async with client.stream("GET", url, headers={"Accept": "text/event-stream"}) as resp:
            resp.raise_for_status()
            print("Awaiting scores... (press Ctrl+C to exit)")
            async for line in resp.aiter_lines():
                # frames are "data: {...}" followed by a blank line; ":" lines are heartbeats
                if not line.startswith("data:"):
                    continue
                payload = json.loads(line[len("data:"):].strip())
                score = payload.get("score")
                if score is None:
                    continue
                print(f"team1 {score['team1']} - {score['team2']} team2")

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Disconnected.")
