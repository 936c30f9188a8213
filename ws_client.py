"""Stream a WAV file (or a synthetic tone) to the gateway and print its events."""

import argparse
import asyncio
import json
import wave

import numpy as np
import websockets


async def stream(uri: str, wav_path: str | None = None, show_volume: bool = False) -> None:
    async with websockets.connect(uri, close_timeout=2) as ws:
        sample_rate, channels = 16000, 1
        if wav_path:
            with wave.open(wav_path, "rb") as wf:
                print(f"WAV: {wf.getnchannels()}ch, {wf.getframerate()}Hz, {wf.getnframes()} frames")
                sample_rate, channels = wf.getframerate(), wf.getnchannels()
                data = wf.readframes(wf.getnframes())
        else:
            t = np.linspace(0, 3, 16000 * 3, dtype=np.float32)
            tone = (np.sin(2 * np.pi * 440 * t) * 16000).astype(np.int16)
            data = tone.tobytes()

        await ws.send(json.dumps({
            "type": "start",
            "sampleRate": sample_rate,
            "channels": channels,
            "encoding": "pcm_s16le",
        }))
        print("Sent start")

        chunk_size = sample_rate * channels * 2  # 1s of 16-bit audio
        total_chunks = (len(data) + chunk_size - 1) // chunk_size
        for i in range(0, len(data), chunk_size):
            await ws.send(data[i:i + chunk_size])
            print(f"Sent chunk {i // chunk_size + 1}/{total_chunks}")
            # Pace like a live microphone so the pipelines get to run.
            await asyncio.sleep(1.0)

        await ws.send(json.dumps({"type": "end"}))
        print("Sent end, waiting...\n")

        async for msg in ws:
            resp = json.loads(msg)
            if resp.get("type") == "volume" and not show_volume:
                continue
            print(json.dumps(resp, indent=2))
            if resp.get("type") == "final_summary":
                break

    print("\nDone.")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("wav", nargs="?", help="16-bit PCM WAV file to stream")
    parser.add_argument("--uri", default="ws://localhost:8000/audio")
    parser.add_argument("--volume", action="store_true", help="also print volume events")
    args = parser.parse_args()
    try:
        asyncio.run(stream(args.uri, args.wav, args.volume))
    except websockets.exceptions.ConnectionClosedError:
        pass


if __name__ == "__main__":
    main()
