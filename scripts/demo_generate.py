"""Demo script: generate a video against a running server and download it.

Run with:
    python -m penguin_studio            # in one shell
    python3 scripts/demo_generate.py "a cat walking on a beach" --resolution 720p

Pass --image to use image-to-video instead of a text prompt.
"""

import argparse
import asyncio

from penguin_studio.client import StudioClient
from penguin_studio.errors import StudioError


async def run(args: argparse.Namespace) -> int:
    async with StudioClient(args.server) as client:
        health = await client.health()
        print("Server:", health["status"], "| API key configured:", health["apiKeyConfigured"])

        try:
            if args.image:
                created = await client.generate_image(
                    args.image, prompt=args.prompt, duration=args.duration,
                    resolution=args.resolution, audio=not args.no_audio,
                )
            else:
                created = await client.generate_text(
                    args.prompt, duration=args.duration,
                    resolution=args.resolution, audio=not args.no_audio,
                )
        except StudioError as e:
            print("❌ Submission rejected:", e.message)
            return 1

        print("🎬 Task created:", created.task_id)

        poll = client.poll(created.task_id, interval=args.interval)
        try:
            async for snapshot in poll:
                print(f"  {snapshot.status.value if snapshot.status else '-'}: {snapshot.progress or 0}%")
        except StudioError as e:
            print("❌ Status check failed:", e.message)
            return 1

        final = poll.last
        if final is None or not final.success or final.video_url is None:
            print("❌ Generation did not finish:", final.error if final else "no status")
            return 1

        dest = args.output or f"penguin-video-{created.task_id}.mp4"
        await client.download(created.task_id, dest)
        print("✅ Saved", dest)
        return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("prompt", nargs="?", default="")
    parser.add_argument("--image")
    parser.add_argument("--duration", type=int, choices=(5, 10), default=5)
    parser.add_argument("--resolution", choices=("480p", "720p", "1080p"), default="720p")
    parser.add_argument("--no-audio", action="store_true")
    parser.add_argument("--interval", type=float, default=3.0)
    parser.add_argument("--output")
    parser.add_argument("--server", default="http://localhost:3000")
    raise SystemExit(asyncio.run(run(parser.parse_args())))


if __name__ == "__main__":
    main()
