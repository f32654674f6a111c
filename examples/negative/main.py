#!/usr/bin/env python3
"""
Negative Developer

Takes every JPEG/PNG/GIF in a folder and produces N "dreams" of each:
color negatives with a random tint. Each photo's runs go one at a time
through a deliberately slow executor, and the photos themselves are
processed one after another by a PhotoRegistry.

Demonstrates:
- Photo runs with a real executor (numpy + Pillow)
- Cooperative cancellation through the token
- Rerunning failed runs
- Status change callbacks driving a progress printout

Usage:
    python main.py ./photos
    python main.py ./photos --runs 5 --device slow
    python main.py ./photos --fail-rate 0.3 --retry
"""

import argparse
import asyncio
import logging
import random
import shutil
from pathlib import Path

import numpy as np
from PIL import Image, ImageSequence

import photocue
from photocue import DeviceClass, PhotoRegistry, ValidationError

OUTPUT_DIR = Path("output")


def develop(run: photocue.PhotoRun, token: photocue.CancelToken, fail_rate: float) -> str:
    """Write one tinted negative of the run's photo. Runs in a worker thread."""
    photo = run.photo
    tint = np.array([random.uniform(0.6, 1.0) for _ in range(3)])

    frames = []
    with Image.open(photo.file.path) as image:
        for frame in ImageSequence.Iterator(image):
            token.raise_if_cancelled()
            pixels = np.asarray(frame.convert("RGB"), dtype=np.float64)
            negative = (255.0 - pixels) * tint
            frames.append(Image.fromarray(negative.clip(0, 255).astype(np.uint8)))

    if random.random() < fail_rate:
        raise photocue.ExecutorError("The developer spilled the chemicals")

    out_dir = OUTPUT_DIR / photo.file.name
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"dream_{run.id}{photo.file.extension}"

    if len(frames) > 1:
        frames[0].save(out_path, save_all=True, append_images=frames[1:], loop=0)
    else:
        frames[0].save(out_path)

    return str(out_path)


async def run(args) -> None:
    settings = photocue.Settings(
        device=DeviceClass(args.device),
        preferences=photocue.Preferences(executions=args.runs),
    )

    def executor(run, token):
        return develop(run, token, args.fail_rate)

    registry = PhotoRegistry()

    @registry.on_update
    def on_update(photo, old, new):
        counts = registry.counts()
        done = counts[photocue.PhotoStatus.FINISHED]
        print(f"  {photo.file.fullname:<30} {old.value:>9} -> {new.value:<9} ({done}/{len(registry)} done)", flush=True)

    for path in sorted(Path(args.folder).iterdir()):
        try:
            photo = photocue.Photo(path, executor, settings=settings)
        except ValidationError as e:
            print(f"  Skipping {path.name}: {e.message}")
            continue
        registry.enqueue(photo)

    if not len(registry):
        print("No photos found.")
        return

    await registry.wait_idle()

    if args.retry:
        for photo in registry:
            failed = [r for r in photo.runs if r.failed]
            for failed_run in failed:
                print(f"  Rerunning {photo.file.fullname} #{failed_run.id}")
                photo.rerun(failed_run)
            if failed:
                await photo.wait()

    print()
    for photo in registry:
        outcomes = [r.outcome for r in photo.runs if r.finished]
        print(f"{photo.file.fullname}: {len(outcomes)}/{len(photo.runs)} dreams in {photo.timer.duration:.1f}s")


def main():
    parser = argparse.ArgumentParser(
        description="Develop color negatives of every photo in a folder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("folder", help="Folder with JPEG, PNG or GIF files")
    parser.add_argument("--runs", type=int, default=3, help="Dreams per photo (default: 3)")
    parser.add_argument("--device", choices=["fast", "slow"], default="fast", help="Device class (default: fast)")
    parser.add_argument("--fail-rate", type=float, default=0.0, help="Chance a run fails (default: 0)")
    parser.add_argument("--retry", action="store_true", help="Rerun failed runs once")
    parser.add_argument("--clean", action="store_true", help="Remove previous output first")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show photocue debug logs")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if args.clean and OUTPUT_DIR.exists():
        shutil.rmtree(OUTPUT_DIR)
    OUTPUT_DIR.mkdir(exist_ok=True)

    print(f"Developing {args.runs} dream(s) per photo from {args.folder}\n")
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
