"""Executors and image helpers shared by the tests."""

import asyncio
from pathlib import Path

from PIL import Image


def write_image(path: Path, color=(200, 30, 30), frames: int = 1) -> Path:
    images = [Image.new("RGB", (16, 16), (color[0], color[1], (color[2] + i * 40) % 256)) for i in range(frames)]
    if frames > 1:
        images[0].save(path, save_all=True, append_images=images[1:], duration=50, loop=0)
    else:
        images[0].save(path)
    return path


async def quick_executor(run, token):
    await asyncio.sleep(0.01)
    return {"run": run.id}


def make_sleeper(seconds: float):
    """Executor that sleeps unless cancelled, honoring the token."""
    async def executor(run, token):
        try:
            await asyncio.wait_for(token.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
        token.raise_if_cancelled()
        return {"run": run.id}
    return executor
