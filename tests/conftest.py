"""Shared fixtures: real image files and quiet settings."""

import pytest

import photocue
from helpers import write_image


@pytest.fixture
def png_file(tmp_path):
    return write_image(tmp_path / "photo.png")


@pytest.fixture
def jpeg_file(tmp_path):
    return write_image(tmp_path / "photo.jpg", color=(10, 120, 200))


@pytest.fixture
def gif_file(tmp_path):
    return write_image(tmp_path / "photo.gif", color=(40, 200, 40), frames=3)


@pytest.fixture
def settings():
    """Settings with no settle delay so tests run fast."""
    def make(executions: int = 3, **kwargs) -> photocue.Settings:
        kwargs.setdefault("after_process_delay", 0)
        return photocue.Settings(
            preferences=photocue.Preferences(executions=executions),
            **kwargs,
        )
    return make
