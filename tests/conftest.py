# tests/conftest.py
import asyncio
from pathlib import Path

import pytest

from fakes import encode_png, solid_pixels
from veriframe.domain.models import AnalysisRequest
from veriframe.domain.settings import AnalysisSettings


@pytest.fixture
def settings():
    """Defaults with an explicit binary so nothing consults the environment."""
    return AnalysisSettings(ffmpeg_binary="ffmpeg")


@pytest.fixture
def request_for(tmp_path: Path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"\x00\x00\x00\x18ftypmp42")  # content is never decoded by the fakes
    return AnalysisRequest(path=video, file_name="clip.mp4")


@pytest.fixture
def gray_frame():
    return encode_png(solid_pixels(128))


@pytest.fixture
def capture_progress():
    events = []

    def cb(message: str, percent: int):
        events.append((message, percent))

    return events, cb


@pytest.fixture
def run():
    """Drive a coroutine to completion from a plain test."""
    return asyncio.run
