import asyncio
import logging
import shutil
import tempfile
from collections import deque
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional

import ffmpeg

from veriframe.domain.settings import AnalysisSettings

logger = logging.getLogger(__name__)

LogListener = Callable[[str], None]

_GLOBAL_ARGS = ["-hide_banner", "-nostdin", "-nostats", "-y"]
_STDERR_LIMIT = 1024 * 1024


class EngineError(RuntimeError):
    """An ffmpeg pass failed."""


class EngineLoadError(EngineError):
    """ffmpeg could not be located or started."""


class FFmpegEngine:
    """
    One ffmpeg runtime bound to a single analysis.

    Owns a private scratch directory for temporary artifacts and forwards every
    stderr line of every pass to its subscribers. Only one pass runs at a time.
    """

    def __init__(self, binary: str, workspace: Path) -> None:
        self.binary = binary
        self.workspace = workspace
        self.terminated = False
        self._listeners: List[LogListener] = []
        self._process: Optional[asyncio.subprocess.Process] = None
        self._lock = asyncio.Lock()

    @classmethod
    async def load(cls, binary: Optional[str] = None) -> "FFmpegEngine":
        """
        Locate ffmpeg, prove it starts, and create the scratch directory.
        """
        resolved = binary or shutil.which("ffmpeg")
        if not resolved:
            raise EngineLoadError("ffmpeg executable not found (set FFMPEG_BINARY or add it to PATH)")
        try:
            proc = await asyncio.create_subprocess_exec(
                resolved,
                "-hide_banner",
                "-version",
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            returncode = await proc.wait()
        except OSError as e:
            raise EngineLoadError(f"could not start ffmpeg: {e}") from e
        if returncode != 0:
            raise EngineLoadError(f"ffmpeg -version exited with status {returncode}")

        workspace = Path(tempfile.mkdtemp(prefix="veriframe-"))
        logger.debug("Engine loaded: %s (workspace %s)", resolved, workspace)
        return cls(resolved, workspace)

    def subscribe(self, listener: LogListener) -> None:
        self._listeners.append(listener)

    async def stage_input(self, path: Path) -> Path:
        """Check that the input video exists and is a regular file."""
        if not await asyncio.to_thread(path.is_file):
            raise FileNotFoundError(f"input video not found: {path}")
        return path

    def workspace_path(self, name: str) -> Path:
        return self.workspace / name

    async def run(self, stream) -> None:
        """
        Execute an ffmpeg-python output stream, feeding stderr to subscribers.
        Raises EngineError on a non-zero exit status.
        """
        if self.terminated:
            raise EngineError("engine already terminated")

        argv = [self.binary, *_GLOBAL_ARGS, *stream.get_args()]
        async with self._lock:
            logger.debug("$ %s", " ".join(argv))
            try:
                self._process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.PIPE,
                    limit=_STDERR_LIMIT,
                )
            except OSError as e:
                raise EngineError(f"could not start ffmpeg: {e}") from e

            tail: deque = deque(maxlen=5)
            try:
                async for raw in self._process.stderr:
                    line = raw.decode("utf-8", errors="replace").rstrip()
                    if not line:
                        continue
                    tail.append(line)
                    for listener in self._listeners:
                        listener(line)
                returncode = await self._process.wait()
            except BaseException:
                if self._kill():
                    await self._process.wait()
                raise
            finally:
                self._process = None

        if returncode != 0:
            raise EngineError(f"ffmpeg failed with status {returncode}: {' | '.join(tail)}")

    async def read_file(self, name: str) -> bytes:
        return await asyncio.to_thread(self.workspace_path(name).read_bytes)

    async def delete_file(self, name: str) -> None:
        await asyncio.to_thread(self.workspace_path(name).unlink)

    def terminate(self) -> None:
        """Kill any running pass and drop the scratch directory. Safe to call twice."""
        if self.terminated:
            return
        self.terminated = True
        self._kill()
        shutil.rmtree(self.workspace, ignore_errors=True)
        logger.debug("Engine terminated (workspace %s removed)", self.workspace)

    def _kill(self) -> bool:
        """Kill the running pass, if any. Returns True when a kill was sent."""
        if self._process is None or self._process.returncode is not None:
            return False
        try:
            self._process.kill()
        except ProcessLookupError:
            return False
        return True


@asynccontextmanager
async def open_engine(settings: AnalysisSettings) -> AsyncIterator[FFmpegEngine]:
    """
    Load an engine for one analysis and terminate it on every exit path.
    """
    engine = await FFmpegEngine.load(settings.ffmpeg_binary)
    try:
        yield engine
    finally:
        engine.terminate()


def probe_stream(input_video: Path):
    """Full pass-through decode with no output, so ffmpeg prints the container metadata."""
    return ffmpeg.input(str(input_video)).output("-", format="null")


def frame_stream(
    input_video: Path,
    timestamp: str,
    output_image: Path,
    *,
    width: int,
    height: int,
    quality: int,
):
    """Grab a single JPEG frame at `timestamp` (seconds)."""
    return ffmpeg.input(str(input_video), ss=timestamp).output(
        str(output_image),
        vframes=1,
        s=f"{width}x{height}",
        **{"q:v": quality},
    )


def silence_stream(input_video: Path, *, noise_db: float, min_duration: float):
    """Audio-only decode through ffmpeg's silencedetect filter."""
    return ffmpeg.input(str(input_video)).output(
        "-",
        af=f"silencedetect=noise={noise_db:g}dB:d={min_duration:g}",
        vn=None,
        format="null",
    )
