"""
MPV transport device over JSON IPC.

mpv runs as a child process and is driven over its Unix socket. Commands
that change mpv state go through a single worker thread so they reach mpv
in the order they were issued without blocking the event loop; a watch()
coroutine polls position, duration and end-of-file the same way.
"""

import asyncio
import json
import os
import socket
import subprocess
import tempfile
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from cadence.core.config import PlayerConfig

from .device import DevicePlayError, EndedHandler
from .timing import sanitize_seconds

# How long play() waits for the loaded file's metadata
METADATA_WAIT = 2.0
METADATA_POLL_INTERVAL = 0.05
IPC_TIMEOUT = 2.0


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


class MpvDevice:
    """Transport device backed by an mpv child process.

    Property getters and setters only touch local state; the IPC round
    trips they imply run on the command worker, and polled values arrive
    through watch().
    """

    def __init__(self, config: PlayerConfig):
        self._config = config
        self.socket_path: Optional[str] = None
        self.process: Optional[subprocess.Popen] = None

        self._source: Optional[str] = None
        self._ended_handler: Optional[EndedHandler] = None
        self._time_pos = 0.0
        self._duration = 0.0
        self._volume = 1.0
        self._ended_fired = False
        # Bumped by load() so polls that straddle a reload are discarded
        self._load_serial = 0
        # One thread keeps mpv commands in issue order
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mpv-ipc")

    # Process lifecycle

    def start(self) -> bool:
        """Start MPV with JSON IPC."""
        if self._config.mpv_socket_path:
            socket_path = self._config.mpv_socket_path
        else:
            temp_dir = Path(tempfile.gettempdir())
            socket_path = str(temp_dir / f"cadence-mpv-{os.getpid()}")

        logger.info(f"Starting MPV with socket: {socket_path}")

        try:
            if os.path.exists(socket_path):
                logger.debug(f"Removing existing socket: {socket_path}")
                os.unlink(socket_path)

            cmd = [
                "mpv",
                "--idle=yes",
                "--no-video",
                "--no-terminal",
                f"--input-ipc-server={socket_path}",
                f"--volume={round(self._volume * 100)}",
                "--keep-open=yes",
                "--load-scripts=no",
            ]

            process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )

            timeout = 5.0
            start_time = time.time()
            while not os.path.exists(socket_path):
                if time.time() - start_time > timeout:
                    logger.error(f"MPV socket creation timeout after {timeout}s")
                    process.kill()
                    return False
                time.sleep(0.1)

            self.socket_path = socket_path
            if self._request("get_property", "idle-active") is None:
                logger.error("MPV socket connection test failed")
                process.kill()
                self.socket_path = None
                return False

            self.process = process
            logger.info("MPV started successfully")
            return True

        except (subprocess.SubprocessError, OSError) as e:
            logger.error(f"Failed to start MPV: {e}")
            return False

    def stop(self) -> None:
        """Stop MPV process and cleanup."""
        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired):
                pass
        self.process = None

        if self.socket_path and os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass

    def is_running(self) -> bool:
        if not self.process or self.process.poll() is not None:
            return False
        return bool(self.socket_path and os.path.exists(self.socket_path))

    # Transport device contract

    def set_source(self, url: str) -> None:
        self._source = url

    def load(self) -> None:
        """Replace the loaded file, paused, so play() decides when audio starts."""
        self._load_serial += 1
        self._time_pos = 0.0
        self._duration = 0.0
        self._ended_fired = False

        if not self._source:
            return

        self._submit(self._command, "set_property", "pause", True)
        self._submit(self._load_file, self._source)

    async def play(self) -> None:
        source = self._source
        if not source:
            raise DevicePlayError(None, "No source loaded")
        if not self.is_running():
            raise DevicePlayError(source, "MPV is not running")

        # Queued behind any pending loadfile for this source
        if not await asyncio.wrap_future(self._submit(self._wait_and_unpause)):
            raise DevicePlayError(source)

    def pause(self) -> None:
        self._submit(self._command, "set_property", "pause", True)

    @property
    def current_time(self) -> float:
        return self._time_pos

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        seconds = sanitize_seconds(seconds)
        self._time_pos = seconds
        if self._duration and seconds < self._duration:
            self._ended_fired = False
        self._submit(self._command, "seek", seconds, "absolute")

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, level: float) -> None:
        self._volume = max(0.0, min(1.0, level))
        self._submit(self._command, "set_property", "volume", round(self._volume * 100))

    def set_ended_handler(self, handler: EndedHandler) -> None:
        self._ended_handler = handler

    async def watch(self) -> None:
        """Poll mpv status and fire the ended handler once per loaded file."""
        logger.debug("MPV watcher started")
        while True:
            serial = self._load_serial
            status = await asyncio.to_thread(self._poll_status)

            if serial == self._load_serial and status is not None:
                position, duration, eof = status
                if position is not None:
                    self._time_pos = sanitize_seconds(position)
                if duration is not None:
                    self._duration = sanitize_seconds(duration)

                if eof is True and not self._ended_fired and self._source:
                    self._ended_fired = True
                    logger.debug(f"End of file: {self._source}")
                    if self._ended_handler:
                        await self._ended_handler()

            await asyncio.sleep(self._config.poll_interval)

    # IPC

    def _submit(self, func: Callable[..., Any], *args: Any) -> Future:
        return self._worker.submit(func, *args)

    def _request(self, *args: Any) -> Optional[dict[str, Any]]:
        """Send one IPC command and return mpv's reply.

        mpv interleaves event lines with replies on the same socket; only
        the line carrying an "error" key is the reply. Returns None when the
        socket is missing, the connection fails or no reply arrives.
        """
        socket_path = self.socket_path
        if not socket_path or not os.path.exists(socket_path):
            return None

        payload = (json.dumps({"command": list(args)}) + "\n").encode("utf-8")
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(IPC_TIMEOUT)
                sock.connect(socket_path)
                sock.sendall(payload)
                with sock.makefile("r", encoding="utf-8") as reader:
                    for line in reader:
                        try:
                            data = json.loads(line)
                        except json.JSONDecodeError:
                            continue
                        if isinstance(data, dict) and "error" in data:
                            return data
        except OSError as e:
            logger.debug(f"MPV IPC {args[0]} failed: {e}")
            return None

        logger.debug(f"MPV closed the connection without replying to {args[0]}")
        return None

    def _command(self, *args: Any) -> bool:
        reply = self._request(*args)
        return reply is not None and reply.get("error") == "success"

    def _get_property(self, name: str) -> Any:
        reply = self._request("get_property", name)
        if reply is None or reply.get("error") != "success":
            return None
        return reply.get("data")

    def _load_file(self, url: str) -> None:
        if not self._command("loadfile", url, "replace"):
            logger.warning(f"MPV rejected loadfile for {url}")

    def _poll_status(self) -> Optional[tuple[Any, Any, Any]]:
        if not self.is_running():
            return None
        return (
            self._get_property("time-pos"),
            self._get_property("duration"),
            self._get_property("eof-reached"),
        )

    def _wait_and_unpause(self) -> bool:
        """Wait for stable duration metadata, then unpause.

        Returns:
            False when mpv went idle (the file failed to load) or refused
            to unpause
        """
        elapsed = 0.0
        last_duration = None
        stable_reads = 0

        while elapsed < METADATA_WAIT:
            duration = self._get_property("duration")
            if duration and duration > 0:
                if last_duration is not None and abs(duration - last_duration) < 0.1:
                    stable_reads += 1
                    if stable_reads >= 2:
                        logger.debug(f"Metadata loaded: duration={duration:.2f}s")
                        self._duration = duration
                        break
                else:
                    stable_reads = 0
                last_duration = duration
            time.sleep(METADATA_POLL_INTERVAL)
            elapsed += METADATA_POLL_INTERVAL

        if self._get_property("idle-active") is True:
            logger.warning(f"MPV is idle after loading {self._source}")
            return False

        return self._command("set_property", "pause", False)
