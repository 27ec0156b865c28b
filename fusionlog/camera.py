"""Cameras that fill a ring of paired depth and colour frames."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .sync import SyncedValue

NUM_BUFFERS = 10


def strip_tabs(text: str) -> str:
    """Remove tab characters, as found in some driver error messages."""
    return text.replace("\t", "")


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _copy_into(target: bytearray, data, name: str) -> None:
    view = memoryview(data).cast("B")
    size = len(target)
    if len(view) < size:
        raise ValueError(f"{name} frame holds {len(view)} bytes, expected {size}")
    target[:] = view[:size]


@dataclass
class RgbBuffer:
    """One colour image and the time it arrived, in milliseconds."""

    data: bytearray
    timestamp: int = 0


@dataclass
class FrameBuffer:
    """A depth image paired with the latest colour image at its arrival."""

    depth: bytearray
    rgb: bytearray
    timestamp: int = 0


@dataclass
class _Buffers:
    rgb: list[RgbBuffer] = field(default_factory=list)
    frames: list[FrameBuffer] = field(default_factory=list)


class CameraInterface(ABC):
    """A depth camera that writes incoming frames into ring buffers.

    ``latest_depth_index`` counts completed depth frames; the newest one is
    at ``frame_buffers[latest_depth_index % NUM_BUFFERS]``. It stays at -1
    until a depth frame has been paired with a colour image.
    """

    num_buffers = NUM_BUFFERS

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.latest_depth_index: SyncedValue[int] = SyncedValue(-1)
        self.latest_rgb_index: SyncedValue[int] = SyncedValue(-1)
        pixels = width * height
        self.rgb_buffers = [RgbBuffer(bytearray(pixels * 3)) for _ in range(NUM_BUFFERS)]
        self.frame_buffers = [
            FrameBuffer(bytearray(pixels * 2), bytearray(pixels * 3)) for _ in range(NUM_BUFFERS)
        ]
        self.last_rgb_time = 0
        self.last_depth_time = 0

    @abstractmethod
    def ok(self) -> bool:
        """Whether the camera started and is delivering frames."""

    @abstractmethod
    def error(self) -> str:
        """Text describing why the camera failed to start."""

    @abstractmethod
    def set_auto_exposure(self, value: bool) -> None:
        """Turn automatic exposure of the colour stream on or off."""

    @abstractmethod
    def set_auto_white_balance(self, value: bool) -> None:
        """Turn automatic white balance of the colour stream on or off."""


class RgbCallback:
    """Stores each new colour frame in the camera's colour ring."""

    def __init__(self, camera: CameraInterface) -> None:
        self.camera = camera

    def __call__(self, data, timestamp: int | None = None) -> None:
        camera = self.camera
        camera.last_rgb_time = _now_ms() if timestamp is None else timestamp
        index = (camera.latest_rgb_index.get() + 1) % NUM_BUFFERS
        slot = camera.rgb_buffers[index]
        _copy_into(slot.data, data, "colour")
        slot.timestamp = camera.last_rgb_time
        camera.latest_rgb_index.increment()


class DepthCallback:
    """Stores each new depth frame together with the newest colour frame."""

    def __init__(self, camera: CameraInterface) -> None:
        self.camera = camera

    def __call__(self, data, timestamp: int | None = None) -> None:
        camera = self.camera
        camera.last_depth_time = _now_ms() if timestamp is None else timestamp
        index = (camera.latest_depth_index.get() + 1) % NUM_BUFFERS
        slot = camera.frame_buffers[index]
        _copy_into(slot.depth, data, "depth")
        slot.timestamp = camera.last_depth_time

        last_image = camera.latest_rgb_index.get()
        if last_image == -1:
            return
        slot.rgb[:] = camera.rgb_buffers[last_image % NUM_BUFFERS].data
        camera.latest_depth_index.increment()


class RealSenseInterface(CameraInterface):
    """An Intel RealSense camera; no driver is available, so it never starts."""

    def __init__(self, width: int = 640, height: int = 480, fps: int = 30) -> None:
        super().__init__(width, height)
        self.fps = fps
        self._init_successful = False
        self._error_text = "Compiled without Intel RealSense library"

    def ok(self) -> bool:
        return self._init_successful

    def error(self) -> str:
        return self._error_text

    def set_auto_exposure(self, value: bool) -> None:
        """Without a device there is no setting to change."""

    def set_auto_white_balance(self, value: bool) -> None:
        """Without a device there is no setting to change."""

    def get_auto_exposure(self) -> bool:
        return False

    def get_auto_white_balance(self) -> bool:
        return False