"""Readers that supply paired depth and colour frames, from a log file or a live camera."""

from __future__ import annotations

import enum
import struct
import time
import zlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

import numpy as np

from .camera import NUM_BUFFERS, CameraInterface, RealSenseInterface
from .jpeg import decode_jpeg

_COUNT = struct.Struct("<i")
_HEADER = struct.Struct("<qii")
_INT_MAX = 2**31 - 1
_FIRST_FRAME_POLL_S = 0.033333


class LogReader(ABC):
    """A source of frames: ``depth`` (uint16, height x width) and ``rgb`` (uint8, height x width x 3)."""

    def __init__(self, file, flip_colors: bool, width: int = 640, height: int = 480) -> None:
        self.file = str(file)
        self.flip_colors = flip_colors
        self.width = width
        self.height = height
        self.num_pixels = width * height
        self.timestamp = 0
        self.depth: np.ndarray | None = None
        self.rgb: np.ndarray | None = None
        self.current_frame = 0

    def _apply_flip(self) -> None:
        if self.flip_colors and self.rgb is not None:
            self.rgb = np.ascontiguousarray(self.rgb[..., ::-1])

    @abstractmethod
    def get_next(self) -> None:
        """Load the next frame."""

    @abstractmethod
    def get_num_frames(self) -> int:
        """Number of frames the source holds."""

    @abstractmethod
    def has_more(self) -> bool:
        """Whether another frame can be read."""

    @abstractmethod
    def rewound(self) -> bool:
        """Whether the reader is back at its start."""

    @abstractmethod
    def rewind(self) -> None:
        """Go back to the first frame."""

    @abstractmethod
    def get_back(self) -> None:
        """Step back to the most recently read frame and load it again."""

    @abstractmethod
    def fast_forward(self, frame: int) -> None:
        """Skip frames until ``frame`` is the current frame."""

    @abstractmethod
    def get_file(self) -> str:
        """Name of the log this reader stands for."""

    @abstractmethod
    def set_auto(self, value: bool) -> None:
        """Turn automatic exposure and white balance on or off."""


class RawLogReader(LogReader):
    """Reads frames from a binary log file.

    The file starts with the frame count (int32). Each frame is a timestamp
    (int64), the depth and image sizes (int32 each), then the depth bytes and
    the image bytes. Depth is raw uint16 or zlib-compressed; the image is raw
    RGB, JPEG, or absent.
    """

    def __init__(self, file, flip_colors: bool, width: int = 640, height: int = 480) -> None:
        super().__init__(file, flip_colors, width, height)
        self.file_pointers: list[int] = []
        self._fp = open(self.file, "rb")
        try:
            self.num_frames = self._read_count()
        except Exception:
            self._fp.close()
            raise

    def __enter__(self) -> RawLogReader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the log file."""
        self._fp.close()

    def _read_exact(self, size: int) -> bytes:
        if size < 0:
            raise ValueError(f"negative block size {size} in log")
        data = self._fp.read(size)
        if len(data) != size:
            raise EOFError(f"log ended after {len(data)} of {size} bytes")
        return data

    def _read_count(self) -> int:
        return _COUNT.unpack(self._read_exact(_COUNT.size))[0]

    def _read_header(self) -> tuple[int, int]:
        timestamp, depth_size, image_size = _HEADER.unpack(self._read_exact(_HEADER.size))
        self.timestamp = timestamp
        return depth_size, image_size

    def _decode_depth(self, raw: bytes) -> np.ndarray:
        expected = self.num_pixels * 2
        if len(raw) != expected:
            try:
                raw = zlib.decompress(raw)
            except zlib.error as exc:
                raise ValueError(f"cannot decompress depth: {exc}") from exc
            if len(raw) != expected:
                raise ValueError(f"depth holds {len(raw)} bytes, expected {expected}")
        return np.frombuffer(raw, dtype="<u2").astype(np.uint16).reshape(self.height, self.width)

    def _decode_image(self, raw: bytes) -> np.ndarray:
        shape = (self.height, self.width, 3)
        if len(raw) == self.num_pixels * 3:
            return np.frombuffer(raw, dtype=np.uint8).reshape(shape).copy()
        if raw:
            image = decode_jpeg(raw)
            if image.shape != shape:
                raise ValueError(f"image has shape {image.shape}, expected {shape}")
            return image
        return np.zeros(shape, dtype=np.uint8)

    def _get_core(self) -> None:
        depth_size, image_size = self._read_header()
        depth_raw = self._read_exact(depth_size)
        image_raw = self._read_exact(image_size) if image_size > 0 else b""
        self.depth = self._decode_depth(depth_raw)
        self.rgb = self._decode_image(image_raw)
        self._apply_flip()
        self.current_frame += 1

    def get_next(self) -> None:
        self.file_pointers.append(self._fp.tell())
        self._get_core()

    def get_back(self) -> None:
        if not self.file_pointers:
            raise IndexError("no earlier frame to go back to")
        self._fp.seek(self.file_pointers.pop())
        self._get_core()

    def fast_forward(self, frame: int) -> None:
        while self.current_frame < frame and self.has_more():
            self.file_pointers.append(self._fp.tell())
            depth_size, image_size = self._read_header()
            self._read_exact(depth_size)
            if image_size > 0:
                self._read_exact(image_size)
            self.current_frame += 1

    def get_num_frames(self) -> int:
        return self.num_frames

    def has_more(self) -> bool:
        return self.current_frame + 1 < self.num_frames

    def rewind(self) -> None:
        self.file_pointers.clear()
        self._fp.close()
        self._fp = open(self.file, "rb")
        self.num_frames = self._read_count()
        self.current_frame = 0

    def rewound(self) -> bool:
        return not self.file_pointers

    def get_file(self) -> str:
        return self.file

    def set_auto(self, value: bool) -> None:
        """A recorded log has no camera settings to change."""


class CameraType(enum.Enum):
    """Kinds of live camera a reader can open."""

    OPENNI2 = "openni2"
    REALSENSE = "realsense"


class LiveLogReader(LogReader):
    """Reads the newest frames from a live camera's ring buffers."""

    def __init__(self, file, flip_colors: bool, camera, base_dir="") -> None:
        if isinstance(camera, CameraInterface):
            cam: CameraInterface | None = camera
            width, height = camera.width, camera.height
        else:
            camera_type = CameraType(camera)
            width, height = 640, 480
            cam = RealSenseInterface(width, height) if camera_type is CameraType.REALSENSE else None
        super().__init__(file, flip_colors, width, height)
        self.cam = cam
        self.base_dir = str(base_dir)
        self.last_frame_time = -1
        self.last_got = -1

        print("Creating live capture... ", end="", flush=True)
        if cam is None or not cam.ok():
            print("failed!")
            if cam is not None:
                print(cam.error(), end="")
        else:
            print("success!")
            print("Waiting for first frame", end="", flush=True)
            while cam.latest_depth_index.get() == -1:
                time.sleep(_FIRST_FRAME_POLL_S)
                print(".", end="", flush=True)
            print(" got it!")

    def _camera(self) -> CameraInterface:
        if self.cam is None:
            raise RuntimeError("no live camera is available")
        return self.cam

    def get_next(self) -> None:
        cam = self._camera()
        last_depth = cam.latest_depth_index.get()
        if last_depth == -1:
            raise RuntimeError("the camera has not delivered a frame yet")
        index = last_depth % NUM_BUFFERS
        if index == self.last_got:
            return
        slot = cam.frame_buffers[index]
        if self.last_frame_time == slot.timestamp:
            return

        self.depth = np.frombuffer(bytes(slot.depth), dtype=np.uint16).reshape(self.height, self.width)
        self.rgb = np.frombuffer(bytes(slot.rgb), dtype=np.uint8).reshape(self.height, self.width, 3).copy()
        self.last_frame_time = slot.timestamp
        self.timestamp = self.last_frame_time
        self._apply_flip()

    def get_num_frames(self) -> int:
        return _INT_MAX

    def has_more(self) -> bool:
        return True

    def rewound(self) -> bool:
        return False

    def rewind(self) -> None:
        """A live stream cannot be rewound."""

    def get_back(self) -> None:
        """A live stream cannot step back."""

    def fast_forward(self, frame: int) -> None:
        """A live stream cannot skip ahead."""

    def get_file(self) -> str:
        return self.base_dir + "live"

    def set_auto(self, value: bool) -> None:
        cam = self._camera()
        cam.set_auto_exposure(value)
        cam.set_auto_white_balance(value)


def _payload(value, dtype) -> bytes:
    if value is None:
        return b""
    if isinstance(value, np.ndarray):
        return np.ascontiguousarray(value, dtype=dtype).tobytes()
    return bytes(value)


def write_log(path, frames: Iterable) -> int:
    """Write ``(timestamp, depth, image)`` frames to a log that RawLogReader reads.

    Arrays are stored raw (depth as little-endian uint16, image as uint8);
    bytes are stored as given, so compressed depth or JPEG images pass through.
    An image of None is stored as absent. Returns the number of frames written.
    """
    records = [
        (int(timestamp), _payload(depth, "<u2"), _payload(image, np.uint8))
        for timestamp, depth, image in frames
    ]
    with Path(path).open("wb") as fh:
        fh.write(_COUNT.pack(len(records)))
        for timestamp, depth, image in records:
            fh.write(_HEADER.pack(timestamp, len(depth), len(image)))
            fh.write(depth)
            fh.write(image)
    return len(records)