import io
import zlib

import numpy as np
import pytest
from PIL import Image

from fusionlog.camera import CameraInterface, DepthCallback, RgbCallback
from fusionlog.jpeg import decode_jpeg
from fusionlog.log_reader import (
    CameraType,
    LiveLogReader,
    RawLogReader,
    write_log,
)

W, H = 4, 3


def make_depth(seed):
    return (np.arange(W * H, dtype=np.uint16) * 7 + seed).reshape(H, W)


def make_rgb(seed):
    return ((np.arange(W * H * 3) + seed) % 256).astype(np.uint8).reshape(H, W, 3)


@pytest.fixture
def three_frames(tmp_path):
    path = tmp_path / "log.klg"
    frames = [(100 + i, make_depth(i), make_rgb(i)) for i in range(3)]
    write_log(path, frames)
    return path, frames


def test_write_log_returns_count(tmp_path):
    assert write_log(tmp_path / "a.klg", [(1, make_depth(0), None)]) == 1


def test_raw_round_trip(three_frames):
    path, frames = three_frames
    with RawLogReader(path, False, W, H) as reader:
        assert reader.get_num_frames() == 3
        for timestamp, depth, rgb in frames:
            reader.get_next()
            assert reader.timestamp == timestamp
            np.testing.assert_array_equal(reader.depth, depth)
            np.testing.assert_array_equal(reader.rgb, rgb)
        assert reader.current_frame == 3


def test_compressed_depth_and_missing_image(tmp_path):
    path = tmp_path / "c.klg"
    depth = make_depth(5)
    write_log(path, [(9, zlib.compress(depth.astype("<u2").tobytes()), None)])
    with RawLogReader(path, False, W, H) as reader:
        reader.get_next()
        np.testing.assert_array_equal(reader.depth, depth)
        assert reader.rgb.shape == (H, W, 3)
        assert not reader.rgb.any()


def test_jpeg_image(tmp_path):
    buffer = io.BytesIO()
    Image.fromarray(make_rgb(3)).save(buffer, format="JPEG")
    jpeg = buffer.getvalue()
    path = tmp_path / "j.klg"
    write_log(path, [(1, make_depth(0), jpeg)])
    with RawLogReader(path, False, W, H) as reader:
        reader.get_next()
        np.testing.assert_array_equal(reader.rgb, decode_jpeg(jpeg))


def test_flip_colors_swaps_channels(three_frames):
    path, frames = three_frames
    with RawLogReader(path, True, W, H) as reader:
        reader.get_next()
        np.testing.assert_array_equal(reader.rgb, frames[0][2][..., ::-1])


def test_has_more_stops_before_last(three_frames):
    path, _ = three_frames
    with RawLogReader(path, False, W, H) as reader:
        results = []
        while reader.has_more():
            reader.get_next()
            results.append(reader.current_frame)
        assert results == [1, 2]


def test_get_back_rereads_last_frame(three_frames):
    path, frames = three_frames
    with RawLogReader(path, False, W, H) as reader:
        reader.get_next()
        reader.get_next()
        reader.get_back()
        assert reader.timestamp == frames[1][0]
        np.testing.assert_array_equal(reader.depth, frames[1][1])
        assert len(reader.file_pointers) == 1
        reader.get_back()
        assert reader.timestamp == frames[0][0]
        assert reader.rewound()


def test_get_back_without_history_raises(three_frames):
    path, _ = three_frames
    with RawLogReader(path, False, W, H) as reader:
        with pytest.raises(IndexError):
            reader.get_back()


def test_fast_forward_then_next(three_frames):
    path, frames = three_frames
    with RawLogReader(path, False, W, H) as reader:
        reader.fast_forward(2)
        assert reader.current_frame == 2
        assert reader.timestamp == frames[1][0]
        reader.get_next()
        np.testing.assert_array_equal(reader.depth, frames[2][1])


def test_fast_forward_stops_when_no_more(three_frames):
    path, _ = three_frames
    with RawLogReader(path, False, W, H) as reader:
        reader.fast_forward(50)
        assert reader.current_frame == reader.get_num_frames() - 1
        assert not reader.has_more()


def test_rewind_restarts(three_frames):
    path, frames = three_frames
    with RawLogReader(path, False, W, H) as reader:
        reader.get_next()
        reader.get_next()
        assert not reader.rewound()
        reader.rewind()
        assert reader.rewound()
        assert reader.current_frame == 0
        reader.get_next()
        assert reader.timestamp == frames[0][0]


def test_get_file_and_set_auto(three_frames):
    path, _ = three_frames
    with RawLogReader(path, False, W, H) as reader:
        reader.set_auto(True)
        assert reader.get_file() == str(path)


def test_truncated_log_raises(tmp_path, three_frames):
    path, _ = three_frames
    cut = tmp_path / "cut.klg"
    cut.write_bytes(path.read_bytes()[:30])
    with RawLogReader(cut, False, W, H) as reader:
        with pytest.raises(EOFError):
            reader.get_next()


def test_bad_compressed_depth_raises(tmp_path):
    path = tmp_path / "bad.klg"
    write_log(path, [(1, b"not zlib data", None)])
    with RawLogReader(path, False, W, H) as reader:
        with pytest.raises(ValueError):
            reader.get_next()


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        RawLogReader(tmp_path / "absent.klg", False, W, H)


class FakeCamera(CameraInterface):
    def __init__(self):
        super().__init__(W, H)
        self.exposure = None
        self.white_balance = None

    def ok(self):
        return True

    def error(self):
        return ""

    def set_auto_exposure(self, value):
        self.exposure = value

    def set_auto_white_balance(self, value):
        self.white_balance = value


def feed(camera, seed, timestamp):
    RgbCallback(camera)(make_rgb(seed).tobytes(), timestamp)
    DepthCallback(camera)(make_depth(seed).tobytes(), timestamp)


def test_live_reader_reads_newest_frame():
    camera = FakeCamera()
    feed(camera, 1, 200)
    reader = LiveLogReader("", False, camera, base_dir="/data/")
    reader.get_next()
    assert reader.timestamp == 200
    np.testing.assert_array_equal(reader.depth, make_depth(1))
    np.testing.assert_array_equal(reader.rgb, make_rgb(1))

    feed(camera, 2, 300)
    reader.get_next()
    assert reader.timestamp == 300
    np.testing.assert_array_equal(reader.depth, make_depth(2))


def test_live_reader_skips_repeated_frame():
    camera = FakeCamera()
    feed(camera, 1, 200)
    reader = LiveLogReader("", False, camera)
    reader.get_next()
    first = reader.depth
    reader.get_next()
    assert reader.depth is first
    assert reader.timestamp == 200


def test_live_reader_flip_colors():
    camera = FakeCamera()
    feed(camera, 4, 10)
    reader = LiveLogReader("", True, camera)
    reader.get_next()
    np.testing.assert_array_equal(reader.rgb, make_rgb(4)[..., ::-1])


def test_live_reader_properties_and_set_auto():
    camera = FakeCamera()
    feed(camera, 0, 1)
    reader = LiveLogReader("", False, camera, base_dir="/data/")
    assert reader.get_file() == "/data/live"
    assert reader.get_num_frames() == 2**31 - 1
    assert reader.has_more()
    assert not reader.rewound()
    reader.set_auto(False)
    assert camera.exposure is False
    assert camera.white_balance is False


def test_live_reader_without_driver():
    reader = LiveLogReader("", False, CameraType.REALSENSE)
    assert not reader.cam.ok()
    with pytest.raises(RuntimeError):
        reader.get_next()


def test_live_reader_openni_has_no_camera():
    reader = LiveLogReader("", False, CameraType.OPENNI2)
    assert reader.cam is None
    with pytest.raises(RuntimeError):
        reader.set_auto(True)