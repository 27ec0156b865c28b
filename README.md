# fusionlog

Tools for RGB-D capture data: reading and writing raw frame logs, replaying
ground-truth camera trajectories, and pairing depth and colour frames from a
camera in ring buffers.

## Installation

```
pip install fusionlog
```

With the test dependencies:

```
pip install "fusionlog[test]"
```

## Raw frame logs (`fusionlog.log_reader`)

A raw log starts with a little-endian int32 frame count, followed by one record
per frame: an int64 timestamp, the int32 depth and image payload sizes, then
the two payloads. Depth is 16 bits per pixel, stored plainly or
zlib-compressed; colour is 24-bit RGB, stored plainly, JPEG-compressed or left
out (read back as all zeros).

`write_log(path, frames)` writes such a log from `(timestamp, depth, image)`
tuples and returns the number of frames written. NumPy arrays are stored raw;
`bytes` are stored as given, so compressed depth or JPEG images pass through;
an image of `None` is stored as absent.

```python
import numpy as np
from fusionlog.log_reader import RawLogReader, write_log

depth = np.zeros((480, 640), dtype=np.uint16)
rgb = np.zeros((480, 640, 3), dtype=np.uint8)
write_log("capture.klg", [(1000, depth, rgb), (2000, depth, None)])

with RawLogReader("capture.klg", False, 640, 480) as reader:
    reader.get_next()
    print(reader.timestamp, reader.depth.shape, reader.rgb.shape)
```

`RawLogReader(file, flip_colors, width=640, height=480)` exposes the current
frame as `depth` (uint16, height × width), `rgb` (uint8, height × width × 3),
`timestamp` and `current_frame`. Other members:

- `get_next()` reads the next frame; `has_more()` is true while
  `current_frame + 1 < get_num_frames()`.
- `get_back()` goes back to the most recently read frame and loads it again;
  it raises `IndexError` when there is none. `rewound()` tells whether no frame
  is left to go back to.
- `fast_forward(frame)` skips records without decoding them.
- `rewind()` reopens the file at its first frame.
- `get_file()` returns the path; `set_auto(value)` does nothing for a log.
- `close()` closes the file; the reader is also a context manager.

Truncated records raise `EOFError`; depth that cannot be decompressed to the
expected size, or an image of the wrong size, raises `ValueError`. With
`flip_colors` set, the colour channels of each frame are reversed.

## JPEG images (`fusionlog.jpeg`)

`decode_jpeg(data)` decodes JPEG bytes to a `(height, width, 3)` uint8 array
with the channels in reverse of RGB order, and raises `ValueError` for data
that is not a decodable JPEG.

## Ground-truth trajectories (`fusionlog.ground_truth`)

`load_trajectory(path)` reads lines of `utime,x,y,z,qx,qy,qz,qw` into a dict of
4×4 float32 poses keyed by time, sorted by time; a last line without a newline
is ignored and a malformed line raises `ValueError`. `pose_matrix(x, y, z, qx,
qy, qz, qw)` builds one such pose.

`GroundTruthOdometry(filename)` replays the trajectory:
`get_transformation(timestamp)` returns the identity on the first call, and
afterwards the pose at `timestamp` converted from the file's axis convention
to camera axes. A timestamp missing from the trajectory raises `KeyError`.
`get_covariance()` returns the fixed 6×6 diagonal covariance
`(0.1, 0.1, 0.1, 0.5, 0.5, 0.5)`.

## Camera frame buffers (`fusionlog.camera`, `fusionlog.sync`)

`CameraInterface(width, height)` is the abstract base of a camera. It holds a
ring of `NUM_BUFFERS` (10) colour buffers and 10 paired depth/colour frame
buffers, with the counters `latest_rgb_index` and `latest_depth_index`, both
starting at -1. Subclasses implement `ok()`, `error()`,
`set_auto_exposure(value)` and `set_auto_white_balance(value)`.

`RgbCallback(camera)` and `DepthCallback(camera)` are called with the raw frame
bytes and an optional millisecond timestamp (the current time when omitted).
The colour callback stores the image in the colour ring; the depth callback
stores the depth and copies in the newest colour image, and only advances
`latest_depth_index` once a colour image has arrived. Frames shorter than the
buffer raise `ValueError`.

`LiveLogReader(file, flip_colors, camera, base_dir="")` takes either a
`CameraInterface` instance or a `CameraType`. On creation it reports on stdout
whether the camera started and, if it did, waits until the first paired frame
is available. `get_next()` takes the newest completed frame, skipping it if it
has already been read; `has_more()` is always true, `get_num_frames()` returns
2³¹ − 1, `get_file()` returns `base_dir + "live"`, and `set_auto(value)` sets
the camera's automatic exposure and white balance. Rewinding, stepping back
and skipping ahead do nothing.

`SyncedValue(initial)` is the lock-guarded value behind the counters, with
`assign`, `get`, `increment`, `get_after(wait_us)`, `notify_all`,
`assign_and_notify_all` and `wait_for_signal(timeout)` (which raises
`TimeoutError` when no signal arrives in time).

## Pose matches (`fusionlog.pose_match`)

`SurfaceConstraint(source_point, target_point)` holds two 3-vectors;
`PoseMatch(first_id, second_id, first, second, constraints, fern)` holds two
4×4 poses and the constraints between them, with `id_span` equal to
`second_id - first_id`. `max_id_span(matches)` returns the largest `id_span`
among the matches, or 0 when there are none.

## What this package does not do

There are no camera drivers: `CameraType.OPENNI2` gives a `LiveLogReader`
with no camera (its `get_next()` and `set_auto()` raise `RuntimeError`), and
`RealSenseInterface` never starts (`ok()` is false). To capture live, supply
your own `CameraInterface` subclass and feed it through the callbacks. The
package performs no tracking, surface reconstruction or rendering, has no
viewer window, and installs no command-line program.