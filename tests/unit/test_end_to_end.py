import json
import shutil

import ffmpeg
import pytest

import generate_thumbnail
from thumbnail_utils.config_utils import ExecutionContext, ExecutionKind
from thumbnail_utils.local_utils import LocalObjectStore
from thumbnail_utils.pipeline import ThumbnailPipeline

FFMPEG = shutil.which("ffmpeg")
FFPROBE = shutil.which("ffprobe")

pytestmark = pytest.mark.skipif(FFMPEG is None or FFPROBE is None, reason="ffmpeg and ffprobe are not installed")


def make_video(path, width, height, frames=20, rate=10):
    (
        ffmpeg
        .input(f"testsrc=size={width}x{height}:rate={rate}", f="lavfi")
        .output(str(path), vcodec="mpeg4", pix_fmt="yuv420p", vframes=frames)
        .overwrite_output()
        .run(cmd=FFMPEG, capture_stdout=True, capture_stderr=True)
    )


@pytest.fixture
def real_pipeline(tmp_path):
    context = ExecutionContext(
        kind=ExecutionKind.LOCAL,
        staging_root=str(tmp_path / "staging"),
        ffmpeg_path=FFMPEG,
        ffprobe_path=FFPROBE,
    )
    return ThumbnailPipeline(LocalObjectStore(str(tmp_path / "bucket")), context)


def invoke(pipeline, filepath):
    return generate_thumbnail.handle_event({"body": json.dumps({"bucket": "local", "filepath": filepath})}, pipeline)


@pytest.mark.parametrize("width, height, expected", [
    (1080, 1920, (360, 640)),
    (1920, 1080, (1138, 640)),
])
def test_real_video_produces_sized_jpeg(tmp_path, real_pipeline, width, height, expected):
    (tmp_path / "bucket" / "videos").mkdir(parents=True)
    make_video(tmp_path / "bucket" / "videos" / "a.mp4", width, height)

    response = invoke(real_pipeline, "videos/a.mp4")

    assert response["statusCode"] == 200, response["body"]
    thumbnail = tmp_path / "bucket" / "videos" / "a_thumbnail.jpg"
    assert thumbnail.stat().st_size > 0
    assert thumbnail.read_bytes()[:2] == b"\xff\xd8"

    stream = ffmpeg.probe(str(thumbnail), cmd=FFPROBE)["streams"][0]
    assert (stream["width"], stream["height"]) == expected
    assert list((tmp_path / "staging").iterdir()) == []


def test_corrupt_video_fails_probe(tmp_path, real_pipeline):
    (tmp_path / "bucket" / "videos").mkdir(parents=True)
    (tmp_path / "bucket" / "videos" / "broken.mp4").write_bytes(b"this is not a video" * 64)

    response = invoke(real_pipeline, "videos/broken.mp4")

    body = json.loads(response["body"])
    assert response["statusCode"] == 500
    assert "ProbeError" in body["stack"]
    assert not (tmp_path / "bucket" / "videos" / "broken_thumbnail.jpg").exists()
    assert list((tmp_path / "staging").iterdir()) == []


@pytest.mark.parametrize("rate", [10, 1])
def test_single_frame_video_produces_thumbnail(tmp_path, real_pipeline, rate):
    (tmp_path / "bucket" / "videos").mkdir(parents=True)
    make_video(tmp_path / "bucket" / "videos" / "still.mp4", 1080, 1920, frames=1, rate=rate)

    response = invoke(real_pipeline, "videos/still.mp4")

    assert response["statusCode"] == 200, response["body"]
    thumbnail = tmp_path / "bucket" / "videos" / "still_thumbnail.jpg"
    assert thumbnail.read_bytes()[:2] == b"\xff\xd8"
    assert list((tmp_path / "staging").iterdir()) == []
