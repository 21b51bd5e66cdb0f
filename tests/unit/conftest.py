import os

import pytest

from thumbnail_utils import ffmpeg_utils
from thumbnail_utils.config_utils import ExecutionContext, ExecutionKind
from thumbnail_utils.local_utils import LocalObjectStore
from thumbnail_utils.models import VideoStreamInfo
from thumbnail_utils.pipeline import ThumbnailPipeline

FAKE_VIDEO = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1024
FAKE_JPEG = b"\xff\xd8\xff\xe0fake jpeg\xff\xd9"


@pytest.fixture
def execution_context(tmp_path):
    return ExecutionContext(
        kind=ExecutionKind.LOCAL,
        staging_root=str(tmp_path / "staging"),
        ffmpeg_path="ffmpeg",
        ffprobe_path="ffprobe",
    )


@pytest.fixture
def bucket_root(tmp_path):
    root = tmp_path / "bucket"
    (root / "videos").mkdir(parents=True)
    (root / "videos" / "a.mp4").write_bytes(FAKE_VIDEO)
    return root


@pytest.fixture
def local_store(bucket_root):
    return LocalObjectStore(str(bucket_root))


@pytest.fixture
def pipeline(local_store, execution_context):
    return ThumbnailPipeline(local_store, execution_context)


class FakeFFmpeg:

    def __init__(self, stream_info):
        self.stream_info = stream_info
        self.probed = []
        self.extracted = []
        self.extract_error = None

    def probe_video(self, video_path, ffprobe_path="ffprobe"):
        self.probed.append(video_path)
        return self.stream_info

    def extract_frame(self, video_path, thumbnail_path, timestamp, size, ffmpeg_path="ffmpeg"):
        self.extracted.append((video_path, thumbnail_path, timestamp, size))
        if self.extract_error is not None:
            raise self.extract_error
        with open(thumbnail_path, "wb") as file:
            file.write(FAKE_JPEG)
        return thumbnail_path


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    fake = FakeFFmpeg(VideoStreamInfo(width=1080, height=1920, duration=4.0))
    monkeypatch.setattr(ffmpeg_utils, "probe_video", fake.probe_video)
    monkeypatch.setattr(ffmpeg_utils, "extract_frame", fake.extract_frame)
    return fake


@pytest.fixture
def staged_files(execution_context):
    def list_staged_files():
        if not os.path.isdir(execution_context.staging_root):
            return []
        return os.listdir(execution_context.staging_root)

    return list_staged_files
