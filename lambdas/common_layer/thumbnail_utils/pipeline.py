import logging

from thumbnail_utils import ffmpeg_utils
from thumbnail_utils import frame_utils
from thumbnail_utils import utils
from thumbnail_utils.config_utils import ExecutionContext
from thumbnail_utils.models import ThumbnailRequest, ThumbnailResult, ThumbnailSize, VideoStreamInfo
from thumbnail_utils.staging_utils import StagingArea

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


class ThumbnailPipeline:
  """
  Download, probe, extract and upload, strictly in that order.

  The object store needs `get(bucket, key)` returning byte chunks and
  `put(bucket, key, body, content_type)`.
  """

  def __init__(self, object_store, execution_context: ExecutionContext):
    self.object_store = object_store
    self.execution_context = execution_context

  def staging_area(self) -> StagingArea:
    return StagingArea(self.execution_context.staging_root)

  def run(self, request: ThumbnailRequest) -> ThumbnailResult:
    with self.staging_area() as staging:
      logger.info(f"Temporary paths: {staging.source_video.local_path}, {staging.thumbnail.local_path}")

      self.download(request, staging)
      stream_info = self.probe(staging)
      self.extract(stream_info, staging)
      return self.upload(request, staging)

  def download(self, request: ThumbnailRequest, staging: StagingArea):
    logger.info(f"Downloading video {request.bucket}/{request.source_key}...")
    chunks = self.object_store.get(request.bucket, request.source_key)
    staging.write_source_video(chunks)

  def probe(self, staging: StagingArea) -> VideoStreamInfo:
    stream_info = ffmpeg_utils.probe_video(staging.source_video.local_path, self.execution_context.ffprobe_path)
    logger.info(f"Video information: {stream_info}")
    return stream_info

  def extract(self, stream_info: VideoStreamInfo, staging: StagingArea) -> ThumbnailSize:
    size = frame_utils.compute_thumbnail_size(stream_info)
    timestamp = frame_utils.compute_timestamp(stream_info.duration)

    logger.info(f"Generating {size} thumbnail at {timestamp:.3f}s...")
    ffmpeg_utils.extract_frame(
      staging.source_video.local_path,
      staging.thumbnail.local_path,
      timestamp,
      size,
      self.execution_context.ffmpeg_path,
    )
    logger.info("Thumbnail generation completed")
    return size

  def upload(self, request: ThumbnailRequest, staging: StagingArea) -> ThumbnailResult:
    thumbnail_key = utils.get_thumbnail_key(request.source_key)
    logger.info(f"Uploading thumbnail to {request.bucket}/{thumbnail_key}...")

    try:
      file = open(staging.thumbnail.local_path, 'rb')
    except OSError as e:
      raise utils.LocalWriteError(f"Failed to open {staging.thumbnail.local_path}: {e}") from e

    with file:
      self.object_store.put(request.bucket, thumbnail_key, file, utils.THUMBNAIL_CONTENT_TYPE)

    logger.info("Thumbnail uploaded successfully")
    return ThumbnailResult(bucket=request.bucket, destination_key=thumbnail_key)
