import logging
import os
from typing import Any

import ffmpeg

from thumbnail_utils import utils
from thumbnail_utils.models import ThumbnailSize, VideoStreamInfo

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

JPEG_QUALITY = 2


def probe_video(video_path: str, ffprobe_path: str = 'ffprobe') -> VideoStreamInfo:
  """
  Obtains the geometry and duration of the first video stream using ffprobe.
  """
  try:
    metadata = ffmpeg.probe(video_path, cmd=ffprobe_path)
  except ffmpeg.Error as e:
    logger.error(_decode(e.stderr))
    raise utils.ProbeError(f"Failed to extract video information of {video_path}: {_last_line(e.stderr)}") from e
  except OSError as e:
    raise utils.ProbeError(f"Failed to run {ffprobe_path}: {e}") from e

  return parse_stream_info(metadata, video_path)


def parse_stream_info(metadata: dict[str, Any], video_path: str = '') -> VideoStreamInfo:
  streams = metadata.get('streams') or []
  video_stream = next((s for s in streams if s.get('codec_type') == 'video'), None)

  if video_stream is None:
    raise utils.ProbeError(f"No video stream found in {video_path}")

  try:
    width = int(video_stream['width'])
    height = int(video_stream['height'])
  except (KeyError, TypeError, ValueError) as e:
    raise utils.ProbeError(f"Video stream of {video_path} has no valid dimensions") from e

  if width <= 0 or height <= 0:
    raise utils.ProbeError(f"Video stream of {video_path} has invalid dimensions {width}x{height}")

  duration = _parse_duration(metadata.get('format', {}).get('duration'))
  if duration is None:
    duration = _parse_duration(video_stream.get('duration'))

  return VideoStreamInfo(width=width, height=height, duration=duration)


def build_extract_stream(video_path: str, thumbnail_path: str, timestamp: float, size: ThumbnailSize):
  return (
    ffmpeg
    .input(video_path, ss=f"{timestamp:.3f}")
    .filter('scale', size.width, size.height)
    .output(thumbnail_path, vframes=1, **{'q:v': JPEG_QUALITY})
    .overwrite_output()
  )


def extract_frame(video_path: str, thumbnail_path: str, timestamp: float, size: ThumbnailSize,
                  ffmpeg_path: str = 'ffmpeg') -> str:
  """
  Renders a single JPEG frame of the video.

  If no frame exists at or after `timestamp` (e.g. a one-frame clip sampled at its
  midpoint), the first frame is used instead.

  :param video_path: local video file
  :param thumbnail_path: where the JPEG is written, an existing file is replaced
  :param timestamp: offset into the video in seconds
  :param size: target pixel size
  :param ffmpeg_path: ffmpeg binary
  :return: the thumbnail path
  """
  _run_extract(video_path, thumbnail_path, timestamp, size, ffmpeg_path)

  if not _has_output(thumbnail_path) and timestamp > 0:
    logger.warning(f"No frame at {timestamp:.3f}s in {video_path}, falling back to the first frame")
    _run_extract(video_path, thumbnail_path, 0.0, size, ffmpeg_path)

  if not _has_output(thumbnail_path):
    raise utils.ExtractionError(f"No frame at {timestamp:.3f}s could be extracted from {video_path}")

  return thumbnail_path


def _run_extract(video_path: str, thumbnail_path: str, timestamp: float, size: ThumbnailSize, ffmpeg_path: str):
  stream = build_extract_stream(video_path, thumbnail_path, timestamp, size)
  logger.info(f"Executing command: \n{ffmpeg.compile(stream, cmd=ffmpeg_path)}")

  try:
    ffmpeg.run(stream, cmd=ffmpeg_path, capture_stdout=True, capture_stderr=True)
  except ffmpeg.Error as e:
    logger.error(_decode(e.stderr))
    raise utils.ExtractionError(f"Failed to create thumbnail of {video_path}: {_last_line(e.stderr)}") from e
  except OSError as e:
    raise utils.ExtractionError(f"Failed to run {ffmpeg_path}: {e}") from e


def _has_output(thumbnail_path: str) -> bool:
  # ffmpeg exits cleanly without writing a frame when seeking past the last one
  return os.path.exists(thumbnail_path) and os.path.getsize(thumbnail_path) > 0


def _parse_duration(value):
  try:
    duration = float(value)
  except (TypeError, ValueError):
    return None
  return duration if duration > 0 else None


def _decode(output) -> str:
  if not output:
    return ''
  if isinstance(output, bytes):
    return output.decode('utf-8', errors='replace')
  return str(output)


def _last_line(output) -> str:
  lines = [line for line in _decode(output).strip().split('\n') if line.strip()]
  return lines[-1].strip() if lines else 'unknown error'
