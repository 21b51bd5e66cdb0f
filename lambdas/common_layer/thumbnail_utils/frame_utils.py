import math
from typing import Optional

from thumbnail_utils.models import ThumbnailSize, VideoStreamInfo

BASE_WIDTH = 360
TARGET_RATIO = 16 / 9
RATIO_TOLERANCE = 0.1
TIMESTAMP_PERCENT = 50


def round_half_up(value: float) -> int:
  return int(math.floor(value + 0.5))


def compute_thumbnail_size(stream_info: VideoStreamInfo) -> ThumbnailSize:
  """
  Calculates the thumbnail size for a portrait 9:16 target.

  Starts at 360x640. If the source height/width ratio deviates from 16/9 by more
  than the tolerance, one side is recomputed from the source ratio: the height for
  sources taller than the target, the width otherwise.
  """
  width = BASE_WIDTH
  height = round_half_up(width * TARGET_RATIO)

  source_ratio = stream_info.height / stream_info.width

  if abs(source_ratio - TARGET_RATIO) > RATIO_TOLERANCE:
    if source_ratio > TARGET_RATIO:
      height = round_half_up(width * stream_info.height / stream_info.width)
    else:
      width = round_half_up(height * stream_info.width / stream_info.height)

  return ThumbnailSize(width, height)


def compute_timestamp(duration: Optional[float], percent: float = TIMESTAMP_PERCENT) -> float:
  """
  Returns the offset in seconds at `percent` of the video duration.

  Containers without a known duration are sampled at the first frame.
  """
  if not duration or duration <= 0:
    return 0.0
  return duration * percent / 100
