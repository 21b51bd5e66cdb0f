from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StagedFilePurpose(Enum):
  SOURCE_VIDEO = "SOURCE_VIDEO"
  THUMBNAIL = "THUMBNAIL"


@dataclass(frozen=True)
class ThumbnailRequest:
  bucket: str
  source_key: str


@dataclass(frozen=True)
class StagedFile:
  local_path: str
  purpose: StagedFilePurpose


@dataclass(frozen=True)
class VideoStreamInfo:
  width: int
  height: int
  duration: Optional[float] = None


@dataclass(frozen=True)
class ThumbnailSize:
  width: int
  height: int

  def __str__(self):
    return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class ThumbnailResult:
  bucket: str
  destination_key: str
