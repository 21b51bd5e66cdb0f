import re
from enum import Enum

THUMBNAIL_SUFFIX = "_thumbnail.jpg"
THUMBNAIL_CONTENT_TYPE = "image/jpeg"

_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")


def get_thumbnail_key(source_key: str) -> str:
  """
  Derives the thumbnail object key from the source video key.

  The final extension is replaced by the thumbnail suffix, e.g. `videos/a.mp4`
  becomes `videos/a_thumbnail.jpg`. Keys without an extension get the suffix
  appended, so the result never equals the source key.
  """
  thumbnail_key = _EXTENSION_PATTERN.sub(THUMBNAIL_SUFFIX, source_key)
  if thumbnail_key == source_key:
    thumbnail_key = source_key + THUMBNAIL_SUFFIX
  return thumbnail_key


class StorageFailure(Enum):
  NOT_FOUND = "NOT_FOUND"
  ACCESS_DENIED = "ACCESS_DENIED"
  UNAVAILABLE = "UNAVAILABLE"
  REJECTED = "REJECTED"


class ApplicationError(Exception):
  pass


class ValidationError(ApplicationError):
  pass


class StorageError(ApplicationError):

  def __init__(self, message: str, reason: StorageFailure = StorageFailure.REJECTED):
    super().__init__(message)
    self.reason = reason


class StorageReadError(StorageError):
  pass


class StorageWriteError(StorageError):
  pass


class LocalWriteError(ApplicationError):
  pass


class FFmpegError(ApplicationError):
  pass


class ProbeError(FFmpegError):
  pass


class ExtractionError(FFmpegError):
  pass
