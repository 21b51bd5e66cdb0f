import logging
import os
from typing import Iterable

from thumbnail_utils import utils
from thumbnail_utils.models import StagedFile, StagedFilePurpose

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

SOURCE_VIDEO_NAME = "input.mp4"
THUMBNAIL_NAME = "thumbnail.jpg"
PARTIAL_SUFFIX = ".part"


class StagingArea:
  """
  Local files of a single request.

  Paths are fixed below the staging root, so only one request per process may use
  the area at a time. Leaving the `with` block removes every staged file.
  """

  def __init__(self, root: str):
    self.root = root
    self.source_video = StagedFile(os.path.join(root, SOURCE_VIDEO_NAME), StagedFilePurpose.SOURCE_VIDEO)
    self.thumbnail = StagedFile(os.path.join(root, THUMBNAIL_NAME), StagedFilePurpose.THUMBNAIL)

  def __enter__(self):
    self.prepare()
    return self

  def __exit__(self, exc_type, exc_value, traceback):
    self.cleanup()
    return False

  @property
  def staged_paths(self) -> list[str]:
    return [
      self.source_video.local_path,
      self.source_video.local_path + PARTIAL_SUFFIX,
      self.thumbnail.local_path,
    ]

  def prepare(self):
    try:
      os.makedirs(self.root, exist_ok=True)
    except OSError as e:
      raise utils.LocalWriteError(f"Failed to create staging directory {self.root}: {e}") from e

    # leftovers of an earlier invocation that was killed before its cleanup ran
    self.cleanup()

  def write_source_video(self, chunks: Iterable[bytes]) -> StagedFile:
    """
    Drains the chunks into the staged source video.

    Data is written to a partial file first and renamed once the stream is complete,
    so the final path never holds a truncated video.
    """
    final_path = self.source_video.local_path
    partial_path = final_path + PARTIAL_SUFFIX
    written = 0

    try:
      with open(partial_path, 'wb') as file:
        for chunk in chunks:
          file.write(chunk)
          written += len(chunk)
      os.replace(partial_path, final_path)
    except OSError as e:
      _remove(partial_path)
      raise utils.LocalWriteError(f"Failed to write {final_path}: {e}") from e
    except BaseException:
      _remove(partial_path)
      raise

    logger.info(f"Staged {written / 1024 / 1024:.2f} MB at {final_path}")
    return self.source_video

  def cleanup(self):
    """
    Removes all staged files. Missing files are ignored and this never raises.
    """
    for path in self.staged_paths:
      _remove(path)


def _remove(path: str):
  try:
    os.remove(path)
  except FileNotFoundError:
    pass
  except OSError as e:
    logger.error(f"Failed to remove staged file {path}: {e}")
