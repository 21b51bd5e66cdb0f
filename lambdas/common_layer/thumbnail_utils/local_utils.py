import logging
import os
import shutil
from typing import BinaryIO, Iterator

from thumbnail_utils import utils

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MB


class LocalObjectStore:
  """
  Object store backed by a local directory, used for local runs.

  The directory stands in for a single bucket: keys are resolved below the root and
  the bucket name is only logged. Content types of stored objects are kept in
  memory, so nothing but the objects themselves is written to the directory.
  """

  def __init__(self, root: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
    self.root = os.path.abspath(root)
    self.chunk_size = chunk_size
    self.content_types: dict[str, str] = {}

  def path_of(self, key: str) -> str:
    path = os.path.abspath(os.path.join(self.root, key))
    if os.path.commonpath([self.root, path]) != self.root:
      raise utils.StorageReadError(f"Key {key} resolves outside of {self.root}", utils.StorageFailure.ACCESS_DENIED)
    return path

  def content_type_of(self, key: str):
    return self.content_types.get(self.path_of(key))

  def get(self, bucket_name: str, key: str) -> Iterator[bytes]:
    path = self.path_of(key)
    logger.info(f"Reading {bucket_name}/{key} from local file {path}")

    try:
      file = open(path, 'rb')
    except FileNotFoundError as e:
      raise utils.StorageReadError(f"Object {bucket_name}/{key} not found", utils.StorageFailure.NOT_FOUND) from e
    except PermissionError as e:
      raise utils.StorageReadError(f"Access to {bucket_name}/{key} denied", utils.StorageFailure.ACCESS_DENIED) from e
    except OSError as e:
      raise utils.StorageReadError(f"Failed to open {bucket_name}/{key}: {e}", utils.StorageFailure.UNAVAILABLE) from e

    return self._iter_file(file, bucket_name, key)

  def put(self, bucket_name: str, key: str, body: BinaryIO, content_type: str):
    try:
      path = self.path_of(key)
    except utils.StorageReadError as e:
      raise utils.StorageWriteError(str(e), e.reason) from e
    logger.info(f"Writing {bucket_name}/{key} to local file {path}")

    try:
      os.makedirs(os.path.dirname(path), exist_ok=True)
      with open(path, 'wb') as file:
        shutil.copyfileobj(body, file, self.chunk_size)
    except PermissionError as e:
      raise utils.StorageWriteError(f"Access to {bucket_name}/{key} denied", utils.StorageFailure.ACCESS_DENIED) from e
    except OSError as e:
      raise utils.StorageWriteError(f"Failed to write {bucket_name}/{key}: {e}") from e

    self.content_types[path] = content_type
    logger.info(f"Successfully wrote to {path}")

  def _iter_file(self, file, bucket_name: str, key: str) -> Iterator[bytes]:
    try:
      while True:
        chunk = file.read(self.chunk_size)
        if not chunk:
          break
        yield chunk
    except OSError as e:
      raise utils.StorageReadError(f"Failed to read {bucket_name}/{key}: {e}", utils.StorageFailure.UNAVAILABLE) from e
    finally:
      file.close()
