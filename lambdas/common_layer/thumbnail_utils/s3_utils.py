import logging
from typing import BinaryIO, Iterator

from botocore.exceptions import BotoCoreError, ClientError

from thumbnail_utils import utils

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MB

_NOT_FOUND_CODES = {'NoSuchKey', 'NoSuchBucket', 'NotFound', '404'}
_ACCESS_DENIED_CODES = {'AccessDenied', 'AllAccessDisabled', 'InvalidAccessKeyId', 'SignatureDoesNotMatch', '403'}


def classify_error(error: Exception) -> utils.StorageFailure:
  """
  Maps a boto error to a failure reason so missing objects and permission problems
  can be told apart from connectivity problems.
  """
  if isinstance(error, ClientError):
    code = str(error.response.get('Error', {}).get('Code', ''))
    if code in _NOT_FOUND_CODES:
      return utils.StorageFailure.NOT_FOUND
    if code in _ACCESS_DENIED_CODES:
      return utils.StorageFailure.ACCESS_DENIED
    return utils.StorageFailure.REJECTED
  return utils.StorageFailure.UNAVAILABLE


class S3ObjectStore:

  def __init__(self, s3_client, chunk_size: int = DEFAULT_CHUNK_SIZE):
    self.s3_client = s3_client
    self.chunk_size = chunk_size

  def get(self, bucket_name: str, key: str) -> Iterator[bytes]:
    """
    Opens the object and returns its content as chunks.
    """
    logger.info(f"Download {bucket_name}/{key}...")
    try:
      response = self.s3_client.get_object(Bucket=bucket_name, Key=key)
    except (ClientError, BotoCoreError) as e:
      reason = classify_error(e)
      raise utils.StorageReadError(f"Failed to get {bucket_name}/{key} ({reason.value}): {e}", reason) from e

    return self._iter_body(response['Body'], bucket_name, key)

  def put(self, bucket_name: str, key: str, body: BinaryIO, content_type: str):
    logger.info(f"Upload to {bucket_name}/{key} as {content_type}...")
    try:
      self.s3_client.put_object(Bucket=bucket_name, Key=key, Body=body, ContentType=content_type)
    except (ClientError, BotoCoreError) as e:
      reason = classify_error(e)
      raise utils.StorageWriteError(f"Failed to put {bucket_name}/{key} ({reason.value}): {e}", reason) from e
    logger.info(f"Done with {bucket_name}/{key}.")

  def _iter_body(self, body, bucket_name: str, key: str) -> Iterator[bytes]:
    try:
      for chunk in body.iter_chunks(self.chunk_size):
        yield chunk
    except (ClientError, BotoCoreError) as e:
      raise utils.StorageReadError(f"Failed to read {bucket_name}/{key}: {e}", utils.StorageFailure.UNAVAILABLE) from e
    finally:
      body.close()
