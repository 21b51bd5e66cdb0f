import json
import logging
import traceback
from typing import Dict, Any

import boto3

from thumbnail_utils import config_utils
from thumbnail_utils import s3_utils
from thumbnail_utils import utils
from thumbnail_utils.models import ThumbnailRequest
from thumbnail_utils.pipeline import ThumbnailPipeline

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

RESPONSE_HEADERS = {
  'Content-Type': 'application/json',
  'Access-Control-Allow-Origin': '*'
}

EXECUTION_CONTEXT = config_utils.resolve_execution_context()
logger.info(f"Using execution context: {EXECUTION_CONTEXT}")

s3_client = boto3.client('s3', region_name=EXECUTION_CONTEXT.region)
object_store = s3_utils.S3ObjectStore(s3_client)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
  """
  Generates a thumbnail for a video stored in S3 and stores it next to the video.
  """
  return handle_event(event, ThumbnailPipeline(object_store, EXECUTION_CONTEXT))


def handle_event(event: Dict[str, Any], pipeline: ThumbnailPipeline) -> Dict[str, Any]:
  logger.info(f"Invoked with event: {event}")

  try:
    request = extract_data(event)
    logger.info(f"Processing video: {request}")

    result = pipeline.run(request)
  except Exception as e:
    logger.exception(f"Error generating thumbnail: {e}")
    # the staging area cleans up on its own, this covers failures before it was entered
    pipeline.staging_area().cleanup()
    return generate_error(e)

  logger.info("Success")
  return generate_result(result.destination_key)


def extract_data(event: Any) -> ThumbnailRequest:
  """
  Reads bucket and file path from the request body.

  API Gateway delivers the body as a JSON string under `body`; direct invocations
  pass the payload itself.
  """
  if not isinstance(event, dict):
    raise utils.ValidationError("Event must be an object")

  body = event.get('body') if 'body' in event else event

  if isinstance(body, (str, bytes)):
    try:
      body = json.loads(body)
    except ValueError as e:
      raise utils.ValidationError(f"Invalid request body: {e}") from e

  if not isinstance(body, dict):
    raise utils.ValidationError("Missing required parameters: bucket and filepath")

  bucket, filepath = body.get('bucket'), body.get('filepath')

  if not _is_present(bucket) or not _is_present(filepath):
    raise utils.ValidationError("Missing required parameters: bucket and filepath")

  return ThumbnailRequest(bucket=bucket, source_key=filepath)


def generate_result(thumbnail_key: str) -> Dict[str, Any]:
  return {
    'statusCode': 200,
    'headers': RESPONSE_HEADERS,
    'body': json.dumps({
      'message': 'Thumbnail generated successfully',
      'thumbnailPath': thumbnail_key
    })
  }


def generate_error(error: Exception) -> Dict[str, Any]:
  return {
    'statusCode': 500,
    'headers': RESPONSE_HEADERS,
    'body': json.dumps({
      'message': 'Error generating thumbnail',
      'error': str(error),
      'stack': ''.join(traceback.format_exception(type(error), error, error.__traceback__))
    })
  }


def _is_present(value: Any) -> bool:
  return isinstance(value, str) and value.strip() != ''
