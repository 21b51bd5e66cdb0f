import argparse
import logging
import os

import requests
from dotenv import load_dotenv

from thumbnail_utils import config_utils
from thumbnail_utils.local_utils import LocalObjectStore
from thumbnail_utils.models import ThumbnailRequest
from thumbnail_utils.pipeline import ThumbnailPipeline

load_dotenv()
rest_endpoint = os.getenv("REST_ENDPOINT")

LOCAL_BUCKET = "local-bucket"


def parse_arguments(argv=None):
  parser = argparse.ArgumentParser(description="Generate a thumbnail for a video.")
  subparsers = parser.add_subparsers(dest="mode", required=True)

  remote = subparsers.add_parser("remote", help="Ask the deployed function to create the thumbnail")
  remote.add_argument("bucket", help="Bucket that holds the video")
  remote.add_argument("filepath", help="Object key of the video")

  local = subparsers.add_parser("local", help="Create the thumbnail locally with a directory as bucket")
  local.add_argument("root", help="Directory that stands in for the bucket")
  local.add_argument("filepath", help="Path of the video relative to the root")

  return parser.parse_args(argv)


def request_thumbnail(bucket, filepath):
  if rest_endpoint is None:
    raise Exception("Please define a rest-api endpoint REST_ENDPOINT in your .env file.")

  print("Requesting thumbnail…")
  response = requests.post(f"{rest_endpoint}/thumbnails", json={"bucket": bucket, "filepath": filepath})
  body = response.json()

  if response.status_code != 200:
    raise Exception(f"{body.get('message')}: {body.get('error')}")
  return body["thumbnailPath"]


def generate_locally(root, filepath):
  print("Generating thumbnail locally…")
  logging.basicConfig(level=logging.INFO)

  pipeline = ThumbnailPipeline(LocalObjectStore(root), config_utils.resolve_execution_context())
  result = pipeline.run(ThumbnailRequest(bucket=LOCAL_BUCKET, source_key=filepath))
  return pipeline.object_store.path_of(result.destination_key)


def main(argv=None):
  try:
    args = parse_arguments(argv)
    if args.mode == "remote":
      thumbnail = request_thumbnail(args.bucket, args.filepath)
    else:
      thumbnail = generate_locally(args.root, args.filepath)
    print(f"Thumbnail: {thumbnail}")
  except Exception as e:
    print(e)


if __name__ == "__main__":
  main()
