import os
import shutil
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

DEFAULT_REGION = "ap-south-1"
MANAGED_STAGING_ROOT = "/tmp"
MANAGED_FFMPEG_PATH = "/opt/bin/ffmpeg"
MANAGED_FFPROBE_PATH = "/opt/bin/ffprobe"


class ExecutionKind(Enum):
  LOCAL = "LOCAL"
  MANAGED = "MANAGED"


@dataclass(frozen=True)
class ExecutionContext:
  kind: ExecutionKind
  staging_root: str
  ffmpeg_path: str
  ffprobe_path: str
  region: str = DEFAULT_REGION

  @property
  def is_managed(self) -> bool:
    return self.kind is ExecutionKind.MANAGED


def resolve_execution_context(environ: Optional[Mapping[str, str]] = None) -> ExecutionContext:
  """
  Resolves where the function runs and which paths it uses there.

  Inside Lambda (`AWS_LAMBDA_FUNCTION_VERSION` is set) staging happens in /tmp and
  the ffmpeg binaries come from the layer under /opt/bin. Otherwise a ./tmp directory
  and the binaries on PATH are used. FFMPEG_PATH, FFPROBE_PATH and STAGING_DIR
  override the defaults in both cases.

  :param environ: environment mapping, defaults to os.environ
  :return: the immutable execution context
  """
  if environ is None:
    environ = os.environ

  region = environ.get("AWS_REGION") or DEFAULT_REGION

  if environ.get("AWS_LAMBDA_FUNCTION_VERSION"):
    return ExecutionContext(
      kind=ExecutionKind.MANAGED,
      staging_root=environ.get("STAGING_DIR") or MANAGED_STAGING_ROOT,
      ffmpeg_path=environ.get("FFMPEG_PATH") or MANAGED_FFMPEG_PATH,
      ffprobe_path=environ.get("FFPROBE_PATH") or MANAGED_FFPROBE_PATH,
      region=region,
    )

  return ExecutionContext(
    kind=ExecutionKind.LOCAL,
    staging_root=environ.get("STAGING_DIR") or os.path.join(os.getcwd(), "tmp"),
    ffmpeg_path=environ.get("FFMPEG_PATH") or shutil.which("ffmpeg") or "ffmpeg",
    ffprobe_path=environ.get("FFPROBE_PATH") or shutil.which("ffprobe") or "ffprobe",
    region=region,
  )
