# ABOUTME: S3 implementation of the artifact store capability
# ABOUTME: Uploads staged templates and build artifacts

"""S3 artifact store."""

import logging
from pathlib import Path
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .common import translate_error

logger = logging.getLogger(__name__)


class S3ArtifactStore:
    """Artifact store backed by an S3 client."""

    def __init__(self, client):
        self.client = client

    def upload(self, bucket: str, key: str, source: Path | bytes) -> Any:
        try:
            if isinstance(source, bytes):
                response = self.client.put_object(Bucket=bucket, Key=key, Body=source)
            else:
                response = self.client.upload_file(str(source), bucket, key)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"Unable to upload s3://{bucket}/{key}") from e

        logger.debug(f"Uploaded s3://{bucket}/{key}")
        return response
