import logging
from pathlib import Path

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .errors import FetchError, PublishError, StoreError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024


def get_s3_client(*, access_key=None, secret_key=None, region=None, endpoint_url=None):
    """
    SDK client for server-side upload/download.
    """
    session = boto3.session.Session(
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=region,
    )
    return session.client(
        "s3",
        endpoint_url=endpoint_url,  # e.g. http://127.0.0.1:9000, None for AWS
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        ),
    )


class BlobStore:
    """
    Fetch, store and delete objects in one bucket.

    The boto3 client is passed in; boto3 clients are thread-safe, so one
    instance serves concurrent uploads of a rendition bundle.
    """

    def __init__(self, client, bucket: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if not bucket:
            raise ValueError("bucket must be provided")
        self.client = client
        self.bucket = bucket
        self.chunk_size = max(1, chunk_size)

    def fetch(self, key: str, dest: Path) -> Path:
        """
        Stream an object to dest. Returns once the file is flushed and
        closed; remote and local write errors both surface as FetchError.
        """
        dest = Path(dest)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            body = response["Body"]
            try:
                with open(dest, "wb") as sink:
                    for chunk in body.iter_chunks(chunk_size=self.chunk_size):
                        sink.write(chunk)
            finally:
                body.close()
        except (BotoCoreError, ClientError, OSError) as e:
            raise FetchError(f"Fetching s3://{self.bucket}/{key} failed: {e}", bucket=self.bucket, key=key) from e

        logger.info("Fetched s3://%s/%s (%d bytes)", self.bucket, key, dest.stat().st_size)
        return dest

    def store(self, key: str, local_path: Path, content_type: str):
        """
        Upload a single file with its Content-Type. upload_file reads from
        disk in parts, so the artifact is never held in memory.
        """
        try:
            self.client.upload_file(
                str(local_path),
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (S3UploadFailedError, BotoCoreError, ClientError, OSError) as e:
            raise PublishError(f"Storing s3://{self.bucket}/{key} failed: {e}", bucket=self.bucket, key=key) from e
        logger.info("Stored s3://%s/%s (%s)", self.bucket, key, content_type)

    def delete(self, key: str):
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"Deleting s3://{self.bucket}/{key} failed: {e}", bucket=self.bucket, key=key) from e
        logger.info("Deleted s3://%s/%s", self.bucket, key)
