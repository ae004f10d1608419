"""
S3 compatible object storage for uploaded documents.

Locally this talks to MinIO; in production to S3.
"""
import boto3
from botocore.client import BaseClient
from botocore.exceptions import ClientError

from app.core import config
from app.utils import get_logger


log = get_logger(__name__)


def build_s3_client() -> BaseClient:
    return boto3.client(
        "s3",
        endpoint_url=config.STORAGE_ENDPOINT,
        aws_access_key_id=config.STORAGE_ACCESS_KEY,
        aws_secret_access_key=config.STORAGE_SECRET_KEY,
        region_name=config.STORAGE_REGION,
    )


class ObjectStorage:
    """A single bucket, created lazily on first access of the client."""

    def __init__(self, bucket: str, client: BaseClient | None = None):
        self.bucket = bucket
        self._client = client

    @property
    def client(self) -> BaseClient:
        if self._client is None:
            self._client = build_s3_client()
        return self._client

    @client.setter
    def client(self, value: BaseClient | None) -> None:
        self._client = value

    def exists(self) -> bool:
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchBucket", "NotFound"):
                return False
            raise
        return True

    def create(self) -> None:
        log.info("Creating bucket %s", self.bucket)
        self.client.create_bucket(Bucket=self.bucket)

    def ensure(self) -> None:
        if not self.exists():
            self.create()

    def upload(self, key: str, body: bytes, content_type: str = "application/octet-stream") -> None:
        self.client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)

    def clear(self) -> int:
        """Delete every object in the bucket and return how many were removed."""
        removed = 0
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket):
            keys = [{"Key": obj["Key"]} for obj in page.get("Contents", [])]
            if not keys:
                continue
            self.client.delete_objects(Bucket=self.bucket, Delete={"Objects": keys})
            removed += len(keys)
        log.info("Cleared %d objects from bucket %s", removed, self.bucket)
        return removed


store = ObjectStorage(config.STORAGE_BUCKET)
