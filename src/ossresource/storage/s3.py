"""S3-compatible object store for ossresource.

Adapts a boto3 low-level S3 client to the ObjectStore protocol. Any
S3-compatible endpoint works, including Aliyun OSS through its S3
compatibility layer (path-style addressing is recommended there).

Credentials are resolved via the standard AWS credential chain
(env vars, ~/.aws/credentials, IAM role, etc.) unless explicit keys are
configured.
"""

import logging
from typing import BinaryIO

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import ClientError

from ossresource.storage.backend import ObjectMetadata

logger = logging.getLogger(__name__)

# The upload runs on the caller's worker thread; no transfer thread pool.
_TRANSFER_CONFIG = TransferConfig(use_threads=False)


class S3ObjectStore:
    """Object store backed by an S3-compatible service.

    Attributes:
        region: The region used to sign requests and create buckets.
        endpoint_url: Custom endpoint, or empty for AWS.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        endpoint_url: str = "",
        use_path_style: bool = False,
        access_key_id: str = "",
        secret_access_key: str = "",
        client=None,
    ) -> None:
        """Initialize the store and build the boto3 client.

        Args:
            region: Region name.
            endpoint_url: Custom endpoint URL; empty to use AWS defaults.
            use_path_style: Use path-style bucket addressing.
            access_key_id: Explicit access key; empty to use the chain.
            secret_access_key: Explicit secret key.
            client: Pre-built S3 client (skips client construction).
        """
        self.region = region
        self.endpoint_url = endpoint_url
        if client is not None:
            self._client = client
            return

        client_kwargs: dict = {
            "region_name": region,
            "config": Config(
                signature_version="s3v4",
                s3={"addressing_style": "path" if use_path_style else "auto"},
                retries={"max_attempts": 1, "mode": "standard"},
            ),
        }
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        # Use explicit credentials if provided, otherwise fall back to chain
        if access_key_id and secret_access_key:
            client_kwargs["aws_access_key_id"] = access_key_id
            client_kwargs["aws_secret_access_key"] = secret_access_key
        self._client = boto3.client("s3", **client_kwargs)

        logger.info(
            "S3 object store initialized: region=%s endpoint=%s path_style=%s",
            region,
            endpoint_url or "default",
            use_path_style,
        )

    def bucket_exists(self, bucket: str) -> bool:
        """Check bucket presence with head_bucket.

        Raises:
            ClientError: For any error other than not-found.
        """
        try:
            self._client.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in ("404", "NoSuchBucket", "NotFound"):
                return False
            raise

    def create_bucket(self, bucket: str) -> None:
        kwargs: dict = {"Bucket": bucket}
        # us-east-1 rejects an explicit location constraint
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        self._client.create_bucket(**kwargs)

    def list_buckets(self) -> list[str]:
        resp = self._client.list_buckets()
        return [b["Name"] for b in resp.get("Buckets", [])]

    def put_object(self, bucket: str, key: str, stream: BinaryIO) -> None:
        """Upload a stream of unknown length to bucket/key.

        Uses the managed transfer so a non-seekable stream works; it reads
        the stream to end-of-stream on the calling thread.
        """
        self._client.upload_fileobj(stream, bucket, key, Config=_TRANSFER_CONFIG)

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        resp = self._client.get_object(Bucket=bucket, Key=key)
        return resp["Body"]

    def head_object(self, bucket: str, key: str) -> ObjectMetadata:
        resp = self._client.head_object(Bucket=bucket, Key=key)
        return ObjectMetadata(
            content_length=resp["ContentLength"],
            last_modified=resp["LastModified"],
            etag=resp.get("ETag", "").strip('"'),
        )
