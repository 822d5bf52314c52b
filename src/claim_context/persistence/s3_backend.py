"""S3 backend for pipeline records (``pip install claim-context[s3]``)."""

from __future__ import annotations

import logging

from claim_context.exceptions import PersistenceError
from claim_context.persistence.protocols import record_key

log = logging.getLogger(__name__)


class S3PersistenceBackend:
    """Stores each key as ``s3://<bucket>/<prefix><key>.json``."""

    def __init__(self, bucket: str, prefix: str = "pipelines/", region: str = "us-east-1") -> None:
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 is required for S3 persistence. "
                "Install with: pip install claim-context[s3]"
            ) from e

        self._bucket = bucket
        self._prefix = prefix
        self._s3 = boto3.client("s3", region_name=region)

    def _full_key(self, key: str) -> str:
        return f"{self._prefix}{record_key(key)}.json"

    def save(self, key: str, data: str) -> None:
        from botocore.exceptions import ClientError

        try:
            self._s3.put_object(
                Bucket=self._bucket,
                Key=self._full_key(key),
                Body=data.encode("utf-8"),
                ContentType="application/json",
            )
        except ClientError as exc:
            raise PersistenceError(f"Failed to write {key} to s3://{self._bucket}: {exc}") from exc
        log.debug("Saved %s to s3://%s/%s", key, self._bucket, self._full_key(key))

    def load(self, key: str) -> str:
        try:
            response = self._s3.get_object(Bucket=self._bucket, Key=self._full_key(key))
        except self._s3.exceptions.NoSuchKey:
            raise KeyError(f"Not found in S3: {key}") from None
        return response["Body"].read().decode("utf-8")

    def exists(self, key: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            self._s3.head_object(Bucket=self._bucket, Key=self._full_key(key))
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise PersistenceError(f"Failed to check {key} in s3://{self._bucket}: {exc}") from exc
        return True

    def delete(self, key: str) -> None:
        self._s3.delete_object(Bucket=self._bucket, Key=self._full_key(key))

    def list_keys(self, prefix: str = "") -> list[str]:
        keys: list[str] = []
        paginator = self._s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self._bucket, Prefix=f"{self._prefix}{prefix}"):
            for obj in page.get("Contents", []):
                key = obj["Key"][len(self._prefix):]
                if key.endswith(".json"):
                    keys.append(key[: -len(".json")])
        return sorted(keys)
