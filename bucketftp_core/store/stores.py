from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, BinaryIO

import boto3
from boto3.exceptions import Boto3Error
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from bucketftp_core.config import DEFAULT_UPLOAD_PART_SIZE, AdapterConfig
from bucketftp_core.errors import (
    BucketFtpError,
    NotFoundError,
    PartialFailureError,
    UpstreamError,
)
from bucketftp_core.observability import log_event
from bucketftp_core.store.object_store import (
    ListingPage,
    ObjectBody,
    ObjectStoreClient,
    ObjectSummary,
)

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 1000

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_CLIENT_ERRORS = (ClientError, BotoCoreError, Boto3Error)


def _error_code(exc: BaseException) -> str:
    response = getattr(exc, "response", None) or {}
    error = response.get("Error") or {}
    return str(error.get("Code") or "")


def _translate(exc: BaseException, *, action: str, key: str) -> BucketFtpError:
    code = _error_code(exc)
    if code in _NOT_FOUND_CODES:
        return NotFoundError(f"No such key: {key}")
    return UpstreamError(f"{action} failed for {key!r}: {exc}", code=code or None)


def _batched(values: Iterable[str], *, size: int = DELETE_BATCH_SIZE) -> Iterable[list[str]]:
    batch: list[str] = []
    for value in values:
        batch.append(value)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


class _GuardedBody:
    """Streaming GET body whose transport errors surface as ``UpstreamError``."""

    def __init__(self, key: str, body: Any) -> None:
        self._key = key
        self._body = body

    def read(self, size: int = -1) -> bytes:
        try:
            if size is None or size < 0:
                return self._body.read()
            return self._body.read(size)
        except (*_CLIENT_ERRORS, OSError) as exc:
            raise UpstreamError(f"read failed for {self._key!r}: {exc}") from exc

    def close(self) -> None:
        self._body.close()


class Boto3ObjectStore(ObjectStoreClient):
    """ObjectStoreClient backed by boto3 (S3/MinIO), bound to one bucket.

    boto3 clients are thread-safe, so one instance is shared by every session.
    """

    def __init__(
        self,
        bucket: str,
        *,
        client: Any | None = None,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str = "us-east-1",
        use_ssl: bool | None = None,
        url_style: str = "path",
        session_token: str | None = None,
        connect_timeout: float | None = None,
        read_timeout: float | None = None,
        max_attempts: int | None = None,
        upload_part_size: int = DEFAULT_UPLOAD_PART_SIZE,
    ) -> None:
        if not bucket:
            raise ValueError("bucket is required")
        self.bucket = bucket
        self._transfer_config = TransferConfig(
            multipart_threshold=upload_part_size,
            multipart_chunksize=upload_part_size,
            use_threads=False,
        )
        if client is not None:
            self._client = client
            return

        if use_ssl is None:
            use_ssl = bool(endpoint_url and endpoint_url.startswith("https://"))

        config_kwargs: dict[str, Any] = {"s3": {"addressing_style": url_style}}
        if connect_timeout is not None:
            config_kwargs["connect_timeout"] = connect_timeout
        if read_timeout is not None:
            config_kwargs["read_timeout"] = read_timeout
        if max_attempts is not None:
            config_kwargs["retries"] = {"max_attempts": max_attempts}

        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region,
            use_ssl=use_ssl,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=session_token,
            config=Config(**config_kwargs),
        )

    @classmethod
    def from_config(cls, config: AdapterConfig, *, client: Any | None = None) -> Boto3ObjectStore:
        s3 = config.s3
        if s3 is None:
            # Default boto3 credential chain (env vars, shared config, instance profile).
            return cls(config.bucket, client=client, upload_part_size=config.upload_part_size)
        return cls(
            config.bucket,
            client=client,
            endpoint_url=s3.endpoint_url,
            access_key=s3.access_key,
            secret_key=s3.secret_key,
            region=s3.region,
            use_ssl=s3.use_ssl,
            url_style=s3.url_style,
            session_token=s3.session_token,
            connect_timeout=s3.connect_timeout,
            read_timeout=s3.read_timeout,
            max_attempts=s3.max_attempts,
            upload_part_size=config.upload_part_size,
        )

    def list_objects(
        self, prefix: str, *, delimiter: str | None = None, max_keys: int | None = None
    ) -> ListingPage:
        kwargs: dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter

        common_prefixes: list[str] = []
        contents: list[ObjectSummary] = []
        try:
            if max_keys is not None:
                pages: Iterable[dict[str, Any]] = [
                    self._client.list_objects_v2(MaxKeys=max_keys, **kwargs)
                ]
            else:
                paginator = self._client.get_paginator("list_objects_v2")
                pages = paginator.paginate(**kwargs)
            for page in pages:
                for entry in page.get("CommonPrefixes", []) or []:
                    common_prefixes.append(entry["Prefix"])
                for obj in page.get("Contents", []) or []:
                    contents.append(
                        ObjectSummary(
                            key=obj["Key"],
                            size=int(obj.get("Size") or 0),
                            last_modified=obj.get("LastModified"),
                        )
                    )
        except _CLIENT_ERRORS as exc:
            raise _translate(exc, action="list", key=prefix) from exc
        return ListingPage(common_prefixes=common_prefixes, contents=contents)

    def head_object(self, key: str) -> ObjectSummary | None:
        try:
            response = self._client.head_object(Bucket=self.bucket, Key=key)
        except _CLIENT_ERRORS as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                return None
            raise _translate(exc, action="head", key=key) from exc
        return ObjectSummary(
            key=key,
            size=int(response.get("ContentLength") or 0),
            last_modified=response.get("LastModified"),
        )

    def get_object(self, key: str) -> ObjectBody:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except _CLIENT_ERRORS as exc:
            raise _translate(exc, action="get", key=key) from exc
        # ContentLength and LastModified are occasionally missing from the response.
        return ObjectBody(
            key=key,
            body=_GuardedBody(key, response["Body"]),
            size=int(response.get("ContentLength") or 0),
            last_modified=response.get("LastModified"),
        )

    def put_object(self, key: str, body: bytes = b"") -> None:
        try:
            self._client.put_object(Bucket=self.bucket, Key=key, Body=body)
        except _CLIENT_ERRORS as exc:
            raise _translate(exc, action="put", key=key) from exc

    def upload_stream(self, key: str, stream: BinaryIO) -> None:
        # upload_fileobj accepts non-seekable streams and reads them part by part.
        try:
            self._client.upload_fileobj(stream, self.bucket, key, Config=self._transfer_config)
        except (*_CLIENT_ERRORS, OSError) as exc:
            raise _translate(exc, action="upload", key=key) from exc

    def copy_object(self, source_key: str, dest_key: str) -> None:
        try:
            self._client.copy_object(
                Bucket=self.bucket,
                Key=dest_key,
                CopySource={"Bucket": self.bucket, "Key": source_key},
            )
        except _CLIENT_ERRORS as exc:
            raise _translate(exc, action="copy", key=source_key) from exc

    def delete_objects(self, keys: list[str]) -> None:
        failed: list[str] = []
        for batch in _batched(keys):
            try:
                response = self._client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except _CLIENT_ERRORS as exc:
                raise _translate(exc, action="delete", key=batch[0]) from exc
            for error in response.get("Errors", []) or []:
                failed.append(str(error.get("Key")))
                log_event(
                    logger,
                    "bucketftp.store.delete_objects",
                    level=logging.WARNING,
                    key=error.get("Key"),
                    code=error.get("Code"),
                    detail=error.get("Message"),
                )
        if failed:
            raise PartialFailureError(
                f"Failed to delete {len(failed)} of {len(keys)} objects",
                failed_keys=failed,
            )
