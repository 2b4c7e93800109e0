"""S3 file storage backend implementing IFileStore."""

from __future__ import annotations

import posixpath

import boto3
from botocore.exceptions import ClientError

from hrdocs.core.exceptions import FilesystemError


def _key(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/")).lstrip("/")


class S3FileStore:
    """Production IFileStore backed by S3.

    Keys are the canonical relative paths with ``/`` separators. S3 has no
    directories and no rename: ``ensure_dir`` is a no-op and ``move`` is
    copy-then-delete, so a move interrupted halfway leaves both copies.
    """

    def __init__(self, bucket: str, region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._bucket = bucket
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)

    def exists(self, path: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=_key(path))
            return True
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise FilesystemError("head", path, str(exc)) from exc

    def ensure_dir(self, path: str) -> None:
        return None

    def move(self, src: str, dst: str) -> None:
        if self.exists(dst):
            raise FilesystemError("move", dst, "target already exists")
        try:
            self._client.copy_object(
                Bucket=self._bucket,
                CopySource={"Bucket": self._bucket, "Key": _key(src)},
                Key=_key(dst),
            )
            self._client.delete_object(Bucket=self._bucket, Key=_key(src))
        except ClientError as exc:
            raise FilesystemError("move", f"{src} -> {dst}", str(exc)) from exc

    def write(self, path: str, data: bytes) -> str:
        try:
            self._client.put_object(
                Bucket=self._bucket, Key=_key(path), Body=data, ContentType="application/pdf",
            )
            return path
        except ClientError as exc:
            raise FilesystemError("write", path, str(exc)) from exc

    def read(self, path: str) -> bytes:
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=_key(path))
            return resp["Body"].read()
        except ClientError as exc:
            raise FilesystemError("read", path, str(exc)) from exc

    def delete(self, path: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=_key(path))
        except ClientError as exc:
            raise FilesystemError("delete", path, str(exc)) from exc

    def absolute(self, path: str) -> str:
        return f"s3://{self._bucket}/{_key(path)}"
