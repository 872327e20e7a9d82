from __future__ import annotations

import io
import logging
from typing import Any

from oci.auth.signers import InstancePrincipalsSecurityTokenSigner
from oci.config import from_file
from oci.exceptions import ServiceError
from oci.object_storage import ObjectStorageClient
from oci.signer import Signer

from learning_analytics.core.ports.file_store import StoredFile, parse_time_created

LOGGER = logging.getLogger(__name__)


class OCIObjectStorageS3Shim:
    """
    Lightweight adapter that exposes a small, S3-like interface on top of
    Oracle Cloud Infrastructure (OCI) Object Storage.

    It mimics the subset of the boto3 S3 client the dataset store needs:
    put_object, list_objects, get_object and delete_object.

    Authentication modes:
      - "instance_principal": the OCI Instance Principal of the current
        Compute instance (OCI infrastructure only).
      - "api_key": a user-scoped OCI API key (private PEM key + config file),
        for local development, CI and non-OCI environments.

    An already built client (and namespace) can be injected instead.
    """

    def __init__(
        self,
        *,
        region: str | None = None,
        auth_mode: str = "instance_principal",
        oci_config_file: str | None = None,
        oci_profile: str = "DEFAULT",
        client: Any | None = None,
        namespace: str | None = None,
    ) -> None:
        if client is None:
            client = self._build_client(
                region=region,
                auth_mode=auth_mode,
                oci_config_file=oci_config_file,
                oci_profile=oci_profile,
            )

        self.client = client
        self.namespace = namespace if namespace is not None else self.client.get_namespace().data

    @staticmethod
    def _build_client(
        *,
        region: str | None,
        auth_mode: str,
        oci_config_file: str | None,
        oci_profile: str,
    ) -> ObjectStorageClient:
        if auth_mode == "instance_principal":
            signer = InstancePrincipalsSecurityTokenSigner()
            config = {}

        elif auth_mode == "api_key":
            if oci_config_file is None:
                raise ValueError("oci_config_file is required for api_key auth")

            config = from_file(
                file_location=oci_config_file,
                profile_name=oci_profile,
            )
            signer = Signer(
                tenancy=config["tenancy"],
                user=config["user"],
                fingerprint=config["fingerprint"],
                private_key_file_location=config["key_file"],
                pass_phrase=config.get("pass_phrase"),
            )

        else:
            raise ValueError(f"Unknown auth_mode: {auth_mode}")

        client_kwargs = {}
        if region:
            client_kwargs["region"] = region

        return ObjectStorageClient(
            config=config,
            signer=signer,
            **client_kwargs,
        )

    def put_object(self, bucket: str, key: str, body, content_type: str = "application/octet-stream"):
        """Upload an object; returns a boto3-like dict with the ETag."""
        resp = self.client.put_object(
            namespace_name=self.namespace,
            bucket_name=bucket,
            object_name=key,
            put_object_body=body,
            content_type=content_type,
        )
        headers = getattr(resp, "headers", None) or {}
        return {"ETag": headers.get("etag")}

    def list_objects(
        self,
        bucket: str,
        prefix: str | None = None,
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> dict[str, object]:
        """
        List objects in a bucket, optionally filtered by prefix.

        Pagination is exposed via ContinuationToken / NextContinuationToken,
        mapped onto OCI's 'start' / 'next_start_with'.
        """
        kwargs = {
            "namespace_name": self.namespace,
            "bucket_name": bucket,
            "limit": max_keys,
            "fields": "name,size",
        }
        if prefix:
            kwargs["prefix"] = prefix
        if continuation_token:
            kwargs["start"] = continuation_token

        resp = self.client.list_objects(**kwargs)
        objects = []
        for o in resp.data.objects or []:
            objects.append({"Key": o.name, "Size": getattr(o, "size", None)})

        next_token = getattr(resp.data, "next_start_with", None)
        return {
            "Contents": objects,
            "IsTruncated": bool(next_token),
            "NextContinuationToken": next_token,
        }

    def get_object(self, bucket: str, key: str) -> dict[str, object]:
        """
        Download an object.

        The OCI SDK exposes response bodies in different shapes depending on
        transport and SDK version; they are normalized into one BytesIO.
        """
        resp = self.client.get_object(
            namespace_name=self.namespace,
            bucket_name=bucket,
            object_name=key,
        )

        d = resp.data

        if hasattr(d, "read") and callable(getattr(d, "read")):
            data_bytes = d.read()

        elif hasattr(d, "content"):
            data_bytes = d.content

        elif hasattr(d, "raw") and hasattr(d.raw, "read") and callable(getattr(d.raw, "read")):
            data_bytes = d.raw.read()

        elif hasattr(d, "raw") and hasattr(d.raw, "stream") and callable(getattr(d.raw, "stream")):
            data_bytes = b"".join(d.raw.stream(1024 * 1024, decode_content=False))

        else:
            raise TypeError("Unsupported OCI get_object response type; no readable data attribute found.")

        return {
            "Body": io.BytesIO(data_bytes),
            "ContentLength": len(data_bytes),
        }

    def delete_object(self, bucket: str, key: str) -> None:
        self.client.delete_object(
            namespace_name=self.namespace,
            bucket_name=bucket,
            object_name=key,
        )


class ObjectStorageFileStore:
    """File store on an object storage bucket, under ``root_prefix``."""

    def __init__(
        self,
        storage: OCIObjectStorageS3Shim,
        *,
        bucket: str,
        root_prefix: str = "analytics",
    ) -> None:
        self._storage = storage
        self._bucket = bucket
        self._root = root_prefix.strip("/")

    def put(self, file_id: str, data: bytes) -> StoredFile:
        self._storage.put_object(bucket=self._bucket, key=self._key(file_id), body=data)
        LOGGER.debug("Object stored", extra={"bucket": self._bucket, "file_id": file_id})
        return StoredFile(file_id=file_id, time_created=parse_time_created(file_id), size_bytes=len(data))

    def get(self, file_id: str) -> bytes:
        try:
            resp = self._storage.get_object(bucket=self._bucket, key=self._key(file_id))
        except ServiceError as exc:
            if exc.status == 404:
                raise KeyError(file_id) from None
            raise
        return resp["Body"].read()

    def list(self, prefix: str) -> list[StoredFile]:
        stored = []
        token = None
        root = f"{self._root}/" if self._root else ""

        while True:
            page = self._storage.list_objects(
                bucket=self._bucket,
                prefix=self._key(prefix),
                continuation_token=token,
            )
            for obj in page["Contents"]:
                file_id = obj["Key"][len(root):]
                try:
                    time_created = parse_time_created(file_id)
                except ValueError:
                    continue
                stored.append(StoredFile(file_id=file_id, time_created=time_created, size_bytes=obj["Size"] or 0))

            token = page["NextContinuationToken"]
            if not page["IsTruncated"]:
                break

        stored.sort(key=lambda f: (f.time_created, f.file_id))
        return stored

    def delete(self, file_id: str) -> None:
        try:
            self._storage.delete_object(bucket=self._bucket, key=self._key(file_id))
        except ServiceError as exc:
            if exc.status != 404:
                raise

    def _key(self, file_id: str) -> str:
        return f"{self._root}/{file_id}" if self._root else file_id
