"""Bucket and object handles.

Every operation here is one call to :meth:`Client.request`: one token, one
authorized HTTP request, failures raised as :class:`StorageError`.  Handles
carry only names; nothing about the remote resource is cached.

Typical usage::

    async with Client.from_env("my-project") as client:
        bucket = await client.create_bucket("my-bucket")
        obj = await bucket.create_object("hello.txt", b"hi", "text/plain")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from gcs_auth.errors import StorageError

if TYPE_CHECKING:
    from gcs_auth.client import Client

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_ACL = "private"


def path_segment(name: str) -> str:
    """Percent-encode *name* for use as a single URL path segment."""
    return quote(name, safe="")


def resource_name(resource: Any, operation: str) -> str:
    """Return the ``name`` field of a bucket or object resource.

    Raises:
        StorageError: If the response is not a resource with a string name.
    """
    if isinstance(resource, dict) and isinstance(resource.get("name"), str):
        return resource["name"]
    raise StorageError(f"{operation}: response is not a resource with a name")


class Object:
    """Handle to an object stored in a bucket."""

    def __init__(self, client: Client, bucket: str, name: str) -> None:
        self.client = client
        self.bucket = bucket
        self.name = name

    def __repr__(self) -> str:
        return f"Object(bucket={self.bucket!r}, name={self.name!r})"


class Bucket:
    """Handle to a Cloud Storage bucket."""

    def __init__(self, client: Client, name: str) -> None:
        self.client = client
        self.name = name

    def __repr__(self) -> str:
        return f"Bucket(name={self.name!r})"

    async def create_object(
        self,
        name: str,
        data: bytes,
        mime_type: str,
        acl: str | None = None,
    ) -> Object:
        """Upload *data* as a new object in this bucket.

        Args:
            name: Object name.
            data: Object contents.
            mime_type: Sent as the ``content-type`` of the upload.
            acl: Predefined ACL name; ``private`` when omitted.

        Returns:
            Handle to the created object.
        """
        url = f"{self.client.UPLOAD_ENDPOINT}/b/{path_segment(self.name)}/o"
        resource = await self.client.request(
            "POST",
            url,
            params={"uploadType": "media", "name": name, "predefinedAcl": acl or DEFAULT_OBJECT_ACL},
            data=data,
            headers={"content-type": mime_type},
        )
        created = resource_name(resource, f"create object {name!r}")
        logger.info("Uploaded %s/%s (%d bytes)", self.name, created, len(data))
        return Object(self.client, self.name, created)

    async def object(self, name: str) -> Object:
        """Look up an existing object by name."""
        url = self.client.uri(f"/b/{path_segment(self.name)}/o/{path_segment(name)}")
        resource = await self.client.request("GET", url)
        return Object(self.client, self.name, resource_name(resource, f"get object {name!r}"))

    async def delete(self) -> None:
        """Delete the bucket.  It must be empty."""
        await self.client.request("DELETE", self.client.uri(f"/b/{path_segment(self.name)}"))
        logger.info("Deleted bucket %s", self.name)
