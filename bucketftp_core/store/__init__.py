"""Object store interface and implementations."""

from bucketftp_core.store.object_store import (
    ListingPage,
    ObjectBody,
    ObjectStoreClient,
    ObjectSummary,
)
from bucketftp_core.store.stores import Boto3ObjectStore

__all__ = [
    "Boto3ObjectStore",
    "ListingPage",
    "ObjectBody",
    "ObjectStoreClient",
    "ObjectSummary",
]
