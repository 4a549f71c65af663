"""Bucket module synchronizers: bucket schemas and the records they hold."""

import structlog

from ..api.endpoints import Endpoints
from ..api.response_models import BucketSummary
from ..constants import BUCKET_DATA_MODULE, BUCKET_MODULE, DEFAULT_IDENTITY_FIELD
from ..execution.executor import ItemCall
from ..models.operations import Resource, ResourceSet, SyncAction
from .base import ResourceSynchronizer, SyncContext

logger = structlog.get_logger(__name__)


class BucketSynchronizer(ResourceSynchronizer):
    """Synchronizes bucket schemas, labelled by their title."""

    module_name = BUCKET_MODULE
    primary_field = "title"
    child_module_names = (BUCKET_DATA_MODULE,)

    @property
    def display_name(self) -> str:
        return self.module_name

    async def initialize(self) -> list[ResourceSynchronizer]:
        """
        Discover one record synchronizer per source bucket.

        Raises:
            DiscoveryError: If the source buckets cannot be listed
        """
        buckets = await self.discover(Endpoints.BUCKETS, BucketSummary)
        logger.info("Discovered buckets", count=len(buckets))
        return [BucketDataSynchronizer(self.context, bucket) for bucket in buckets]

    async def fetch_source(self) -> ResourceSet:
        return await self.source.get(Endpoints.BUCKETS)

    async def fetch_target(self) -> ResourceSet:
        return await self.fetch_target_or_empty(lambda: self.target.get(Endpoints.BUCKETS))

    def apply_calls(self) -> dict[SyncAction, ItemCall]:
        return {
            SyncAction.INSERT: self._insert,
            SyncAction.UPDATE: self._update,
            SyncAction.DELETE: self._delete,
        }

    async def _insert(self, bucket: Resource) -> object:
        return await self.target.post(Endpoints.BUCKETS, bucket)

    async def _update(self, bucket: Resource) -> object:
        return await self.target.put(Endpoints.BUCKET_BY_ID.format(bucket_id=bucket["_id"]), bucket)

    async def _delete(self, bucket: Resource) -> object:
        return await self.target.delete(Endpoints.BUCKET_BY_ID.format(bucket_id=bucket["_id"]))


class BucketDataSynchronizer(ResourceSynchronizer):
    """
    Synchronizes the records of one bucket.

    Records are labelled by the bucket's primary property; buckets without
    one fall back to the record id.
    """

    module_name = BUCKET_DATA_MODULE

    # Raw field values, not translations for the requesting user
    params = {"localize": "false"}

    def __init__(self, context: SyncContext, bucket: BucketSummary) -> None:
        super().__init__(context)
        self.bucket = bucket
        self.primary_field = bucket.primary or DEFAULT_IDENTITY_FIELD

    @property
    def display_name(self) -> str:
        return f"{self.module_name} '{self.bucket.title}'"

    @property
    def path(self) -> str:
        return Endpoints.BUCKET_DATA.format(bucket_id=self.bucket.id)

    def _record_path(self, record: Resource) -> str:
        return Endpoints.BUCKET_DATA_BY_ID.format(bucket_id=self.bucket.id, data_id=record["_id"])

    async def fetch_source(self) -> ResourceSet:
        return await self.source.get(self.path, params=self.params)

    async def fetch_target(self) -> ResourceSet:
        return await self.fetch_target_or_empty(
            lambda: self.target.get(self.path, params=self.params)
        )

    def apply_calls(self) -> dict[SyncAction, ItemCall]:
        return {
            SyncAction.INSERT: self._insert,
            SyncAction.UPDATE: self._update,
            SyncAction.DELETE: self._delete,
        }

    async def _insert(self, record: Resource) -> object:
        return await self.target.post(self.path, record)

    async def _update(self, record: Resource) -> object:
        return await self.target.put(self._record_path(record), record)

    async def _delete(self, record: Resource) -> object:
        return await self.target.delete(self._record_path(record))
