"""Base class shared by every resource synchronizer.

A synchronizer binds the diff engine to one resource kind:

    initialize()  -> child synchronizers discovered from the source instance
    analyze()     -> DiffResult, stored as `state`
    synchronize() -> ApplyReport for the stored state
    display_name  -> human-readable label

`synchronize()` only ever acts on the state captured by the most recent
`analyze()`; it never re-analyzes on its own.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from ..api.client import InstanceClient
from ..config import PolicyConfig
from ..constants import DEFAULT_IDENTITY_FIELD
from ..core.diff_engine import DiffEngine
from ..execution.executor import ApplyExecutor, ItemCall
from ..models.operations import APPLY_PHASES, Resource, ResourceSet, SyncAction
from ..models.results import ApplyReport, DiffResult
from ..utils.exceptions import (
    DiscoveryError,
    InstanceAPIError,
    ResourceNotFoundError,
    SynchronizerStateError,
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

PHASE_VERBS = {
    SyncAction.INSERT: "Inserting",
    SyncAction.UPDATE: "Updating",
    SyncAction.DELETE: "Deleting",
}


@dataclass
class SyncContext:
    """Collaborators shared by every synchronizer of a run."""

    source: InstanceClient
    target: InstanceClient
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    executor: ApplyExecutor = field(default_factory=ApplyExecutor)


class ResourceSynchronizer(ABC):
    """
    Synchronizer for one resource kind.

    Class attributes declare the identity/ignore policy of the variant:
        module_name: Module the synchronizer is selected by
        sub_module_name: Optional sub-module (e.g. "dependency")
        identity_field: Field matched between source and target
        ignored_fields: Fields excluded from update detection
        primary_field: Field used to label resources for humans
        child_module_names: Module names of synchronizers `initialize` may return
    """

    module_name: ClassVar[str]
    sub_module_name: ClassVar[str | None] = None
    identity_field: ClassVar[str] = DEFAULT_IDENTITY_FIELD
    ignored_fields: ClassVar[tuple[str, ...]] = ()
    primary_field: str = "name"
    child_module_names: ClassVar[tuple[str, ...]] = ()

    def __init__(self, context: SyncContext) -> None:
        self.context = context
        self.state: DiffResult | None = None

    @property
    def source(self) -> InstanceClient:
        return self.context.source

    @property
    def target(self) -> InstanceClient:
        return self.context.target

    async def initialize(self) -> list["ResourceSynchronizer"]:
        """Discover dependent synchronizers from the source instance."""
        return []

    async def analyze(self) -> DiffResult:
        """
        Fetch both instances, apply the variant's policy and diff.

        Returns:
            DiffResult, also stored as `state`

        Raises:
            InstanceAPIError: If either instance answers with something other
                than a list of documents
        """
        source = self.require_documents("source", await self.fetch_source())
        target = self.require_documents("target", await self.fetch_target())
        source, target = self.prepare(source, target)

        engine = DiffEngine(self.identity_field, self.ignored_fields)
        self.state = engine.compute_diff(source, target)

        logger.info(
            "Analyzed",
            synchronizer=self.display_name,
            changes=self.state.get_change_summary(),
        )
        return self.state

    def require_documents(self, instance: str, resources: Any) -> ResourceSet:
        """Reject a payload that is not a list of JSON objects."""
        if not isinstance(resources, list):
            raise InstanceAPIError(
                f"{instance} instance returned {type(resources).__name__} "
                f"instead of a list for {self.display_name}"
            )
        for resource in resources:
            if not isinstance(resource, dict):
                raise InstanceAPIError(
                    f"{instance} instance returned a {type(resource).__name__} item "
                    f"instead of an object for {self.display_name}"
                )
        return resources

    @abstractmethod
    async def fetch_source(self) -> ResourceSet:
        pass

    @abstractmethod
    async def fetch_target(self) -> ResourceSet:
        pass

    def prepare(self, source: ResourceSet, target: ResourceSet) -> tuple[ResourceSet, ResourceSet]:
        """Hook to normalize both sets before diffing."""
        return source, target

    async def synchronize(self) -> ApplyReport:
        """
        Apply the state captured by the last analyze against the target.

        Raises:
            SynchronizerStateError: If analyze has not run yet
        """
        state = self.require_state()
        return await self.context.executor.apply_diff(
            state,
            self.apply_calls(),
            self.label,
            {action: self.describe(action) for action in APPLY_PHASES},
            module_name=self.module_name,
        )

    @abstractmethod
    def apply_calls(self) -> dict[SyncAction, ItemCall]:
        """Remote call per apply phase; phases left out are never executed."""

    def describe(self, action: SyncAction) -> str:
        """Progress description of one apply phase."""
        return f"{PHASE_VERBS[action]} {self.display_name} on the target instance"

    @property
    @abstractmethod
    def display_name(self) -> str:
        pass

    def require_state(self) -> DiffResult:
        """
        Return the state of the last analyze.

        Raises:
            SynchronizerStateError: If analyze has not run yet
        """
        if self.state is None:
            raise SynchronizerStateError(
                f"{self.display_name} must be analyzed before it is synchronized"
            )
        return self.state

    def label(self, resource: Resource) -> str:
        """Failure/preview label of one resource."""
        return f"{self.display_name} {resource.get(self.primary_field)}"

    async def fetch_target_or_empty(
        self, fetch: Callable[[], Awaitable[Any]]
    ) -> Any:
        """
        Read target state, treating "not found" as never synchronized.

        Only ResourceNotFoundError is absorbed; every other error propagates.
        """
        try:
            return await fetch()
        except ResourceNotFoundError:
            logger.info("Target has no resources yet", synchronizer=self.display_name)
            return []

    async def discover(self, path: str, model: type[ModelT]) -> list[ModelT]:
        """
        List parent resources on the source instance.

        Args:
            path: Listing path on the source instance
            model: Pydantic model every parent must validate against

        Returns:
            Validated parents, in source order

        Raises:
            DiscoveryError: On any transport failure or malformed payload
        """
        try:
            resources = await self.source.get(path)
        except InstanceAPIError as e:
            raise DiscoveryError(self.module_name, str(e)) from e
        if not isinstance(resources, list):
            raise DiscoveryError(
                self.module_name, f"expected a list from {path}, got {type(resources).__name__}"
            )
        try:
            return [model.model_validate(resource) for resource in resources]
        except ValidationError as e:
            raise DiscoveryError(self.module_name, f"invalid payload from {path}: {e}") from e

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.display_name!r}>"
