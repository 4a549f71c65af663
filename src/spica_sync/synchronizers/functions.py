"""Function module synchronizers.

FunctionSynchronizer          function documents
FunctionDependencySynchronizer installed packages of one function
FunctionIndexSynchronizer     source code (index) of one function
"""

import copy

import structlog

from ..api.endpoints import Endpoints, dependency_path
from ..api.response_models import DependencyEntry, FunctionIndexResponse, FunctionSummary
from ..constants import (
    DEPENDENCY_SUB_MODULE,
    DEPENDENCY_TYPES_FIELD,
    FUNCTION_ENV_FIELD,
    FUNCTION_MODULE,
    INDEX_SUB_MODULE,
    VERSION_RANGE_PREFIXES,
)
from ..execution.executor import ItemCall
from ..models.operations import Resource, ResourceSet, SyncAction
from .base import ResourceSynchronizer, SyncContext

logger = structlog.get_logger(__name__)


class FunctionSynchronizer(ResourceSynchronizer):
    """
    Synchronizes function documents.

    Unless the policy enables `sync_function_env`, environment values never
    travel from source to target: every source function gets an empty `env`,
    back-filled with the target's current `env` when the function already
    exists there, so env differences never produce an update.
    """

    module_name = FUNCTION_MODULE
    primary_field = "name"
    child_module_names = (FUNCTION_MODULE,)

    @property
    def display_name(self) -> str:
        return self.module_name

    async def initialize(self) -> list[ResourceSynchronizer]:
        """
        Discover one dependency and one index synchronizer per source function.

        Returns:
            All dependency synchronizers followed by all index synchronizers

        Raises:
            DiscoveryError: If the source functions cannot be listed
        """
        functions = await self.discover(Endpoints.FUNCTIONS, FunctionSummary)
        logger.info("Discovered functions", count=len(functions))

        children: list[ResourceSynchronizer] = [
            FunctionDependencySynchronizer(self.context, fn) for fn in functions
        ]
        children.extend(FunctionIndexSynchronizer(self.context, fn) for fn in functions)
        return children

    async def fetch_source(self) -> ResourceSet:
        return await self.source.get(Endpoints.FUNCTIONS)

    async def fetch_target(self) -> ResourceSet:
        return await self.fetch_target_or_empty(lambda: self.target.get(Endpoints.FUNCTIONS))

    def prepare(self, source: ResourceSet, target: ResourceSet) -> tuple[ResourceSet, ResourceSet]:
        if self.context.policy.sync_function_env:
            return source, target
        return mask_function_env(source, target), target

    def apply_calls(self) -> dict[SyncAction, ItemCall]:
        return {
            SyncAction.INSERT: self._insert,
            SyncAction.UPDATE: self._update,
            SyncAction.DELETE: self._delete,
        }

    async def _insert(self, fn: Resource) -> object:
        return await self.target.post(Endpoints.FUNCTIONS, fn)

    async def _update(self, fn: Resource) -> object:
        return await self.target.put(Endpoints.FUNCTION_BY_ID.format(function_id=fn["_id"]), fn)

    async def _delete(self, fn: Resource) -> object:
        return await self.target.delete(Endpoints.FUNCTION_BY_ID.format(function_id=fn["_id"]))


def mask_function_env(source: ResourceSet, target: ResourceSet) -> ResourceSet:
    """
    Replace each source function's env with the target's current env.

    Functions missing from the target get an empty env. Source documents are
    copied, never modified in place.

    Args:
        source: Source function documents
        target: Target function documents

    Returns:
        Masked copies of the source documents
    """
    target_env = {fn.get("_id"): fn.get(FUNCTION_ENV_FIELD, {}) for fn in target}

    masked = []
    for fn in source:
        fn = dict(fn)
        fn[FUNCTION_ENV_FIELD] = copy.deepcopy(target_env.get(fn.get("_id"), {}))
        masked.append(fn)
    return masked


class FunctionDependencySynchronizer(ResourceSynchronizer):
    """Synchronizes the installed packages of one function, matched by package name."""

    module_name = FUNCTION_MODULE
    sub_module_name = DEPENDENCY_SUB_MODULE
    identity_field = "name"
    ignored_fields = (DEPENDENCY_TYPES_FIELD,)
    primary_field = "name"

    def __init__(self, context: SyncContext, function: FunctionSummary) -> None:
        super().__init__(context)
        self.function = function

    @property
    def display_name(self) -> str:
        return f"{self.module_name} '{self.function.name}' {self.sub_module_name}"

    @property
    def path(self) -> str:
        return Endpoints.FUNCTION_DEPENDENCIES.format(function_id=self.function.id)

    async def fetch_source(self) -> ResourceSet:
        return await self.source.get(self.path)

    async def fetch_target(self) -> ResourceSet:
        return await self.fetch_target_or_empty(lambda: self.target.get(self.path))

    def apply_calls(self) -> dict[SyncAction, ItemCall]:
        # Reinstalling a package at the source version replaces the old one
        return {
            SyncAction.INSERT: self._install,
            SyncAction.UPDATE: self._install,
            SyncAction.DELETE: self._uninstall,
        }

    async def _install(self, dependency: Resource) -> object:
        return await self.target.post(self.path, {"name": [install_spec(dependency)]})

    async def _uninstall(self, dependency: Resource) -> object:
        return await self.target.delete(dependency_path(self.function.id, dependency["name"]))


def install_spec(dependency: Resource) -> str:
    """
    Build the `name@version` install spec of a dependency.

    A leading range operator is dropped: `{"name": "lodash", "version": "^4.17.21"}`
    becomes `lodash@4.17.21`.
    """
    entry = DependencyEntry.model_validate(dependency)
    version = entry.version.lstrip(VERSION_RANGE_PREFIXES)
    if not version:
        return entry.name
    return f"{entry.name}@{version}"


class FunctionIndexSynchronizer(ResourceSynchronizer):
    """
    Synchronizes the index of one source function.

    Only source functions are enumerated, so there is never anything to
    delete: an index goes away together with its function.
    """

    module_name = FUNCTION_MODULE
    sub_module_name = INDEX_SUB_MODULE
    primary_field = "name"

    def __init__(self, context: SyncContext, function: FunctionSummary) -> None:
        super().__init__(context)
        self.function = function

    @property
    def display_name(self) -> str:
        return f"{self.module_name} '{self.function.name}' {self.sub_module_name}"

    @property
    def path(self) -> str:
        return Endpoints.FUNCTION_INDEX.format(function_id=self.function.id)

    def _as_resource(self, response: object) -> Resource:
        index = FunctionIndexResponse.model_validate(response)
        return {"_id": self.function.id, "name": self.function.name, "index": index.index}

    async def fetch_source(self) -> ResourceSet:
        return [self._as_resource(await self.source.get(self.path))]

    async def fetch_target(self) -> ResourceSet:
        return await self.fetch_target_or_empty(self._read_target)

    async def _read_target(self) -> ResourceSet:
        return [self._as_resource(await self.target.get(self.path))]

    def apply_calls(self) -> dict[SyncAction, ItemCall]:
        return {
            SyncAction.INSERT: self._write,
            SyncAction.UPDATE: self._write,
        }

    async def _write(self, index: Resource) -> object:
        return await self.target.post(self.path, {"index": index["index"]})
