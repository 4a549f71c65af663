"""Diff Engine - Compare a source resource set against a target resource set.

Determines which resources must be inserted, updated or deleted on the target
so that it converges to the source ("source wins").
"""

from collections.abc import Iterable
from typing import Any

import structlog

from ..constants import DEFAULT_IDENTITY_FIELD
from ..models.operations import Resource, ResourceSet
from ..models.results import DiffResult

logger = structlog.get_logger(__name__)


class DiffEngine:
    """
    Compute the insertions, updations and deletions between two resource sets.

    Decision Matrix (by identity value):
    - In source, not in target → INSERT (source copy)
    - In both, compared fields differ → UPDATE (source copy)
    - In both, compared fields equal → nothing
    - In target, not in source → DELETE (target copy)

    Compared fields are every field except the identity field and the
    configured ignored fields. Equality is structural equality on the JSON
    documents: key order never matters, and booleans never equal numbers
    (`true` and `1` are different JSON values).

    Precondition:
    Identity values are unique within each resource set. With duplicates the
    first source document wins the update comparison; nothing is deduplicated.

    The engine performs no I/O and never mutates its inputs.
    """

    def __init__(
        self,
        identity_field: str = DEFAULT_IDENTITY_FIELD,
        ignored_fields: Iterable[str] = (),
    ) -> None:
        """
        Initialize diff engine with an identity/ignore policy.

        Args:
            identity_field: Field whose value identifies a resource in both sets
            ignored_fields: Fields excluded from update detection
        """
        self.identity_field = identity_field
        self.ignored_fields = frozenset(ignored_fields)

    def compute_diff(self, source: ResourceSet, target: ResourceSet) -> DiffResult:
        """
        Determine what must change for target to converge to source.

        Args:
            source: Resources fetched from the source instance
            target: Resources fetched from the target instance

        Returns:
            DiffResult with insertions, updations and deletions
        """
        source_by_identity: dict[Any, Resource] = {}
        for resource in source:
            source_by_identity.setdefault(resource.get(self.identity_field), resource)
        target_identities = {resource.get(self.identity_field) for resource in target}

        existing = [
            resource
            for resource in target
            if resource.get(self.identity_field) in source_by_identity
        ]

        insertions = [
            resource
            for resource in source
            if resource.get(self.identity_field) not in target_identities
        ]
        deletions = [
            resource
            for resource in target
            if resource.get(self.identity_field) not in source_by_identity
        ]

        updations: ResourceSet = []
        for current in existing:
            desired = source_by_identity[current.get(self.identity_field)]
            if not json_equal(self._compared_fields(desired), self._compared_fields(current)):
                updations.append(desired)

        result = DiffResult(insertions=insertions, updations=updations, deletions=deletions)

        logger.debug(
            "Computed diff",
            identity_field=self.identity_field,
            source_count=len(source),
            target_count=len(target),
            insertions=len(insertions),
            updations=len(updations),
            deletions=len(deletions),
        )
        return result

    def _compared_fields(self, resource: Resource) -> Resource:
        """Copy of the resource without identity and ignored fields."""
        return {
            key: value
            for key, value in resource.items()
            if key != self.identity_field and key not in self.ignored_fields
        }


def json_equal(left: Any, right: Any) -> bool:
    """Deep equality of two JSON values in which booleans never equal numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            json_equal(value, right[key]) for key, value in left.items()
        )
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(
            json_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, (dict, list)) or isinstance(right, (dict, list)):
        return False
    return left == right


def compute_diff(
    source: ResourceSet,
    target: ResourceSet,
    identity_field: str = DEFAULT_IDENTITY_FIELD,
    ignored_fields: Iterable[str] = (),
) -> DiffResult:
    """
    Diff two resource sets in one call.

    Args:
        source: Resources fetched from the source instance
        target: Resources fetched from the target instance
        identity_field: Field whose value identifies a resource
        ignored_fields: Fields excluded from update detection

    Returns:
        DiffResult with insertions, updations and deletions
    """
    return DiffEngine(identity_field, ignored_fields).compute_diff(source, target)
