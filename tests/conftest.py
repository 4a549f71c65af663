"""Pytest configuration and shared fixtures.

This module provides reusable fixtures for testing Spica Sync.
Fixtures are organized by category:
- Fake instances: in-memory stand-ins for the instance transport
- Data fixtures: sample functions, dependencies and buckets
- Wiring fixtures: sync contexts and executors around the fakes
"""

import copy
from typing import Any

import pytest
from rich.console import Console

from src.spica_sync.config import PolicyConfig
from src.spica_sync.execution.executor import ApplyExecutor
from src.spica_sync.observability.metrics import MetricsCollector
from src.spica_sync.synchronizers.base import SyncContext
from src.spica_sync.utils.exceptions import ResourceNotFoundError

# =============================================================================
# Fake Instance
# =============================================================================


class FakeInstance:
    """
    In-memory Spica instance implementing the transport interface.

    `routes` maps a path to what GET returns. Unknown paths answer 404.
    Mutations are recorded in `calls` and applied with Spica semantics:
    - POST to a list path appends the body
    - POST .../dependencies installs {"name": ["pkg@1.0.0"]} as version "^1.0.0"
    - POST .../index stores the index
    - PUT/DELETE on "<list path>/<id>" replace/remove the matching document
      (dependencies are matched by name, everything else by _id)

    `fail` maps (method, path) to the exception that call should raise.
    """

    def __init__(self, name: str = "instance", routes: dict[str, Any] | None = None) -> None:
        self.name = name
        self.routes: dict[str, Any] = copy.deepcopy(routes or {})
        self.calls: list[tuple[str, str, Any]] = []
        self.fail: dict[tuple[str, str], Exception] = {}

    @property
    def mutations(self) -> list[tuple[str, str, Any]]:
        return [call for call in self.calls if call[0] != "GET"]

    def _check(self, method: str, path: str) -> None:
        error = self.fail.get((method, path))
        if error is not None:
            raise error

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        self.calls.append(("GET", path, params))
        self._check("GET", path)
        if path not in self.routes:
            raise ResourceNotFoundError(path)
        return copy.deepcopy(self.routes[path])

    async def post(self, path: str, json: Any) -> Any:
        self.calls.append(("POST", path, json))
        self._check("POST", path)
        if path.endswith("/dependencies"):
            installed = self.routes.setdefault(path, [])
            for spec in json["name"]:
                name, _, version = spec.rpartition("@")
                installed[:] = [dep for dep in installed if dep["name"] != name]
                installed.append({"name": name, "version": f"^{version}"})
        elif path.endswith("/index"):
            self.routes[path] = {"index": json["index"]}
        else:
            self.routes.setdefault(path, []).append(copy.deepcopy(json))
        return json

    async def put(self, path: str, json: Any) -> Any:
        self.calls.append(("PUT", path, json))
        self._check("PUT", path)
        parent, _, identity = path.rpartition("/")
        documents = self.routes.get(parent)
        if documents is None:
            raise ResourceNotFoundError(path)
        for position, document in enumerate(documents):
            if document.get("_id") == identity:
                documents[position] = copy.deepcopy(json)
                return json
        raise ResourceNotFoundError(path)

    async def delete(self, path: str) -> None:
        self.calls.append(("DELETE", path, None))
        self._check("DELETE", path)
        parent, _, identity = path.rpartition("/")
        key = "_id"
        if "/dependencies/" in path:
            parent, _, identity = path.partition("/dependencies/")
            parent += "/dependencies"
            key = "name"
        documents = self.routes.get(parent)
        if documents is None:
            raise ResourceNotFoundError(path)
        documents[:] = [document for document in documents if document.get(key) != identity]


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def source_functions() -> list[dict[str, Any]]:
    """Two functions as listed by GET /function."""
    return [
        {
            "_id": "fn1",
            "name": "mailer",
            "env": {"SMTP_PASSWORD": "source-secret"},
            "triggers": {"default": {"type": "http", "options": {"path": "/mail"}}},
            "timeout": 60,
        },
        {
            "_id": "fn2",
            "name": "cleanup",
            "env": {},
            "triggers": {"nightly": {"type": "schedule", "options": {"frequency": "0 0 * * *"}}},
            "timeout": 120,
        },
    ]


@pytest.fixture
def source_buckets() -> list[dict[str, Any]]:
    """One bucket schema as listed by GET /bucket."""
    return [
        {
            "_id": "b1",
            "title": "Orders",
            "primary": "code",
            "properties": {"code": {"type": "string"}, "total": {"type": "number"}},
        }
    ]


@pytest.fixture
def source_routes(source_functions, source_buckets) -> dict[str, Any]:
    """Every path a full source instance answers."""
    return {
        "function": source_functions,
        "function/fn1/dependencies": [
            {"name": "nodemailer", "version": "^6.9.1", "types": {"nodemailer": "^6.4.0"}}
        ],
        "function/fn2/dependencies": [],
        "function/fn1/index": {"index": "export default function () { return 'mail'; }"},
        "function/fn2/index": {"index": "export default function () { return 'clean'; }"},
        "bucket": source_buckets,
        "bucket/b1/data": [
            {"_id": "r1", "code": "A-1", "total": 10},
            {"_id": "r2", "code": "A-2", "total": 20},
        ],
    }


# =============================================================================
# Wiring Fixtures
# =============================================================================


@pytest.fixture
def source() -> FakeInstance:
    """Empty fake source instance; tests fill `routes`."""
    return FakeInstance("source")


@pytest.fixture
def target() -> FakeInstance:
    """Empty fake target instance; tests fill `routes`."""
    return FakeInstance("target")


@pytest.fixture
def collector() -> MetricsCollector:
    """Metrics collector isolated from the global one."""
    return MetricsCollector()


@pytest.fixture
def policy() -> PolicyConfig:
    return PolicyConfig(max_concurrent_operations=5)


@pytest.fixture
def context(source, target, policy, collector) -> SyncContext:
    """Sync context wired to the fake instances."""
    executor = ApplyExecutor(
        max_concurrent_operations=policy.max_concurrent_operations, collector=collector
    )
    return SyncContext(source, target, policy, executor)


@pytest.fixture
def console() -> Console:
    """Console recording its output instead of writing to the terminal."""
    return Console(record=True, width=120, force_terminal=False, color_system=None)


@pytest.fixture
def full_source(source_routes) -> FakeInstance:
    """Fake source instance holding two functions and one bucket with records."""
    return FakeInstance("source", source_routes)
