"""Module registry: which synchronizers exist and which module names select them.

Roots are enumerated explicitly, in the order they are built and run. A root
may spawn children of other modules (bucket → bucket-data), so the set of
selectable module names is the roots' modules plus their declared children.
"""

from ..utils.exceptions import UnknownModuleError
from .base import ResourceSynchronizer
from .buckets import BucketSynchronizer
from .functions import FunctionSynchronizer

ROOT_SYNCHRONIZERS: tuple[type[ResourceSynchronizer], ...] = (
    FunctionSynchronizer,
    BucketSynchronizer,
)


def available_modules() -> list[str]:
    """Selectable module names, in declaration order."""
    names: list[str] = []
    for synchronizer in ROOT_SYNCHRONIZERS:
        for name in (synchronizer.module_name, *synchronizer.child_module_names):
            if name not in names:
                names.append(name)
    return names


def parse_modules(modules: str | list[str]) -> list[str]:
    """
    Split a comma separated module selection.

    Args:
        modules: "function, bucket" or an already split list

    Returns:
        Stripped, non-empty names in the given order, without repeats
    """
    if isinstance(modules, str):
        modules = modules.split(",")

    names: list[str] = []
    for name in modules:
        name = name.strip()
        if name and name not in names:
            names.append(name)
    return names


def validate_modules(modules: list[str]) -> list[str]:
    """
    Check a module selection against the registry.

    Raises:
        UnknownModuleError: For the first name no synchronizer is registered under
    """
    available = available_modules()
    for name in modules:
        if name not in available:
            raise UnknownModuleError(name, available)
    return modules
