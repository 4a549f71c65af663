"""Spica instance API endpoint paths used by the synchronizers.

Usage:
    from spica_sync.api.endpoints import Endpoints

    endpoint = Endpoints.FUNCTION_INDEX.format(function_id="abc")
    # Returns: "function/abc/index"
"""

from dataclasses import dataclass
from urllib.parse import quote


@dataclass(frozen=True)
class Endpoints:
    """
    Spica REST endpoint constants, relative to the instance API URL.

    Use .format() to substitute path parameters.
    """

    # -------------------------------------------------------------------------
    # Functions
    # -------------------------------------------------------------------------
    FUNCTIONS: str = "function"
    FUNCTION_BY_ID: str = "function/{function_id}"
    FUNCTION_INDEX: str = "function/{function_id}/index"
    FUNCTION_DEPENDENCIES: str = "function/{function_id}/dependencies"
    FUNCTION_DEPENDENCY_BY_NAME: str = "function/{function_id}/dependencies/{name}"

    # -------------------------------------------------------------------------
    # Buckets
    # -------------------------------------------------------------------------
    BUCKETS: str = "bucket"
    BUCKET_BY_ID: str = "bucket/{bucket_id}"
    BUCKET_DATA: str = "bucket/{bucket_id}/data"
    BUCKET_DATA_BY_ID: str = "bucket/{bucket_id}/data/{data_id}"


def dependency_path(function_id: str, name: str) -> str:
    """
    Build the path of one installed dependency.

    Scoped package names ("@scope/pkg") keep their slash; the server matches
    the remainder of the path as the name.
    """
    return Endpoints.FUNCTION_DEPENDENCY_BY_NAME.format(
        function_id=function_id, name=quote(name, safe="@/")
    )
