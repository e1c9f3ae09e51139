from routinely.services import (
    condition_service,
    dependency_service,
    permission_service,
    sharing_access_service,
    visibility_service,
)


__all__ = [
    "condition_service",
    "dependency_service",
    "permission_service",
    "sharing_access_service",
    "visibility_service",
]
