"""
Core application: shared infrastructure for the domain apps.

Holds no business logic. Domain apps (appointments, payments) build on:

    core.models.BaseModel                created_at / updated_at
    core.model_mixins.UUIDPrimaryKeyMixin
    core.services.BaseService, ServiceResult
    core.exceptions                      error hierarchy mapped to HTTP codes
    core.helpers.get_client_ip
    core.views.health_check

Models and model mixins are not re-exported here, importing them before the
app registry is ready raises AppRegistryNotReady.
"""

from .exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from .helpers import get_client_ip
from .services import BaseService, ServiceResult

__all__ = [
    "BaseApplicationError",
    "BaseService",
    "ConflictError",
    "NotFoundError",
    "PermissionDeniedError",
    "ServiceResult",
    "get_client_ip",
]
