"""REST API for credledger."""

from credledger.api.app import create_app
from credledger.api.models import (
    APIResponse,
    CourseCreate,
    CourseResponse,
    StudentRegister,
    StudentResponse,
)

__all__ = [
    "APIResponse",
    "CourseCreate",
    "CourseResponse",
    "StudentRegister",
    "StudentResponse",
    "create_app",
]
