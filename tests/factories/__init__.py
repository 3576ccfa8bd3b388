"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import PrincipalFactory, TenantFactory, ...
"""

from tests.factories.base import BaseFactory, generate_id, utc_now
from tests.factories.project import ProjectFactory, ProjectMemberFactory
from tests.factories.workspace import (
    PrincipalFactory,
    TenantFactory,
    WorkspaceMemberFactory,
)

__all__ = [
    # Base
    "BaseFactory",
    "generate_id",
    "utc_now",
    # Workspace
    "PrincipalFactory",
    "TenantFactory",
    "WorkspaceMemberFactory",
    # Project
    "ProjectFactory",
    "ProjectMemberFactory",
]
