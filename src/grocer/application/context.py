"""Per-request caller identity.

Authentication happens outside this package; whoever authenticated the
caller hands the result to each use case explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from grocer.domain.exceptions import AccessDeniedError


class Role(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


@dataclass(frozen=True)
class RequestContext:
    user_id: str
    role: Role = Role.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_admin(self) -> None:
        if not self.is_admin:
            raise AccessDeniedError("Admin access required")

    def require_customer(self) -> None:
        if self.role != Role.CUSTOMER:
            raise AccessDeniedError("Customer access required")
