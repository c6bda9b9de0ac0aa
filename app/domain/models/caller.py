"""
The authenticated actor of an operation and the elevated-capability seam.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional


@dataclass(frozen=True)
class Caller:
    """Verified identity passed explicitly into every use case."""

    user_id: str
    tenant_id: str
    role: Optional[str] = None


# May the caller act on, and aggregate, other members' entries?
ElevatedPredicate = Callable[[Caller], bool]


def role_predicate(elevated_roles: Iterable[str]) -> ElevatedPredicate:
    """Capability predicate granting elevation to a configured set of roles."""
    roles = frozenset(role.upper() for role in elevated_roles)

    def is_elevated(caller: Caller) -> bool:
        return bool(caller.role) and caller.role.upper() in roles

    return is_elevated
