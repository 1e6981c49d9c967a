"""Access policy table.

Maps a literal route identifier (the path template a handler was registered
with, e.g. "/courses/{courseID}/modify/students") to the roles allowed to
call it. Lookups are exact key matches; an unregistered route allows nobody.

Usage:
    policy = AccessPolicy().register("/courses/create", Role.ADMIN)
    policy.is_allowed("/courses/create", Role.ADMIN)  # True
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from journal.core.models import Role


class AccessDeniedError(Exception):
    """Raised when a role is not allowed to call a route."""

    def __init__(self, route: str, role: Role):
        self.route = route
        self.role = role
        super().__init__(f"role '{role.value}' is not allowed on '{route}'")


class AccessPolicy:
    """Immutable route → allowed roles table."""

    __slots__ = ("_rules",)

    def __init__(self, rules: Mapping[str, frozenset[Role]] | None = None):
        self._rules = MappingProxyType(dict(rules or {}))

    def register(self, route: str, *roles: Role) -> AccessPolicy:
        """Return a new policy with `route` bound to `roles`.

        Registering the same route again replaces its role set.
        """
        rules = dict(self._rules)
        rules[route] = frozenset(roles)
        return AccessPolicy(rules)

    def is_allowed(self, route: str, role: Role) -> bool:
        return role in self._rules.get(route, frozenset())

    def check(self, route: str, role: Role) -> None:
        """Raise AccessDeniedError unless `role` may call `route`."""
        if not self.is_allowed(route, role):
            raise AccessDeniedError(route, role)

    def roles_for(self, route: str) -> frozenset[Role]:
        return self._rules.get(route, frozenset())

    @property
    def routes(self) -> list[str]:
        return sorted(self._rules)

    def __contains__(self, route: object) -> bool:
        return route in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"AccessPolicy(routes={self.routes!r})"
