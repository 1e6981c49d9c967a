"""Core domain logic.

Modules:
- models: domain dataclasses and the Role enum
- policy: route → allowed roles table
- cookie_codec: encrypted authorization cookie
- tokens: bearer token verification and issuing
- course_aggregator: nested "my courses" view
"""

__all__ = [
    "models",
    "policy",
    "cookie_codec",
    "tokens",
    "course_aggregator",
]
