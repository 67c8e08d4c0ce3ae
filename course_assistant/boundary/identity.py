"""
Identity provider.

Identity is ambient: there is no login flow, only a lookup that returns the
current user or None.

Dependencies: None
System role: User identity seam
"""

from typing import Protocol

from course_assistant.models.course import UserIdentity


class IdentityProvider(Protocol):
    async def current_user(self) -> UserIdentity | None: ...


class StaticIdentityProvider:
    """Returns a fixed identity; None models a signed-out client."""

    def __init__(self, identity: UserIdentity | None = None) -> None:
        self.identity = identity

    async def current_user(self) -> UserIdentity | None:
        return self.identity
