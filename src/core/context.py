"""Authentication context model for typed caller identity."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class AuthenticatedCaller:
    """Identity handed over by the authentication layer."""

    user_id: UUID
    email: str | None = None

    def __post_init__(self):
        """Ensure the identity carries a user id."""
        if not self.user_id:
            raise ValueError("User id is required in authentication context")
