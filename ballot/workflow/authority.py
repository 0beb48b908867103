"""Administrator authority.

The workflow only ever asks one question of it: is this caller the
administrator. Ownership lives outside the session so it survives resets.
"""

import logging

from ballot.lib.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class OwnerAuthority:
    """Single-owner capability check."""

    def __init__(self, owner: str):
        if not owner:
            raise ValueError("owner must not be empty")
        self._owner = owner

    @property
    def owner(self) -> str:
        return self._owner

    def is_administrator(self, caller: str) -> bool:
        """Check whether ``caller`` holds the administrator role."""
        return caller == self._owner

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """Hand the administrator role to ``new_owner``.

        Raises:
            UnauthorizedError: If the caller is not the current owner
            ValueError: If ``new_owner`` is empty
        """
        if not self.is_administrator(caller):
            raise UnauthorizedError(caller, "the administrator")
        if not new_owner:
            raise ValueError("new_owner must not be empty")
        logger.info(f"Administrator role transferred from {self._owner} to {new_owner}")
        self._owner = new_owner
