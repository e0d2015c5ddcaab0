"""
Admin gate for privileged ledger calls.

Only ownership is modelled: the owner may add and reconfigure pools and change
the emission parameters.
"""

import logging

from staking_errors import UnauthorizedError

logger = logging.getLogger(__name__)


class AdminGate:
    """Single-owner gate around administrative operations."""

    def __init__(self, owner):
        if not owner:
            raise ValueError("Owner must be set")
        self.owner = owner

    def require_owner(self, caller):
        """Raises UnauthorizedError unless caller is the owner."""
        if caller != self.owner:
            raise UnauthorizedError(f"Caller {caller} is not the owner")

    def transfer_ownership(self, caller, new_owner):
        """Hands ownership to a new address."""
        self.require_owner(caller)
        if not new_owner:
            raise ValueError("New owner must be set")
        logger.info("Ownership transferred from %s to %s", self.owner, new_owner)
        self.owner = new_owner
