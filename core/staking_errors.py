"""
Error taxonomy for the Brewing staking ledger.

Every rejected operation raises a subclass of StakingError. StakingError itself
derives from ValueError so callers that only care about "this operation was
refused" can keep catching ValueError, the way the rest of the model signals
invalid input.
"""


class StakingError(ValueError):
    """Base class for all ledger errors."""


class ConfigurationError(StakingError):
    """
    Raised at an administrative call boundary when a pool or protocol
    parameter is out of range (fee above cap, duplicate staked asset,
    forfeiture distribution at or above 100%).
    """


class InsufficientBalanceError(StakingError):
    """Raised when an amount exceeds the stake or token balance backing it."""


class UnauthorizedError(StakingError):
    """Raised when a privileged call is made by the wrong caller."""


class PoolNotFoundError(StakingError):
    """Raised when a pool index does not resolve to a registered pool."""
