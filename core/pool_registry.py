"""
Pool Registry Model for the Brewing staking ledger.

This module holds the ledger's state tables: the ordered list of pools and the
per (pool, depositor) user accounts. Pools are append-only and identified by
their index. The registry keeps the sum of allocation weights so each pool's
share of emissions can be computed without iterating over every pool.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Tuple

from staking_errors import ConfigurationError, PoolNotFoundError

logger = logging.getLogger(__name__)

# Fixed-point scale of the reward accumulator
SHARE_SCALE = 10**12

# Fee and split ratios are expressed in basis points
BASIS_POINTS = 10_000

# Maximum deposit fee a pool may charge (5%)
MAX_DEPOSIT_FEE_BP = 500


@dataclass
class PoolState:
    """
    State of a single staking pool.

    acc_reward_per_share is the scaled reward earned by one unit of stake since
    the pool was created. A depositor's pending reward is their stake times the
    growth of this value since their last settlement.
    """
    staked_asset: Any               # LedgerAsset handle for the staked token
    allocation_weight: int          # Share of emissions relative to other pools
    last_accrual_time: int          # Timestamp up to which rewards are accrued
    acc_reward_per_share: int = 0   # Scaled cumulative reward per unit staked
    deposit_fee_bp: int = 0         # Fee charged on deposits, in basis points
    maturity_duration: int = 0      # Seconds until rewards are fully vested
    total_staked: int = 0           # Sum of all user stakes in the pool


@dataclass
class UserAccount:
    """
    A depositor's position in one pool.

    reward_debt is staked_amount * acc_reward_per_share / SHARE_SCALE as of the
    last settlement, so the difference against the current accumulator is the
    full pending reward before vesting.
    """
    staked_amount: int = 0          # Amount of the pool's asset staked
    deposit_timestamp: int = 0      # Start of the vesting clock
    reward_debt: int = 0            # Accumulator value already settled

    def reset(self):
        """Zeroes the account, keeping the record for future deposits."""
        self.staked_amount = 0
        self.deposit_timestamp = 0
        self.reward_debt = 0


class PoolRegistry:
    """
    Ordered collection of pools and their user accounts.
    """

    def __init__(self):
        self.pools: List[PoolState] = []
        self.user_accounts: Dict[Tuple[int, str], UserAccount] = {}
        self.total_allocation_weight = 0

        # Staked assets already registered, to reject duplicate pools
        self._registered_assets = set()

    def pool_length(self):
        """Returns the number of pools."""
        return len(self.pools)

    def get_pool(self, pool_index):
        """
        Resolves a pool by index.

        Raises:
            PoolNotFoundError: If no pool has this index
        """
        if not isinstance(pool_index, int) or pool_index < 0 or pool_index >= len(self.pools):
            raise PoolNotFoundError(f"Pool {pool_index} does not exist")
        return self.pools[pool_index]

    def user_account(self, pool_index, depositor):
        """Returns the depositor's account in a pool, creating an empty one if needed."""
        self.get_pool(pool_index)
        key = (pool_index, depositor)
        if key not in self.user_accounts:
            self.user_accounts[key] = UserAccount()
        return self.user_accounts[key]

    def peek_user_account(self, pool_index, depositor):
        """
        Returns a detached copy of the depositor's account without creating one.
        Changing the copy never changes the ledger.
        """
        self.get_pool(pool_index)
        account = self.user_accounts.get((pool_index, depositor))
        return replace(account) if account is not None else UserAccount()

    def is_registered(self, staked_asset):
        """Returns True if a pool already stakes this asset."""
        return staked_asset in self._registered_assets

    def add_pool(self, staked_asset, allocation_weight, deposit_fee_bp, maturity_duration, last_accrual_time):
        """
        Appends a new pool.

        Args:
            staked_asset: LedgerAsset staked into the pool
            allocation_weight: Share of emissions for the pool
            deposit_fee_bp: Deposit fee in basis points (at most MAX_DEPOSIT_FEE_BP)
            maturity_duration: Seconds until rewards are fully vested
            last_accrual_time: Timestamp from which the pool starts accruing

        Returns:
            Index of the new pool

        Raises:
            ConfigurationError: If a parameter is out of range or the asset is
                already staked in another pool
        """
        self.validate_pool_params(allocation_weight, deposit_fee_bp, maturity_duration)

        if self.is_registered(staked_asset):
            raise ConfigurationError(f"Staked asset {staked_asset!r} already has a pool")

        self.pools.append(
            PoolState(
                staked_asset=staked_asset,
                allocation_weight=allocation_weight,
                last_accrual_time=last_accrual_time,
                deposit_fee_bp=deposit_fee_bp,
                maturity_duration=maturity_duration,
            )
        )
        self._registered_assets.add(staked_asset)
        self.total_allocation_weight += allocation_weight

        pool_index = len(self.pools) - 1
        logger.info(
            "Added pool %d for %r: weight=%d fee=%dbp maturity=%ds",
            pool_index, staked_asset, allocation_weight, deposit_fee_bp, maturity_duration,
        )
        return pool_index

    def set_pool(self, pool_index, allocation_weight, deposit_fee_bp, maturity_duration):
        """
        Updates a pool's weight, deposit fee and maturity duration.

        Raises:
            PoolNotFoundError: If the pool does not exist
            ConfigurationError: If a parameter is out of range
        """
        pool = self.get_pool(pool_index)
        self.validate_pool_params(allocation_weight, deposit_fee_bp, maturity_duration)

        self.total_allocation_weight = (
            self.total_allocation_weight - pool.allocation_weight + allocation_weight
        )
        pool.allocation_weight = allocation_weight
        pool.deposit_fee_bp = deposit_fee_bp
        pool.maturity_duration = maturity_duration

        logger.info(
            "Updated pool %d: weight=%d fee=%dbp maturity=%ds",
            pool_index, allocation_weight, deposit_fee_bp, maturity_duration,
        )
        return pool

    @staticmethod
    def validate_pool_params(allocation_weight, deposit_fee_bp, maturity_duration):
        if allocation_weight < 0:
            raise ConfigurationError("Allocation weight cannot be negative")

        if deposit_fee_bp < 0 or deposit_fee_bp > MAX_DEPOSIT_FEE_BP:
            raise ConfigurationError(
                f"Deposit fee must be between 0 and {MAX_DEPOSIT_FEE_BP} basis points"
            )

        if maturity_duration < 0:
            raise ConfigurationError("Maturity duration cannot be negative")
