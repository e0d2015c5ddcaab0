"""
Reward Accrual Engine for the Brewing staking ledger.

Rewards are emitted at a fixed rate per second and split between pools by
allocation weight. Instead of crediting every depositor on each emission, the
engine grows a per-pool accumulator (reward per unit staked, scaled by
SHARE_SCALE); depositors settle against it when they next touch the pool.

Each accrual mints the pool's reward into the treasury custody plus a dev share
of one tenth on top.
"""

import logging

from pool_registry import SHARE_SCALE

logger = logging.getLogger(__name__)

# Dev share minted on top of every pool reward (reward // DEV_SHARE_DIVISOR)
DEV_SHARE_DIVISOR = 10


class RewardAccrualEngine:
    """
    Advances pool accumulators to the current time.
    """

    def __init__(self, registry, treasury, clock, reward_rate_per_second, start_time, dev_address):
        if reward_rate_per_second < 0:
            raise ValueError("Reward rate cannot be negative")

        self.registry = registry
        self.treasury = treasury
        self.clock = clock
        self.reward_rate_per_second = reward_rate_per_second
        self.start_time = start_time
        self.dev_address = dev_address

    def get_multiplier(self, from_time, to_time):
        """
        Returns the number of reward-bearing seconds in [from_time, to_time].

        Nothing accrues before start_time.
        """
        from_time = max(from_time, self.start_time)
        if to_time < from_time:
            return 0
        return to_time - from_time

    def pool_reward(self, pool, from_time, to_time):
        """
        Computes the reward a pool earns over an interval.

        Args:
            pool: PoolState earning the reward
            from_time: Start of the interval
            to_time: End of the interval

        Returns:
            The reward, truncated to an integer
        """
        total_weight = self.registry.total_allocation_weight
        if total_weight == 0:
            return 0
        multiplier = self.get_multiplier(from_time, to_time)
        return multiplier * self.reward_rate_per_second * pool.allocation_weight // total_weight

    def projected_acc_reward_per_share(self, pool):
        """
        Returns the accumulator the pool would have if accrued now, without
        changing any state.
        """
        now = self.clock.now()
        acc = pool.acc_reward_per_share
        if now > pool.last_accrual_time and pool.total_staked != 0:
            reward = self.pool_reward(pool, pool.last_accrual_time, now)
            acc += reward * SHARE_SCALE // pool.total_staked
        return acc

    def accrue(self, pool):
        """
        Brings a pool's accumulator up to the current time.

        Safe to call any number of times; a call with no elapsed time does
        nothing.

        Args:
            pool: PoolState to accrue

        Returns:
            The reward minted for the pool's depositors
        """
        now = self.clock.now()
        if now <= pool.last_accrual_time:
            return 0

        if pool.total_staked == 0 or self.registry.total_allocation_weight == 0:
            pool.last_accrual_time = now
            return 0

        reward = self.pool_reward(pool, pool.last_accrual_time, now)

        if reward > 0:
            self.treasury.mint(self.dev_address, reward // DEV_SHARE_DIVISOR)
            self.treasury.mint(self.treasury.custody_address, reward)
            pool.acc_reward_per_share += reward * SHARE_SCALE // pool.total_staked

        logger.debug(
            "Accrued %d over [%d, %d], acc_reward_per_share=%d",
            reward, pool.last_accrual_time, now, pool.acc_reward_per_share,
        )
        pool.last_accrual_time = now
        return reward

    def accrue_all(self):
        """Accrues every pool in index order. Returns the total reward minted."""
        return sum(self.accrue(pool) for pool in self.registry.pools)
