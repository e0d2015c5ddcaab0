"""
Forfeiture redistribution for the Brewing staking ledger.

Unvested rewards given up by an early harvest are split in two: most of it is
re-injected into the pool accumulator for everyone still staked, and the rest
is paid to the fee address.
"""

import logging

from pool_registry import BASIS_POINTS, SHARE_SCALE

logger = logging.getLogger(__name__)

# Share of a forfeiture returned to the pool (95%)
DEFAULT_FORFEITED_DISTRIBUTION_BP = 9500


class ForfeitureRedistributor:
    """
    Routes forfeited rewards back into a pool and to the fee sink.
    """

    def __init__(self, payout, fee_address, distribution_bp=DEFAULT_FORFEITED_DISTRIBUTION_BP):
        self.payout = payout
        self.fee_address = fee_address
        self.distribution_bp = distribution_bp

        # Redistributed shares that had no stakers left to receive them
        self.total_stranded = 0

    def split(self, forfeited):
        """Returns (distributed_back, to_fee_sink) for a forfeited amount."""
        distributed_back = forfeited * self.distribution_bp // BASIS_POINTS
        return distributed_back, forfeited - distributed_back

    def redistribute(self, pool, forfeited, remaining_staked):
        """
        Args:
            pool: PoolState the forfeiture came from
            forfeited: Unvested reward given up
            remaining_staked: Stake that will share the redistributed part

        Returns:
            Tuple of (distributed_back, paid_to_fee_sink)
        """
        if forfeited <= 0:
            return 0, 0

        distributed_back, to_fee_sink = self.split(forfeited)
        paid = self.payout.payout(self.fee_address, to_fee_sink)

        if remaining_staked > 0:
            pool.acc_reward_per_share += distributed_back * SHARE_SCALE // remaining_staked
        elif distributed_back > 0:
            # Nobody is left to receive it; the tokens stay in the treasury unclaimed.
            self.total_stranded += distributed_back
            logger.warning("Forfeited reward of %d stranded in an empty pool", distributed_back)

        logger.debug(
            "Forfeited %d: %d back to pool, %d to fee sink", forfeited, distributed_back, paid
        )
        return distributed_back, paid
