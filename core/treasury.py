"""
Reward Treasury Model for the Brewing staking ledger.

The treasury is the ledger's custody of the reward token. Newly accrued rewards
are minted into it and vested rewards are paid out of it. SafeRewardTransfer
clamps payouts to what the treasury actually holds so that a funding shortfall
(rounding residue, or rewards already swept elsewhere) never blocks staking or
withdrawing.
"""

import logging

logger = logging.getLogger(__name__)


class Treasury:
    """
    Custody of the reward token held by the staking ledger.
    """

    def __init__(self, reward_token, custody_address):
        self.reward_token = reward_token
        self.custody_address = custody_address

        # Running totals for reporting
        self.total_minted = 0
        self.total_paid_out = 0

    def mint(self, to, amount):
        """Mints reward tokens to an address. Zero amounts are ignored."""
        if amount <= 0:
            return 0
        self.reward_token.mint(to, amount)
        self.total_minted += amount
        return amount

    def balance_of(self):
        """Returns the reward token balance held in custody."""
        return self.reward_token.balance_of(self.custody_address)

    def transfer(self, to, amount):
        """Transfers reward tokens out of custody."""
        if amount <= 0:
            return 0
        received = self.reward_token.transfer(self.custody_address, to, amount)
        self.total_paid_out += amount
        return received


class SafeRewardTransfer:
    """
    Best-effort payout of rewards from the treasury.
    """

    def __init__(self, treasury):
        self.treasury = treasury

        # Amount requested but not paid because the treasury ran short
        self.total_shortfall = 0

    def payout(self, to, amount):
        """
        Pays a reward, clamped to the treasury balance.

        Args:
            to: Address receiving the reward
            amount: Amount of reward owed

        Returns:
            The amount actually paid
        """
        if amount <= 0:
            return 0

        available = self.treasury.balance_of()
        paid = amount
        if amount > available:
            paid = available
            self.total_shortfall += amount - available
            logger.warning(
                "Treasury shortfall paying %s: owed %d, available %d", to, amount, available
            )

        if paid > 0:
            self.treasury.transfer(to, paid)
        return paid
