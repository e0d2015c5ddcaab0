"""
Vesting rules for the Brewing staking ledger.

Rewards "brew" for a pool-specific maturity duration. Harvesting before the
deposit has matured pays only the linearly vested share of the pending reward;
the remainder is forfeited back to the pool.

Topping up an existing position moves its vesting clock toward the present by
an amount proportional to the size of the top-up, which approximates a
stake-weighted average deposit time without keeping per-deposit history.
"""


class VestingCalculator:
    """Splits a pending reward into vested and forfeited parts."""

    def __init__(self, clock):
        self.clock = clock

    def split(self, full_pending, deposit_timestamp, maturity_duration):
        """
        Args:
            full_pending: Pending reward before vesting
            deposit_timestamp: Start of the depositor's vesting clock
            maturity_duration: Seconds until rewards are fully vested

        Returns:
            Tuple of (vested, forfeited)
        """
        time_brewing = self.clock.now() - deposit_timestamp
        if maturity_duration == 0 or time_brewing >= maturity_duration:
            return full_pending, 0

        vested = full_pending * time_brewing // maturity_duration
        return vested, full_pending - vested


class DepositTimeAverager:
    """Computes the effective deposit timestamp after a deposit."""

    def __init__(self, clock):
        self.clock = clock

    def new_deposit_timestamp(self, existing_amount, deposit_timestamp, deposit_amount, maturity_duration):
        """
        Args:
            existing_amount: Stake held before this deposit
            deposit_timestamp: Current start of the vesting clock
            deposit_amount: Amount being added
            maturity_duration: Pool maturity duration in seconds

        Returns:
            The new start of the vesting clock
        """
        now = self.clock.now()

        # First deposit, or a top-up at least twice the existing stake
        if existing_amount == 0 or deposit_amount >= 2 * existing_amount:
            return now

        shift = deposit_amount * maturity_duration // existing_amount // 2

        if now - deposit_timestamp >= maturity_duration:
            return now - maturity_duration + shift

        return min(deposit_timestamp + shift, now)
