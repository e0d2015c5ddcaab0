"""
Staking Ledger Model for the Brewing protocol.

This module simulates the multi-pool staking contract ("the brewery"). Users
stake an asset into a pool and accrue the reward token in proportion to their
share of the pool. Rewards vest linearly over the pool's maturity duration:
harvesting early pays only the vested part, and the forfeited remainder is
redistributed to the pool's other stakers minus a fee.

The StakingLedger is the component users and the admin interact with. It is
responsible for:
1. Registering pools and their emission weights (admin)
2. Accepting deposits, crediting only the amount actually received
3. Settling pending rewards through the vesting schedule on every deposit
   and withdrawal
4. Routing forfeited rewards back into the pool and to the fee address
5. Providing an emergency exit that skips reward accounting entirely

On chain the host runtime runs each call atomically and one at a time. The
model reproduces that with a single re-entrant lock held for the whole of
every public operation.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from admin_gate import AdminGate
from forfeiture import DEFAULT_FORFEITED_DISTRIBUTION_BP, ForfeitureRedistributor
from pool_registry import BASIS_POINTS, SHARE_SCALE, PoolRegistry
from reward_accrual import RewardAccrualEngine
from staking_errors import ConfigurationError, InsufficientBalanceError, UnauthorizedError
from treasury import SafeRewardTransfer, Treasury
from vesting import DepositTimeAverager, VestingCalculator

logger = logging.getLogger(__name__)


class EventType(Enum):
    """
    Events emitted by the ledger, mirroring the contract's event log.
    """
    DEPOSIT = 0                    # Stake added to a pool
    WITHDRAW = 1                   # Stake removed from a pool, or a harvest
    EMERGENCY_WITHDRAW = 2         # Stake removed without reward accounting
    FORFEIT = 3                    # Unvested reward given up on an early harvest
    ADD_POOL = 4                   # New pool registered
    SET_POOL = 5                   # Pool weight, fee or maturity changed
    UPDATE_EMISSION_RATE = 6       # Reward rate per second changed
    SET_FORFEITED_DISTRIBUTION = 7 # Share of forfeitures returned to pools changed
    SET_DEV_ADDRESS = 8            # Dev share recipient changed
    SET_FEE_ADDRESS = 9            # Fee recipient changed


@dataclass
class LedgerEvent:
    """A single entry in the ledger's event log."""
    event_type: EventType
    timestamp: int
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LedgerConfig:
    """
    Construction parameters of a StakingLedger.
    """
    owner: str                                   # Address allowed to administer pools
    dev_address: str                             # Receives the dev share of emissions
    fee_address: str                             # Receives deposit fees and forfeiture fees
    reward_rate_per_second: int                  # Reward emitted per second across all pools
    start_time: int = 0                          # No rewards accrue before this timestamp
    forfeited_distribution_bp: int = DEFAULT_FORFEITED_DISTRIBUTION_BP
    custody_address: str = "brewing_ledger"      # Address holding staked assets and rewards


class StakingLedger:
    """
    Multi-pool staking ledger with vesting and forfeiture redistribution.
    """

    def __init__(self, reward_token, clock, config: LedgerConfig):
        if config.forfeited_distribution_bp < 0 or config.forfeited_distribution_bp >= BASIS_POINTS:
            raise ConfigurationError(
                f"Forfeited distribution must be below {BASIS_POINTS} basis points"
            )

        self.clock = clock
        self.custody_address = config.custody_address

        # State tables
        self.registry = PoolRegistry()

        # External capabilities
        self.admin_gate = AdminGate(config.owner)
        self.treasury = Treasury(reward_token, config.custody_address)
        self.reward_payout = SafeRewardTransfer(self.treasury)

        # Reward mechanics
        self.accrual_engine = RewardAccrualEngine(
            self.registry,
            self.treasury,
            clock,
            config.reward_rate_per_second,
            config.start_time,
            config.dev_address,
        )
        self.vesting = VestingCalculator(clock)
        self.deposit_time_averager = DepositTimeAverager(clock)
        self.redistributor = ForfeitureRedistributor(
            self.reward_payout, config.fee_address, config.forfeited_distribution_bp
        )

        # Event log
        self.events: List[LedgerEvent] = []

        self._lock = threading.RLock()

    # Global parameters

    @property
    def reward_rate_per_second(self):
        return self.accrual_engine.reward_rate_per_second

    @property
    def start_time(self):
        return self.accrual_engine.start_time

    @property
    def dev_address(self):
        return self.accrual_engine.dev_address

    @property
    def fee_address(self):
        return self.redistributor.fee_address

    @property
    def forfeited_distribution_bp(self):
        return self.redistributor.distribution_bp

    @property
    def total_allocation_weight(self):
        return self.registry.total_allocation_weight

    # Accrual

    def accrue(self, pool_index):
        """Brings one pool's accumulator up to the current time."""
        with self._lock:
            pool = self.registry.get_pool(pool_index)
            return self.accrual_engine.accrue(pool)

    def accrue_all(self):
        """Brings every pool's accumulator up to the current time."""
        with self._lock:
            return self.accrual_engine.accrue_all()

    # Depositor operations

    def deposit(self, pool_index, depositor, amount):
        """
        Deposits the pool's asset and settles pending rewards.

        Args:
            pool_index: Index of the pool
            depositor: Address of the depositor
            amount: Amount of the staked asset to deposit; zero only harvests

        Returns:
            The amount credited to the depositor's stake

        Raises:
            PoolNotFoundError: If the pool does not exist
            InsufficientBalanceError: If the depositor does not hold the amount
        """
        if amount < 0:
            raise ValueError("Amount cannot be negative")

        with self._lock:
            pool = self.registry.get_pool(pool_index)
            if amount > 0 and pool.staked_asset.balance_of(depositor) < amount:
                raise InsufficientBalanceError(
                    f"Insufficient {pool.staked_asset.symbol} balance to deposit {amount}"
                )

            user = self.registry.user_account(pool_index, depositor)

            self.accrual_engine.accrue(pool)

            vested_paid = 0
            if user.staked_amount > 0:
                full_pending = self._full_pending(pool, user, pool.acc_reward_per_share)
                vested, forfeited = self.vesting.split(
                    full_pending, user.deposit_timestamp, pool.maturity_duration
                )
                if forfeited > 0:
                    self._forfeit(pool_index, pool, depositor, forfeited, pool.total_staked)
                vested_paid = self.reward_payout.payout(depositor, vested)

            user.deposit_timestamp = self.deposit_time_averager.new_deposit_timestamp(
                user.staked_amount, user.deposit_timestamp, amount, pool.maturity_duration
            )

            credited = 0
            deposit_fee = 0
            if amount > 0:
                received = pool.staked_asset.transfer_in(depositor, amount)
                deposit_fee = received * pool.deposit_fee_bp // BASIS_POINTS
                if deposit_fee > 0:
                    pool.staked_asset.transfer_out(self.fee_address, deposit_fee)
                credited = received - deposit_fee
                user.staked_amount += credited
                pool.total_staked += credited

            user.reward_debt = user.staked_amount * pool.acc_reward_per_share // SHARE_SCALE

            logger.info(
                "Deposit pool=%d user=%s amount=%d credited=%d fee=%d reward=%d",
                pool_index, depositor, amount, credited, deposit_fee, vested_paid,
            )
            self._emit(
                EventType.DEPOSIT,
                pool_index=pool_index,
                user=depositor,
                amount=amount,
                credited=credited,
                deposit_fee=deposit_fee,
                reward=vested_paid,
            )
            return credited

    def withdraw(self, pool_index, depositor, amount):
        """
        Withdraws stake and settles pending rewards. Any withdrawal, including
        a zero-amount harvest, restarts the vesting clock.

        Args:
            pool_index: Index of the pool
            depositor: Address of the depositor
            amount: Amount of stake to withdraw

        Returns:
            The vested reward paid

        Raises:
            PoolNotFoundError: If the pool does not exist
            InsufficientBalanceError: If amount exceeds the depositor's stake
        """
        if amount < 0:
            raise ValueError("Amount cannot be negative")

        with self._lock:
            pool = self.registry.get_pool(pool_index)
            user = self.registry.peek_user_account(pool_index, depositor)
            if amount > user.staked_amount:
                raise InsufficientBalanceError(
                    f"Withdraw amount {amount} exceeds stake of {user.staked_amount}"
                )
            user = self.registry.user_account(pool_index, depositor)

            self.accrual_engine.accrue(pool)

            full_pending = self._full_pending(pool, user, pool.acc_reward_per_share)
            vested, forfeited = self.vesting.split(
                full_pending, user.deposit_timestamp, pool.maturity_duration
            )
            if forfeited > 0:
                self._forfeit(pool_index, pool, depositor, forfeited, pool.total_staked - amount)

            user.deposit_timestamp = self.clock.now()

            if amount > 0:
                user.staked_amount -= amount
                pool.total_staked -= amount

            vested_paid = self.reward_payout.payout(depositor, vested)

            if amount > 0:
                pool.staked_asset.transfer_out(depositor, amount)

            user.reward_debt = user.staked_amount * pool.acc_reward_per_share // SHARE_SCALE

            logger.info(
                "Withdraw pool=%d user=%s amount=%d reward=%d forfeited=%d",
                pool_index, depositor, amount, vested_paid, forfeited,
            )
            self._emit(
                EventType.WITHDRAW,
                pool_index=pool_index,
                user=depositor,
                amount=amount,
                reward=vested_paid,
                forfeited=forfeited,
            )
            return vested_paid

    def harvest(self, pool_index, depositor):
        """Claims vested rewards without moving stake."""
        return self.withdraw(pool_index, depositor, 0)

    def emergency_withdraw(self, pool_index, depositor):
        """
        Returns the depositor's whole stake without paying or forfeiting
        rewards.

        Returns:
            The amount returned to the depositor
        """
        with self._lock:
            pool = self.registry.get_pool(pool_index)
            user = self.registry.user_account(pool_index, depositor)

            amount = user.staked_amount
            user.reset()
            pool.total_staked = max(pool.total_staked - amount, 0)

            if amount > 0:
                pool.staked_asset.transfer_out(depositor, amount)

            logger.info("Emergency withdraw pool=%d user=%s amount=%d", pool_index, depositor, amount)
            self._emit(
                EventType.EMERGENCY_WITHDRAW, pool_index=pool_index, user=depositor, amount=amount
            )
            return amount

    # Administrative operations

    def add_pool(self, caller, allocation_weight, staked_asset, deposit_fee_bp, maturity_duration):
        """
        Registers a new pool. Every existing pool is accrued first so the
        change in total weight does not apply retroactively.

        Returns:
            Index of the new pool
        """
        with self._lock:
            self.admin_gate.require_owner(caller)
            self.registry.validate_pool_params(allocation_weight, deposit_fee_bp, maturity_duration)
            if self.registry.is_registered(staked_asset):
                raise ConfigurationError(f"Staked asset {staked_asset!r} already has a pool")

            self.accrual_engine.accrue_all()

            last_accrual_time = max(self.clock.now(), self.start_time)
            pool_index = self.registry.add_pool(
                staked_asset, allocation_weight, deposit_fee_bp, maturity_duration, last_accrual_time
            )
            self._emit(
                EventType.ADD_POOL,
                pool_index=pool_index,
                asset=staked_asset.symbol,
                allocation_weight=allocation_weight,
                deposit_fee_bp=deposit_fee_bp,
                maturity_duration=maturity_duration,
            )
            return pool_index

    def set_pool(self, caller, pool_index, allocation_weight, deposit_fee_bp, maturity_duration):
        """Updates a pool's weight, deposit fee and maturity duration."""
        with self._lock:
            self.admin_gate.require_owner(caller)
            self.registry.get_pool(pool_index)
            self.registry.validate_pool_params(allocation_weight, deposit_fee_bp, maturity_duration)

            self.accrual_engine.accrue_all()

            self.registry.set_pool(pool_index, allocation_weight, deposit_fee_bp, maturity_duration)
            self._emit(
                EventType.SET_POOL,
                pool_index=pool_index,
                allocation_weight=allocation_weight,
                deposit_fee_bp=deposit_fee_bp,
                maturity_duration=maturity_duration,
            )

    def set_reward_rate(self, caller, reward_rate_per_second):
        """Changes the emission rate after accruing every pool at the old rate."""
        with self._lock:
            self.admin_gate.require_owner(caller)
            if reward_rate_per_second < 0:
                raise ConfigurationError("Reward rate cannot be negative")

            self.accrual_engine.accrue_all()

            logger.info(
                "Emission rate changed from %d to %d",
                self.accrual_engine.reward_rate_per_second, reward_rate_per_second,
            )
            self.accrual_engine.reward_rate_per_second = reward_rate_per_second
            self._emit(EventType.UPDATE_EMISSION_RATE, reward_rate_per_second=reward_rate_per_second)

    def set_forfeited_distribution_bp(self, caller, distribution_bp):
        """
        Changes the share of forfeitures returned to pools.

        The cap is checked against the value currently stored, before the new
        value is assigned, so an out-of-range value is accepted once and then
        blocks further changes.
        """
        with self._lock:
            self.admin_gate.require_owner(caller)
            if self.redistributor.distribution_bp >= BASIS_POINTS:
                raise ConfigurationError(
                    f"Forfeited distribution must be below {BASIS_POINTS} basis points"
                )
            if distribution_bp < 0:
                raise ConfigurationError("Forfeited distribution cannot be negative")

            logger.info(
                "Forfeited distribution changed from %d to %d bp",
                self.redistributor.distribution_bp, distribution_bp,
            )
            self.redistributor.distribution_bp = distribution_bp
            self._emit(EventType.SET_FORFEITED_DISTRIBUTION, distribution_bp=distribution_bp)

    def transfer_ownership(self, caller, new_owner):
        with self._lock:
            self.admin_gate.transfer_ownership(caller, new_owner)

    def set_dev_address(self, caller, new_dev_address):
        """Changes the dev share recipient. Only the current dev address may call."""
        with self._lock:
            if caller != self.accrual_engine.dev_address:
                raise UnauthorizedError("Only the dev address can change the dev address")
            if not new_dev_address:
                raise ConfigurationError("Dev address must be set")

            self.accrual_engine.dev_address = new_dev_address
            self._emit(EventType.SET_DEV_ADDRESS, user=caller, new_address=new_dev_address)

    def set_fee_address(self, caller, new_fee_address):
        """Changes the fee recipient. Only the current fee address may call."""
        with self._lock:
            if caller != self.redistributor.fee_address:
                raise UnauthorizedError("Only the fee address can change the fee address")
            if not new_fee_address:
                raise ConfigurationError("Fee address must be set")

            self.redistributor.fee_address = new_fee_address
            self._emit(EventType.SET_FEE_ADDRESS, user=caller, new_address=new_fee_address)

    # Views

    def pool_length(self):
        """Returns the number of pools."""
        return self.registry.pool_length()

    def pool_info(self, pool_index):
        """Returns the pool's state record."""
        return self.registry.get_pool(pool_index)

    def user_info(self, pool_index, user):
        """Returns a copy of the user's account in a pool (an empty record if none exists)."""
        with self._lock:
            return self.registry.peek_user_account(pool_index, user)

    def full_pending_reward(self, pool_index, user):
        """Returns the pending reward before vesting, as if accrued now."""
        with self._lock:
            pool = self.registry.get_pool(pool_index)
            account = self.registry.peek_user_account(pool_index, user)
            acc = self.accrual_engine.projected_acc_reward_per_share(pool)
            return self._full_pending(pool, account, acc)

    def pending_reward(self, pool_index, user):
        """
        Returns the vested reward a deposit or withdrawal would pay right now.

        Simulates accrual and vesting without changing any state.
        """
        with self._lock:
            pool = self.registry.get_pool(pool_index)
            account = self.registry.peek_user_account(pool_index, user)
            acc = self.accrual_engine.projected_acc_reward_per_share(pool)
            full_pending = self._full_pending(pool, account, acc)
            vested, _ = self.vesting.split(
                full_pending, account.deposit_timestamp, pool.maturity_duration
            )
            return vested

    # Internals

    @staticmethod
    def _full_pending(pool, user, acc_reward_per_share):
        return user.staked_amount * acc_reward_per_share // SHARE_SCALE - user.reward_debt

    def _forfeit(self, pool_index, pool, depositor, forfeited, remaining_staked):
        distributed_back, to_fee_sink = self.redistributor.redistribute(
            pool, forfeited, remaining_staked
        )
        self._emit(
            EventType.FORFEIT,
            pool_index=pool_index,
            user=depositor,
            forfeited=forfeited,
            distributed_back=distributed_back,
            to_fee_sink=to_fee_sink,
            stranded=remaining_staked <= 0 and distributed_back > 0,
        )

    def _emit(self, event_type, **data):
        self.events.append(LedgerEvent(event_type=event_type, timestamp=self.clock.now(), data=data))

    def events_of(self, event_type: EventType, pool_index: Optional[int] = None):
        """Returns logged events of one type, optionally for one pool."""
        return [
            event for event in self.events
            if event.event_type == event_type
            and (pool_index is None or event.data.get("pool_index") == pool_index)
        ]
