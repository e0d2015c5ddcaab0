"""
Economic Model for the Brewing staking protocol.

This main module combines the individual components into a complete model of
the staking ledger: a simulated clock, the reward token and its treasury, the
staked tokens and the ledger itself. It can be used to run scenarios and
observe how emissions, vesting and forfeiture redistribution play out over
time.
"""

import numpy as np
import matplotlib.pyplot as plt

from clock import Clock
from erc20_token import ERC20Token
from ledger_asset import LedgerAsset
from pool_registry import SHARE_SCALE
from staking_ledger import EventType, LedgerConfig, StakingLedger

ONE_DAY = 24 * 60 * 60


class BrewingStakingModel:
    """
    Complete economic model of the Brewing staking protocol.
    Combines all components and provides simulation capabilities.
    """

    def __init__(self, reward_rate_per_second=100, start_time=0, initial_time=0,
                 forfeited_distribution_bp=9500, owner="owner",
                 dev_address="dev", fee_address="fee_sink"):
        # Simulated time
        self.clock = Clock(initial_time)

        # Reward token, minted by the ledger
        self.reward_token = ERC20Token("BREW")

        # Staked tokens by symbol
        self.staking_tokens = {}

        self.owner = owner
        self.dev_address = dev_address
        self.fee_address = fee_address

        # Create ledger
        self.ledger = StakingLedger(
            self.reward_token,
            self.clock,
            LedgerConfig(
                owner=owner,
                dev_address=dev_address,
                fee_address=fee_address,
                reward_rate_per_second=reward_rate_per_second,
                start_time=start_time,
                forfeited_distribution_bp=forfeited_distribution_bp,
            ),
        )

        # Pool index by staked token symbol
        self.pool_ids = {}

        # History tracking for simulations
        self.time_history = []
        self.total_staked_history = []
        self.treasury_balance_history = []
        self.fee_sink_history = []
        self.rewards_paid_history = []
        self.acc_reward_history = {}

    @property
    def current_time(self):
        return self.clock.now()

    def create_staking_token(self, symbol, transfer_fee_bp=0):
        """
        Creates a token users can stake.

        Args:
            symbol: Token symbol
            transfer_fee_bp: Basis points burned on every transfer

        Returns:
            The new ERC20Token
        """
        if symbol in self.staking_tokens:
            raise ValueError(f"Token {symbol} already exists")
        token = ERC20Token(symbol, transfer_fee_bp=transfer_fee_bp)
        self.staking_tokens[symbol] = token
        return token

    def fund_user(self, user, symbol, amount):
        """Mints staking tokens to a user."""
        self.staking_tokens[symbol].mint(user, amount)

    def add_pool(self, symbol, allocation_weight, deposit_fee_bp=0, maturity_duration=0):
        """
        Registers a pool for a staking token, creating the token if needed.

        Returns:
            Index of the new pool
        """
        if symbol not in self.staking_tokens:
            self.create_staking_token(symbol)

        asset = LedgerAsset(self.staking_tokens[symbol], self.ledger.custody_address)
        pool_index = self.ledger.add_pool(
            self.owner, allocation_weight, asset, deposit_fee_bp, maturity_duration
        )
        self.pool_ids[symbol] = pool_index
        self.acc_reward_history[pool_index] = []
        return pool_index

    def deposit(self, user, symbol, amount):
        """Deposits into the pool of a staking token."""
        credited = self.ledger.deposit(self.pool_ids[symbol], user, amount)
        self._update_history()
        return credited

    def withdraw(self, user, symbol, amount):
        """Withdraws from the pool of a staking token, paying vested rewards."""
        reward = self.ledger.withdraw(self.pool_ids[symbol], user, amount)
        self._update_history()
        return reward

    def harvest(self, user, symbol):
        """Claims vested rewards from the pool of a staking token."""
        return self.withdraw(user, symbol, 0)

    def emergency_withdraw(self, user, symbol):
        """Exits the pool of a staking token without reward accounting."""
        amount = self.ledger.emergency_withdraw(self.pool_ids[symbol], user)
        self._update_history()
        return amount

    def update_time(self, seconds):
        """
        Advances the simulation by the specified number of seconds.

        Args:
            seconds: Number of seconds to advance

        Returns:
            None
        """
        self.clock.update_time(seconds)

    def reward_balance(self, account):
        """Returns the reward token balance of an account."""
        return self.reward_token.balance_of(account)

    def get_system_state(self):
        """
        Returns the current state of the system.

        Returns:
            Dictionary with system state
        """
        pools = self.ledger.registry.pools
        forfeits = self.ledger.events_of(EventType.FORFEIT)

        return {
            'time': self.current_time,
            'pools': len(pools),
            'total_staked': sum(pool.total_staked for pool in pools),
            'treasury_balance': self.ledger.treasury.balance_of(),
            'total_minted': self.ledger.treasury.total_minted,
            'total_rewards_paid': self.ledger.treasury.total_paid_out,
            'fee_sink_rewards': self.reward_balance(self.fee_address),
            'dev_rewards': self.reward_balance(self.dev_address),
            'total_forfeited': sum(event.data['forfeited'] for event in forfeits),
            'total_stranded': self.ledger.redistributor.total_stranded,
            'treasury_shortfall': self.ledger.reward_payout.total_shortfall,
            'acc_reward_per_share': {
                index: pool.acc_reward_per_share / SHARE_SCALE for index, pool in enumerate(pools)
            },
        }

    def check_invariants(self):
        """
        Checks the ledger's bookkeeping against token balances.

        Returns:
            Dictionary of invariant name -> bool
        """
        pools = self.ledger.registry.pools
        return {
            'allocation_weight_sum': (
                sum(pool.allocation_weight for pool in pools)
                == self.ledger.total_allocation_weight
            ),
            'custody_backs_stake': all(
                pool.staked_asset.custody_balance() == pool.total_staked for pool in pools
            ),
            'stake_sum_matches': all(
                sum(
                    account.staked_amount
                    for (pool_index, _), account in self.ledger.registry.user_accounts.items()
                    if pool_index == index
                ) == pool.total_staked
                for index, pool in enumerate(pools)
            ),
        }

    def _update_history(self):
        """Updates history tracking for simulations."""
        state = self.get_system_state()

        self.time_history.append(state['time'])
        self.total_staked_history.append(state['total_staked'])
        self.treasury_balance_history.append(state['treasury_balance'])
        self.fee_sink_history.append(state['fee_sink_rewards'])
        self.rewards_paid_history.append(state['total_rewards_paid'])
        for index, acc in state['acc_reward_per_share'].items():
            self.acc_reward_history.setdefault(index, []).append(acc)

    def simulate_staking_scenario(self, days, users=None, action_probability=0.1,
                                  max_deposit=1_000, seed=None, plot_results=True):
        """
        Runs a simulation of random deposits, harvests and withdrawals.

        Every hour each user acts with the given probability, choosing a pool
        and an action at random.

        Args:
            days: Number of days to simulate
            users: Addresses taking part; each must already hold staking tokens
            action_probability: Chance a user acts in a given hour
            max_deposit: Upper bound of a single deposit
            seed: Seed for the random generator
            plot_results: Whether to plot the results

        Returns:
            Dictionary with simulation results
        """
        if not self.pool_ids:
            raise ValueError("Add at least one pool before simulating")

        rng = np.random.default_rng(seed)
        users = list(users or [])
        symbols = list(self.pool_ids)

        steps = days * 24  # hourly steps
        step_size = ONE_DAY // 24

        actions = {'deposit': 0, 'harvest': 0, 'withdraw': 0}

        for _ in range(steps):
            for user in users:
                if rng.random() >= action_probability:
                    continue

                symbol = symbols[rng.integers(len(symbols))]
                pool_index = self.pool_ids[symbol]
                staked = self.ledger.user_info(pool_index, user).staked_amount
                balance = self.staking_tokens[symbol].balance_of(user)

                action = rng.choice(['deposit', 'harvest', 'withdraw'], p=[0.5, 0.3, 0.2])
                if action == 'deposit' and balance > 0:
                    amount = int(rng.integers(1, min(balance, max_deposit) + 1))
                    self.deposit(user, symbol, amount)
                elif action == 'harvest' and staked > 0:
                    self.harvest(user, symbol)
                elif action == 'withdraw' and staked > 0:
                    amount = int(rng.integers(1, staked + 1))
                    self.withdraw(user, symbol, amount)
                else:
                    continue
                actions[action] += 1

            # Advance time by one step
            self.update_time(step_size)

        self.ledger.accrue_all()
        self._update_history()

        if plot_results:
            self.plot_history()

        final_state = self.get_system_state()

        return {
            'final_time': final_state['time'],
            'total_staked': final_state['total_staked'],
            'total_minted': final_state['total_minted'],
            'total_rewards_paid': final_state['total_rewards_paid'],
            'total_forfeited': final_state['total_forfeited'],
            'total_stranded': final_state['total_stranded'],
            'treasury_balance': final_state['treasury_balance'],
            'fee_sink_rewards': final_state['fee_sink_rewards'],
            'actions': actions,
        }

    def plot_history(self):
        """Plots the recorded history."""
        days = np.array(self.time_history) / ONE_DAY

        fig, axs = plt.subplots(4, 1, figsize=(12, 16), sharex=True)

        axs[0].plot(days, self.total_staked_history)
        axs[0].set_title('Total Staked')
        axs[0].set_ylabel('Tokens')

        axs[1].plot(days, self.treasury_balance_history, label='Treasury')
        axs[1].plot(days, self.rewards_paid_history, label='Paid out')
        axs[1].set_title('Reward Token Flows')
        axs[1].set_ylabel('BREW')
        axs[1].legend()

        axs[2].plot(days, self.fee_sink_history)
        axs[2].set_title('Forfeiture Fees Collected')
        axs[2].set_ylabel('BREW')

        for index, history in self.acc_reward_history.items():
            axs[3].plot(days[-len(history):], history, label=f'Pool {index}')
        axs[3].set_title('Reward per Share')
        axs[3].set_ylabel('BREW per token')
        axs[3].set_xlabel('Days')
        axs[3].legend()

        plt.tight_layout()
        plt.show()
        plt.close(fig)
