"""
Unit tests for the administrative surface of the Brewing staking ledger.
"""

import unittest
import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from clock import Clock
from erc20_token import ERC20Token
from ledger_asset import LedgerAsset
from staking_errors import ConfigurationError, PoolNotFoundError, UnauthorizedError
from staking_ledger import EventType, LedgerConfig, StakingLedger
from staking_model import BrewingStakingModel


class TestPoolAdministration(unittest.TestCase):
    def setUp(self):
        self.model = BrewingStakingModel(reward_rate_per_second=100)
        self.ledger = self.model.ledger

    def asset(self, symbol):
        if symbol not in self.model.staking_tokens:
            self.model.create_staking_token(symbol)
        return LedgerAsset(self.model.staking_tokens[symbol], self.ledger.custody_address)

    def test_add_pool(self):
        pool_index = self.ledger.add_pool("owner", 10, self.asset("LP"), 100, 1000)

        self.assertEqual(pool_index, 0)
        self.assertEqual(self.ledger.pool_length(), 1)
        pool = self.ledger.pool_info(pool_index)
        self.assertEqual(pool.allocation_weight, 10)
        self.assertEqual(pool.deposit_fee_bp, 100)
        self.assertEqual(pool.maturity_duration, 1000)
        self.assertEqual(pool.total_staked, 0)
        self.assertEqual(len(self.ledger.events_of(EventType.ADD_POOL)), 1)

    def test_only_owner_can_add_pools(self):
        with self.assertRaises(UnauthorizedError) as context:
            self.ledger.add_pool("mallory", 10, self.asset("LP"), 0, 0)
        self.assertIn("not the owner", str(context.exception).lower())
        self.assertEqual(self.ledger.pool_length(), 0)

    def test_deposit_fee_cap(self):
        self.ledger.add_pool("owner", 10, self.asset("LP"), 500, 0)

        with self.assertRaises(ConfigurationError) as context:
            self.ledger.add_pool("owner", 10, self.asset("STABLE"), 501, 0)
        self.assertIn("deposit fee", str(context.exception).lower())

        with self.assertRaises(ConfigurationError):
            self.ledger.set_pool("owner", 0, 10, 501, 0)
        self.assertEqual(self.ledger.pool_info(0).deposit_fee_bp, 500)

    def test_duplicate_asset_is_rejected(self):
        self.ledger.add_pool("owner", 10, self.asset("LP"), 0, 0)

        with self.assertRaises(ConfigurationError) as context:
            self.ledger.add_pool("owner", 5, self.asset("LP"), 0, 0)
        self.assertIn("already has a pool", str(context.exception).lower())
        self.assertEqual(self.ledger.pool_length(), 1)
        self.assertEqual(self.ledger.total_allocation_weight, 10)

    def test_negative_parameters_are_rejected(self):
        with self.assertRaises(ConfigurationError):
            self.ledger.add_pool("owner", -1, self.asset("LP"), 0, 0)
        with self.assertRaises(ConfigurationError):
            self.ledger.add_pool("owner", 1, self.asset("LP"), 0, -1)

    def test_allocation_weight_sum_invariant(self):
        self.ledger.add_pool("owner", 10, self.asset("A"), 0, 0)
        self.ledger.add_pool("owner", 20, self.asset("B"), 0, 0)
        self.ledger.add_pool("owner", 0, self.asset("C"), 0, 0)
        self.ledger.set_pool("owner", 1, 5, 0, 0)
        self.ledger.set_pool("owner", 2, 7, 0, 0)

        weights = [pool.allocation_weight for pool in self.ledger.registry.pools]
        self.assertEqual(weights, [10, 5, 7])
        self.assertEqual(sum(weights), self.ledger.total_allocation_weight)

    def test_set_pool_updates_parameters(self):
        self.ledger.add_pool("owner", 10, self.asset("LP"), 0, 1000)
        self.ledger.set_pool("owner", 0, 20, 250, 3600)

        pool = self.ledger.pool_info(0)
        self.assertEqual((pool.allocation_weight, pool.deposit_fee_bp, pool.maturity_duration), (20, 250, 3600))
        self.assertEqual(len(self.ledger.events_of(EventType.SET_POOL, 0)), 1)

    def test_set_pool_requires_existing_pool_and_owner(self):
        with self.assertRaises(PoolNotFoundError):
            self.ledger.set_pool("owner", 0, 10, 0, 0)

        self.ledger.add_pool("owner", 10, self.asset("LP"), 0, 0)
        with self.assertRaises(UnauthorizedError):
            self.ledger.set_pool("mallory", 0, 10, 0, 0)

    def test_set_reward_rate(self):
        self.ledger.set_reward_rate("owner", 250)
        self.assertEqual(self.ledger.reward_rate_per_second, 250)

        with self.assertRaises(UnauthorizedError):
            self.ledger.set_reward_rate("mallory", 1)
        with self.assertRaises(ConfigurationError):
            self.ledger.set_reward_rate("owner", -1)
        self.assertEqual(len(self.ledger.events_of(EventType.UPDATE_EMISSION_RATE)), 1)

    def test_ownership_transfer(self):
        with self.assertRaises(UnauthorizedError):
            self.ledger.transfer_ownership("mallory", "mallory")

        self.ledger.transfer_ownership("owner", "new_owner")

        with self.assertRaises(UnauthorizedError):
            self.ledger.add_pool("owner", 10, self.asset("LP"), 0, 0)
        self.assertEqual(self.ledger.add_pool("new_owner", 10, self.asset("LP"), 0, 0), 0)


class TestProtocolParameters(unittest.TestCase):
    def setUp(self):
        self.model = BrewingStakingModel(reward_rate_per_second=100)
        self.pool = self.model.add_pool("LP", allocation_weight=10, maturity_duration=1000)
        self.model.fund_user("alice", "LP", 10_000)
        self.ledger = self.model.ledger

    def test_default_forfeited_distribution(self):
        self.assertEqual(self.ledger.forfeited_distribution_bp, 9500)

    def test_forfeited_distribution_changes_split(self):
        self.ledger.set_forfeited_distribution_bp("owner", 5000)

        self.model.deposit("alice", "LP", 1000)
        self.model.update_time(500)
        self.model.harvest("alice", "LP")

        # 25000 forfeited, half to the fee address
        self.assertEqual(self.model.reward_balance("fee_sink"), 12_500)

    def test_forfeited_distribution_checks_stored_value(self):
        """
        The cap is checked against the value already stored, so an
        out-of-range value is accepted once and then blocks further changes.
        """
        self.ledger.set_forfeited_distribution_bp("owner", 10_000)
        self.assertEqual(self.ledger.forfeited_distribution_bp, 10_000)

        with self.assertRaises(ConfigurationError):
            self.ledger.set_forfeited_distribution_bp("owner", 5000)
        self.assertEqual(self.ledger.forfeited_distribution_bp, 10_000)

    def test_negative_forfeited_distribution_is_rejected(self):
        self.model.fund_user("bob", "LP", 10_000)
        self.model.deposit("alice", "LP", 1000)
        self.model.deposit("bob", "LP", 1000)
        self.model.update_time(500)

        with self.assertRaises(ConfigurationError) as context:
            self.ledger.set_forfeited_distribution_bp("owner", -5000)
        self.assertIn("negative", str(context.exception).lower())
        self.assertEqual(self.ledger.forfeited_distribution_bp, 9500)

        # The accumulator only grows when alice forfeits
        self.ledger.accrue(self.pool)
        acc_before = self.ledger.pool_info(self.pool).acc_reward_per_share
        self.model.harvest("alice", "LP")
        self.assertGreaterEqual(self.ledger.pool_info(self.pool).acc_reward_per_share, acc_before)

    def test_forfeited_distribution_requires_owner(self):
        with self.assertRaises(UnauthorizedError):
            self.ledger.set_forfeited_distribution_bp("alice", 5000)

    def test_config_rejects_full_distribution(self):
        config = LedgerConfig(
            owner="owner", dev_address="dev", fee_address="fee",
            reward_rate_per_second=1, forfeited_distribution_bp=10_000,
        )
        with self.assertRaises(ConfigurationError):
            StakingLedger(ERC20Token("BREW"), Clock(), config)

    def test_dev_address_change(self):
        with self.assertRaises(UnauthorizedError):
            self.ledger.set_dev_address("owner", "new_dev")

        self.ledger.set_dev_address("dev", "new_dev")
        self.assertEqual(self.ledger.dev_address, "new_dev")

        self.model.deposit("alice", "LP", 1000)
        self.model.update_time(100)
        self.ledger.accrue(self.pool)
        self.assertEqual(self.model.reward_balance("new_dev"), 1_000)
        self.assertEqual(self.model.reward_balance("dev"), 0)

    def test_fee_address_change(self):
        with self.assertRaises(UnauthorizedError):
            self.ledger.set_fee_address("owner", "new_fee")

        self.ledger.set_fee_address("fee_sink", "new_fee")
        self.assertEqual(self.ledger.fee_address, "new_fee")
        self.assertEqual(len(self.ledger.events_of(EventType.SET_FEE_ADDRESS)), 1)

        self.model.deposit("alice", "LP", 1000)
        self.model.update_time(500)
        self.model.harvest("alice", "LP")
        self.assertEqual(self.model.reward_balance("new_fee"), 1_250)


if __name__ == '__main__':
    unittest.main()
