"""
Simple simulation for the Brewing staking model.

This script walks through a single pool: two users deposit, one harvests early
and forfeits part of their reward, and the other collects the redistribution.
"""

import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from staking_model import BrewingStakingModel


def print_user(model, user, symbol):
    pool_index = model.pool_ids[symbol]
    account = model.ledger.user_info(pool_index, user)
    print(f"  {user}: staked={account.staked_amount}, "
          f"pending={model.ledger.pending_reward(pool_index, user)}, "
          f"full pending={model.ledger.full_pending_reward(pool_index, user)}, "
          f"BREW={model.reward_balance(user)}")


def run_basic_simulation():
    # Initialize the model: 100 BREW per second, 1000 second maturity
    model = BrewingStakingModel(reward_rate_per_second=100)
    model.add_pool("LP", allocation_weight=10, deposit_fee_bp=0, maturity_duration=1000)

    for user in ("alice", "bob"):
        model.fund_user(user, "LP", 10_000)

    print("Depositing...")
    model.deposit("alice", "LP", 1000)
    model.deposit("bob", "LP", 1000)
    print_user(model, "alice", "LP")
    print_user(model, "bob", "LP")

    print("\nAdvancing 500 seconds (half matured)...")
    model.update_time(500)
    print_user(model, "alice", "LP")
    print_user(model, "bob", "LP")

    print("\nAlice harvests early...")
    reward = model.harvest("alice", "LP")
    print(f"  alice received {reward} BREW")
    print_user(model, "alice", "LP")
    print_user(model, "bob", "LP")

    print("\nAdvancing another 1000 seconds (bob fully matured)...")
    model.update_time(1000)
    reward = model.withdraw("bob", "LP", 1000)
    print(f"  bob withdrew and received {reward} BREW")

    # Final state
    print("\nFinal state:")
    state = model.get_system_state()
    for key, value in state.items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    run_basic_simulation()
