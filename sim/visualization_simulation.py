"""
Visualization simulation for the Brewing staking model.

This script runs several pools with random user activity and plots the results.
"""

import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from staking_model import BrewingStakingModel


def run_visualization_simulation():
    model = BrewingStakingModel(reward_rate_per_second=50)

    print("Creating pools...")
    model.add_pool("LP", allocation_weight=40, deposit_fee_bp=0, maturity_duration=3 * 24 * 3600)
    model.add_pool("STABLE", allocation_weight=20, deposit_fee_bp=400, maturity_duration=7 * 24 * 3600)
    model.create_staking_token("TAXED", transfer_fee_bp=100)
    model.add_pool("TAXED", allocation_weight=10, deposit_fee_bp=100, maturity_duration=24 * 3600)

    users = [f"user{i}" for i in range(10)]
    for user in users:
        for symbol in ("LP", "STABLE", "TAXED"):
            model.fund_user(user, symbol, 20_000)

    print("\nRunning simulation with visualizations...")
    results = model.simulate_staking_scenario(30, users=users, action_probability=0.05, seed=7)

    print("\nSimulation Results:")
    for key, value in results.items():
        print(f"  {key}: {value}")

    print("\nInvariants:")
    for key, value in model.check_invariants().items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    run_visualization_simulation()
