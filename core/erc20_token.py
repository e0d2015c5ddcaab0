"""
ERC20 Token Model for the Brewing staking ledger.

This module simulates a minimal fungible token contract. It is used both for the
reward token (minted by the ledger on every accrual) and for the assets users
stake into pools. Tokens may charge a transfer fee that is burned on every
transfer, which lets the model exercise "fee-on-transfer" staking assets.
"""

import logging

from staking_errors import InsufficientBalanceError

logger = logging.getLogger(__name__)

BASIS_POINTS = 10_000


class ERC20Token:
    """
    Simulates an ERC20-style token with integer balances.
    """

    def __init__(self, symbol, initial_supply=0, initial_holder=None, transfer_fee_bp=0):
        if transfer_fee_bp < 0 or transfer_fee_bp >= BASIS_POINTS:
            raise ValueError(f"Transfer fee must be between 0 and {BASIS_POINTS - 1} basis points")

        self.symbol = symbol

        # Total token supply
        self.total_supply = 0

        # Mapping of addresses to token balances
        self.balances = {}

        # Basis points burned from every transfer
        self.transfer_fee_bp = transfer_fee_bp

        if initial_supply > 0:
            if initial_holder is None:
                raise ValueError("Initial supply requires an initial holder")
            self.mint(initial_holder, initial_supply)

    def __repr__(self):
        return f"ERC20Token({self.symbol!r})"

    def balance_of(self, account):
        """Returns the token balance of the given account."""
        return self.balances.get(account, 0)

    def transfer(self, sender, recipient, amount):
        """
        Transfers tokens from sender to recipient.

        The transfer fee, if any, is deducted from the amount the recipient
        receives and burned.

        Args:
            sender: Address sending the tokens
            recipient: Address receiving the tokens
            amount: Amount of tokens to transfer

        Returns:
            The amount credited to the recipient
        """
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")

        sender_balance = self.balances.get(sender, 0)

        if sender_balance < amount:
            raise InsufficientBalanceError(
                f"Insufficient {self.symbol} balance: {sender} holds {sender_balance}, needs {amount}"
            )

        fee = amount * self.transfer_fee_bp // BASIS_POINTS
        received = amount - fee

        # Update balances
        self.balances[sender] = sender_balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + received

        # Fee is burned
        self.total_supply -= fee

        return received

    def mint(self, recipient, amount):
        """
        Mints new tokens to the recipient account.

        Args:
            recipient: Address receiving the minted tokens
            amount: Amount of tokens to mint

        Returns:
            True if successful
        """
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")

        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        self.total_supply += amount

        return True

    def burn(self, from_account, amount):
        """
        Burns tokens from the given account.

        Args:
            from_account: Address to burn tokens from
            amount: Amount of tokens to burn

        Returns:
            True if successful
        """
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")

        from_balance = self.balances.get(from_account, 0)

        if from_balance < amount:
            raise InsufficientBalanceError(f"Insufficient {self.symbol} balance to burn")

        self.balances[from_account] = from_balance - amount
        self.total_supply -= amount

        return True
