"""
Ledger Asset Model for the Brewing staking ledger.

Wraps the token staked into a pool. Deposits pull tokens into the ledger's
custody and report the amount actually received, which can be less than the
amount requested when the token charges a transfer fee.
"""


class LedgerAsset:
    """
    Staked-asset transfer capability bound to the ledger's custody address.
    """

    def __init__(self, token, custody_address):
        self.token = token
        self.custody_address = custody_address

    def __repr__(self):
        return f"LedgerAsset({self.token.symbol!r})"

    # Two handles on the same token and custody are the same asset
    def __eq__(self, other):
        if not isinstance(other, LedgerAsset):
            return NotImplemented
        return self.token is other.token and self.custody_address == other.custody_address

    def __hash__(self):
        return hash((id(self.token), self.custody_address))

    @property
    def symbol(self):
        return self.token.symbol

    def balance_of(self, account):
        """Returns the token balance of an account."""
        return self.token.balance_of(account)

    def custody_balance(self):
        """Returns the amount of this asset held by the ledger."""
        return self.token.balance_of(self.custody_address)

    def transfer_in(self, sender, amount):
        """
        Pulls tokens from a depositor into custody.

        Args:
            sender: Address the tokens come from
            amount: Amount requested

        Returns:
            The amount custody actually received
        """
        if amount <= 0:
            return 0
        balance_before = self.custody_balance()
        self.token.transfer(sender, self.custody_address, amount)
        return self.custody_balance() - balance_before

    def transfer_out(self, recipient, amount):
        """Sends tokens from custody to a recipient."""
        if amount <= 0:
            return 0
        return self.token.transfer(self.custody_address, recipient, amount)
