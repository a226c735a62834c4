from .ledger import SimContract
from ..utils.constants import NATIVE_TOKEN


class WrappedNative(SimContract):
    """Wrapped native asset: 1:1 token backed by native balance it holds."""

    def deposit(self, sender: str, amount: int) -> None:
        self.ledger.transfer(NATIVE_TOKEN, sender, self.address, amount)
        self.ledger.mint(self.address, sender, amount)
        self.emit("Deposit", dst=sender, amount=int(amount))

    def withdraw(self, sender: str, amount: int) -> None:
        self.ledger.burn(self.address, sender, amount)
        self.ledger.transfer(NATIVE_TOKEN, self.address, sender, amount)
        self.emit("Withdrawal", src=sender, amount=int(amount))

    def balance_of(self, holder: str) -> int:
        return self.ledger.balance_of(self.address, holder)
