from .base import LendingConnector
from ..utils.constants import MAX_UINT256

# vault-keyed: every call names the vault instead of a token
ABI_MAKER_CONNECTOR = [
    {"name":"open","outputs":[{"type":"uint256"}],"inputs":[],"stateMutability":"payable","type":"function"},
    {"name":"deposit","outputs":[],"inputs":[{"type":"uint256","name":"vault"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
    {"name":"borrow","outputs":[],"inputs":[{"type":"uint256","name":"vault"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
    {"name":"payback","outputs":[],"inputs":[{"type":"uint256","name":"vault"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
    {"name":"withdraw","outputs":[],"inputs":[{"type":"uint256","name":"vault"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
]


class MakerConnector(LendingConnector):
    """Connector for a vault-based CDP manager (VaultManager)."""

    ABI = ABI_MAKER_CONNECTOR

    @classmethod
    def build_open(cls) -> bytes:
        return cls.encode_call("open")

    def open(self, ctx: str) -> int:
        return self.protocol.open(ctx)

    def deposit(self, ctx: str, vault: int, amt: int) -> None:
        if amt == MAX_UINT256:
            amt = self.ledger.balance_of(self.protocol.collateral_token, ctx)
        self.protocol.lock(ctx, vault, amt)

    def borrow(self, ctx: str, vault: int, amt: int) -> None:
        self.protocol.draw(ctx, vault, amt)

    def payback(self, ctx: str, vault: int, amt: int) -> None:
        if amt == MAX_UINT256:
            amt = int(self.protocol.vault(vault)["debt"])
        self.protocol.wipe(ctx, vault, amt)

    def withdraw(self, ctx: str, vault: int, amt: int) -> None:
        if amt == MAX_UINT256:
            amt = int(self.protocol.vault(vault)["collateral"])
        self.protocol.free(ctx, vault, amt)
