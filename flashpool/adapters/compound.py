from .base import LendingConnector
from ..utils.constants import MAX_UINT256

# ---- minimal connector ABI (address-keyed, pool-based) ----
ABI_COMPOUND_CONNECTOR = [
    {"name":"deposit","outputs":[],"inputs":[{"type":"address","name":"token"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
    {"name":"borrow","outputs":[],"inputs":[{"type":"address","name":"token"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
    {"name":"payback","outputs":[],"inputs":[{"type":"address","name":"token"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
    {"name":"withdraw","outputs":[],"inputs":[{"type":"address","name":"token"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
]


class CompoundConnector(LendingConnector):
    """Connector for a pool-based money market (LendingPool)."""

    ABI = ABI_COMPOUND_CONNECTOR

    def deposit(self, ctx: str, token: str, amt: int) -> None:
        if amt == MAX_UINT256:
            amt = self.ledger.balance_of(token, ctx)
        self.protocol.supply(ctx, token, amt)

    def borrow(self, ctx: str, token: str, amt: int) -> None:
        self.protocol.borrow(ctx, token, amt)

    def payback(self, ctx: str, token: str, amt: int) -> None:
        if amt == MAX_UINT256:
            amt = self.protocol.debt_of(ctx, token)
        self.protocol.repay(ctx, token, amt)

    def withdraw(self, ctx: str, token: str, amt: int) -> None:
        if amt == MAX_UINT256:
            amt = self.protocol.collateral_of(ctx, token)
        self.protocol.redeem(ctx, token, amt)
