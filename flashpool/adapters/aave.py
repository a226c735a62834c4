from typing import Any

from .base import LendingConnector
from ..chain.exceptions import LendingError
from ..utils.constants import MAX_UINT256

STABLE_RATE = 1
VARIABLE_RATE = 2

# borrow/payback carry the interest rate mode as a third argument
ABI_AAVE_CONNECTOR = [
    {"name":"deposit","outputs":[],"inputs":[{"type":"address","name":"token"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
    {"name":"borrow","outputs":[],"inputs":[{"type":"address","name":"token"},{"type":"uint256","name":"amt"},{"type":"uint256","name":"rateMode"}],"stateMutability":"payable","type":"function"},
    {"name":"payback","outputs":[],"inputs":[{"type":"address","name":"token"},{"type":"uint256","name":"amt"},{"type":"uint256","name":"rateMode"}],"stateMutability":"payable","type":"function"},
    {"name":"withdraw","outputs":[],"inputs":[{"type":"address","name":"token"},{"type":"uint256","name":"amt"}],"stateMutability":"payable","type":"function"},
]


class AaveConnector(LendingConnector):
    """Connector for a pool-based market whose debt positions carry a rate mode."""

    ABI = ABI_AAVE_CONNECTOR

    @classmethod
    def build_borrow(cls, ref: Any, amount: int) -> bytes:
        return cls.encode_call("borrow", ref, amount, VARIABLE_RATE)

    @classmethod
    def build_payback(cls, ref: Any, amount: int) -> bytes:
        return cls.encode_call("payback", ref, amount, VARIABLE_RATE)

    @staticmethod
    def _check_rate_mode(rate_mode: int) -> None:
        if rate_mode not in (STABLE_RATE, VARIABLE_RATE):
            raise LendingError(f"invalid rate mode {rate_mode}")

    def deposit(self, ctx: str, token: str, amt: int) -> None:
        if amt == MAX_UINT256:
            amt = self.ledger.balance_of(token, ctx)
        self.protocol.supply(ctx, token, amt)

    def borrow(self, ctx: str, token: str, amt: int, rate_mode: int = VARIABLE_RATE) -> None:
        self._check_rate_mode(rate_mode)
        self.protocol.borrow(ctx, token, amt)

    def payback(self, ctx: str, token: str, amt: int, rate_mode: int = VARIABLE_RATE) -> None:
        self._check_rate_mode(rate_mode)
        if amt == MAX_UINT256:
            amt = self.protocol.debt_of(ctx, token)
        self.protocol.repay(ctx, token, amt)

    def withdraw(self, ctx: str, token: str, amt: int) -> None:
        if amt == MAX_UINT256:
            amt = self.protocol.collateral_of(ctx, token)
        self.protocol.redeem(ctx, token, amt)
