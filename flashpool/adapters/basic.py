from .base import Connector
from ..utils.constants import MAX_UINT256

ABI_BASIC_CONNECTOR = [
    {"name":"withdraw","outputs":[],"inputs":[{"type":"address","name":"token"},{"type":"uint256","name":"amt"},{"type":"address","name":"to"}],"stateMutability":"payable","type":"function"},
]


class BasicConnector(Connector):
    """
    Plain token movement for destination agents. `withdraw(token, amt, to)`
    sends from the executing account; MAX sends the whole balance.
    """

    ABI = ABI_BASIC_CONNECTOR

    def withdraw(self, ctx: str, token: str, amt: int, to: str) -> None:
        if amt == MAX_UINT256:
            amt = self.ledger.balance_of(token, ctx)
        self.ledger.transfer(token, ctx, to, amt)
