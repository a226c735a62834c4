# flashpool/services/actions.py

from ..domain.enums import ActionType, AssetDenomination, AssetReference
from ..domain.models import AccountRef, Action, AssetAmount

ACCOUNT_NUMBER = 1


class ActionBuilder:
    """
    Builds the primitive operations the primary pool executes.

    Every operation targets the owner's single account (index 0 of the
    batch) and names the owner as counterparty.
    """

    def __init__(self, owner: str):
        self.owner = owner

    def account_ref(self) -> AccountRef:
        return AccountRef(owner=self.owner, number=ACCOUNT_NUMBER)

    def withdraw(self, market_id: int, amount: int) -> Action:
        return Action(
            action_type=ActionType.WITHDRAW,
            account_id=0,
            amount=AssetAmount(
                sign=False,
                denomination=AssetDenomination.WEI,
                reference=AssetReference.DELTA,
                value=amount,
            ),
            primary_market_id=market_id,
            other_address=self.owner,
        )

    def deposit(self, market_id: int, amount: int) -> Action:
        return Action(
            action_type=ActionType.DEPOSIT,
            account_id=0,
            amount=AssetAmount(
                sign=True,
                denomination=AssetDenomination.WEI,
                reference=AssetReference.DELTA,
                value=amount,
            ),
            primary_market_id=market_id,
            other_address=self.owner,
        )

    def call(self, data: bytes) -> Action:
        return Action(
            action_type=ActionType.CALL,
            account_id=0,
            amount=AssetAmount(sign=False, value=0),
            other_address=self.owner,
            data=data,
        )
