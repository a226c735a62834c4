"""
Primary pool: a set of markets (one token each) and an atomic batch executor.

`operate` runs a list of actions against the caller's accounts. Withdraws
push tokens out and debit the account, deposits pull tokens in (through the
allowance granted to the pool) and credit it, calls re-enter the named
contract's `call_function`. After the last action every touched account must
be non-negative; otherwise the whole batch is undone.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from web3 import Web3

from .exceptions import PoolError
from .ledger import Ledger, SimContract
from ..domain.enums import ActionType, AssetReference
from ..domain.models import AccountRef, Action

AccountKey = Tuple[str, int, int]   # (owner, number, market_id)


class SoloPool(SimContract):
    snapshot_fields = ("markets", "accounts")

    def __init__(self, ledger: Ledger, address: str, logger: Optional[logging.Logger] = None):
        super().__init__(ledger, address)
        self.markets: List[str] = []
        self.accounts: Dict[AccountKey, int] = {}
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    # ---------- markets ----------

    def add_market(self, token: str) -> int:
        self.markets.append(Web3.to_checksum_address(token))
        return len(self.markets) - 1

    def get_num_markets(self) -> int:
        return len(self.markets)

    def get_market_token_address(self, market_id: int) -> str:
        if market_id < 0 or market_id >= len(self.markets):
            raise PoolError(f"invalid market id {market_id}")
        return self.markets[market_id]

    def get_account_balance(self, account: AccountRef, market_id: int) -> int:
        return self.accounts.get((account.owner, account.number, market_id), 0)

    # ---------- batch executor ----------

    def operate(self, sender: str, accounts: Sequence[AccountRef], actions: Sequence[Action]) -> None:
        sender = Web3.to_checksum_address(sender)
        for acct in accounts:
            if acct.owner != sender:
                raise PoolError(f"unpermissioned operator {sender} for account owner {acct.owner}")

        with self.ledger.atomic("operate"):
            touched = set()
            for action in actions:
                if action.account_id >= len(accounts):
                    raise PoolError(f"account index {action.account_id} out of range")
                acct = accounts[action.account_id]

                if action.action_type == ActionType.WITHDRAW:
                    touched.add(self._withdraw(acct, action))
                elif action.action_type == ActionType.DEPOSIT:
                    touched.add(self._deposit(sender, acct, action))
                elif action.action_type == ActionType.CALL:
                    self._call(sender, acct, action)
                else:
                    raise PoolError(f"unsupported action {action.action_type.name}")

            for key in touched:
                if self.accounts.get(key, 0) < 0:
                    raise PoolError(
                        f"undercollateralized account owner={key[0]} number={key[1]} "
                        f"market={key[2]} balance={self.accounts[key]}"
                    )
            self._logger.debug("Batch of %s actions committed for %s", len(actions), sender)

    def _delta(self, key: AccountKey, action: Action) -> int:
        amount = action.amount
        if amount.reference == AssetReference.TARGET:
            return amount.signed() - self.accounts.get(key, 0)
        return amount.signed()

    def _withdraw(self, acct: AccountRef, action: Action) -> AccountKey:
        token = self.get_market_token_address(action.primary_market_id)
        key = (acct.owner, acct.number, action.primary_market_id)
        delta = self._delta(key, action)
        if delta > 0:
            raise PoolError("withdraw amount must not be positive")
        self.accounts[key] = self.accounts.get(key, 0) + delta
        self.ledger.transfer(token, self.address, action.other_address, -delta)
        self.emit("Withdraw", owner=acct.owner, market=action.primary_market_id, amount=-delta)
        return key

    def _deposit(self, sender: str, acct: AccountRef, action: Action) -> AccountKey:
        if action.other_address not in (sender, acct.owner):
            raise PoolError(f"invalid deposit source {action.other_address}")
        token = self.get_market_token_address(action.primary_market_id)
        key = (acct.owner, acct.number, action.primary_market_id)
        delta = self._delta(key, action)
        if delta < 0:
            raise PoolError("deposit amount must not be negative")
        self.ledger.transfer_from(token, self.address, action.other_address, self.address, delta)
        self.accounts[key] = self.accounts.get(key, 0) + delta
        self.emit("Deposit", owner=acct.owner, market=action.primary_market_id, amount=delta)
        return key

    def _call(self, sender: str, acct: AccountRef, action: Action) -> None:
        callee = self.ledger.contract_at(action.other_address)
        self.emit("Call", owner=acct.owner, callee=callee.address)
        callee.call_function(sender, acct, action.data)
