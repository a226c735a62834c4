"""
Secondary lending protocols used by the leveraged routes.

- LendingPool: pool-based money market. Users supply collateral, borrow any
  listed token the pool holds, health = debt value <= collateral value * factor.
- VaultManager: vault-based CDP. One collateral and one debt asset per
  manager; debt is minted on draw and burned on wipe, health =
  collateral value >= debt value * min_ratio.

Prices are WAD-scaled value per raw unit.
"""

from typing import Dict, Optional

from web3 import Web3

from .exceptions import LendingError
from .ledger import Ledger, SimContract
from ..utils.constants import NATIVE_TOKEN, WAD


class LendingPool(SimContract):
    snapshot_fields = ("collateral", "debt")

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        prices: Dict[str, int],
        collateral_factor: int = 75 * WAD // 100,
    ):
        super().__init__(ledger, address)
        self.prices = {Web3.to_checksum_address(t): int(p) for t, p in prices.items()}
        self.collateral_factor = int(collateral_factor)
        self.collateral: Dict[str, Dict[str, int]] = {}
        self.debt: Dict[str, Dict[str, int]] = {}

    # ---------- reads ----------

    def collateral_of(self, user: str, token: str) -> int:
        return self.collateral.get(user, {}).get(token, 0)

    def debt_of(self, user: str, token: str) -> int:
        return self.debt.get(user, {}).get(token, 0)

    def _price(self, token: str) -> int:
        if token not in self.prices:
            raise LendingError(f"token not listed: {token}")
        return self.prices[token]

    def _value(self, positions: Dict[str, int]) -> int:
        return sum(amt * self._price(tok) // WAD for tok, amt in positions.items())

    def _check_health(self, collateral: Dict[str, int], debt: Dict[str, int]) -> None:
        borrow_limit = self._value(collateral) * self.collateral_factor // WAD
        owed = self._value(debt)
        if owed > borrow_limit:
            raise LendingError(f"insufficient collateral: owed={owed} limit={borrow_limit}")

    # ---------- writes ----------

    def supply(self, user: str, token: str, amount: int) -> None:
        self._price(token)
        self.ledger.transfer(token, user, self.address, amount)
        pos = self.collateral.setdefault(user, {})
        pos[token] = pos.get(token, 0) + amount
        self.emit("Supply", user=user, token=token, amount=amount)

    def redeem(self, user: str, token: str, amount: int) -> None:
        have = self.collateral_of(user, token)
        if amount > have:
            raise LendingError(f"redeem exceeds collateral: {amount} > {have}")
        pos = dict(self.collateral.get(user, {}))
        pos[token] = have - amount
        self._check_health(pos, self.debt.get(user, {}))
        self.collateral[user] = pos
        self.ledger.transfer(token, self.address, user, amount)
        self.emit("Redeem", user=user, token=token, amount=amount)

    def borrow(self, user: str, token: str, amount: int) -> None:
        self._price(token)
        cash = self.ledger.balance_of(token, self.address)
        if amount > cash:
            raise LendingError(f"insufficient liquidity: {amount} > {cash}")
        pos = dict(self.debt.get(user, {}))
        pos[token] = pos.get(token, 0) + amount
        self._check_health(self.collateral.get(user, {}), pos)
        self.debt[user] = pos
        self.ledger.transfer(token, self.address, user, amount)
        self.emit("Borrow", user=user, token=token, amount=amount)

    def repay(self, user: str, token: str, amount: int) -> None:
        owed = self.debt_of(user, token)
        if amount > owed:
            raise LendingError(f"repay exceeds debt: {amount} > {owed}")
        self.ledger.transfer(token, user, self.address, amount)
        self.debt[user][token] = owed - amount
        self.emit("Repay", user=user, token=token, amount=amount)


class VaultManager(SimContract):
    snapshot_fields = ("vaults", "next_id")

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        debt_token: str,
        collateral_price: int,
        debt_price: int = WAD,
        min_ratio: int = 150 * WAD // 100,
        collateral_token: str = NATIVE_TOKEN,
    ):
        super().__init__(ledger, address)
        self.collateral_token = collateral_token
        self.debt_token = debt_token
        self.collateral_price = int(collateral_price)
        self.debt_price = int(debt_price)
        self.min_ratio = int(min_ratio)
        self.vaults: Dict[int, Dict[str, object]] = {}
        self.next_id = 1

    def open(self, owner: str) -> int:
        vault_id = self.next_id
        self.next_id += 1
        self.vaults[vault_id] = {"owner": owner, "collateral": 0, "debt": 0}
        self.emit("Open", owner=owner, vault=vault_id)
        return vault_id

    def vault(self, vault_id: int) -> Optional[Dict[str, object]]:
        return self.vaults.get(vault_id)

    def _owned(self, owner: str, vault_id: int) -> Dict[str, object]:
        v = self.vaults.get(vault_id)
        if v is None:
            raise LendingError(f"unknown vault {vault_id}")
        if v["owner"] != owner:
            raise LendingError(f"vault {vault_id} not owned by {owner}")
        return v

    def _check_safe(self, collateral: int, debt: int) -> None:
        coll_value = collateral * self.collateral_price // WAD
        debt_value = debt * self.debt_price // WAD
        if coll_value * WAD < debt_value * self.min_ratio:
            raise LendingError(f"unsafe vault: collateral={coll_value} debt={debt_value}")

    def lock(self, owner: str, vault_id: int, amount: int) -> None:
        v = self._owned(owner, vault_id)
        self.ledger.transfer(self.collateral_token, owner, self.address, amount)
        v["collateral"] = int(v["collateral"]) + amount
        self.emit("Lock", vault=vault_id, amount=amount)

    def free(self, owner: str, vault_id: int, amount: int) -> None:
        v = self._owned(owner, vault_id)
        if amount > int(v["collateral"]):
            raise LendingError(f"free exceeds collateral in vault {vault_id}")
        remaining = int(v["collateral"]) - amount
        self._check_safe(remaining, int(v["debt"]))
        v["collateral"] = remaining
        self.ledger.transfer(self.collateral_token, self.address, owner, amount)
        self.emit("Free", vault=vault_id, amount=amount)

    def draw(self, owner: str, vault_id: int, amount: int) -> None:
        v = self._owned(owner, vault_id)
        owed = int(v["debt"]) + amount
        self._check_safe(int(v["collateral"]), owed)
        v["debt"] = owed
        self.ledger.mint(self.debt_token, owner, amount)
        self.emit("Draw", vault=vault_id, amount=amount)

    def wipe(self, owner: str, vault_id: int, amount: int) -> None:
        v = self._owned(owner, vault_id)
        if amount > int(v["debt"]):
            raise LendingError(f"wipe exceeds debt in vault {vault_id}")
        self.ledger.burn(self.debt_token, owner, amount)
        v["debt"] = int(v["debt"]) - amount
        self.emit("Wipe", vault=vault_id, amount=amount)
