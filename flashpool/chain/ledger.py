"""
In-memory execution environment: token balances, allowances, deployed
contracts and all-or-nothing sections.

The ledger stands in for the chain the engine runs on. Balances are raw
integer units keyed by token address; the native asset lives under
NATIVE_TOKEN. `atomic()` snapshots the ledger plus every deployed contract's
declared state and restores it if the block raises, which is how an atomic
step unwinds.
"""

import logging
from contextlib import contextmanager
from copy import deepcopy
from typing import Any, Dict, Iterator, List, Optional, Tuple

from web3 import Web3

from .exceptions import InsufficientAllowance, InsufficientBalance, UnknownContract


def make_address(label: str) -> str:
    """Deterministic checksum address derived from a human label."""
    digest = Web3.keccak(text=label).hex()
    return Web3.to_checksum_address("0x" + digest[-40:])


def _addr(a: str) -> str:
    return Web3.to_checksum_address(a)


class Ledger:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.balances: Dict[str, Dict[str, int]] = {}
        self.allowances: Dict[Tuple[str, str, str], int] = {}
        self.contracts: Dict[str, Any] = {}
        self.events: List[Dict[str, Any]] = []
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    # ---------- contracts ----------

    def deploy(self, contract: Any) -> str:
        self.contracts[contract.address] = contract
        return contract.address

    def contract_at(self, address: str) -> Any:
        try:
            return self.contracts[_addr(address)]
        except KeyError:
            raise UnknownContract(f"no contract at {address}") from None

    def has_contract(self, address: str) -> bool:
        return _addr(address) in self.contracts

    def emit(self, source: str, name: str, **fields: Any) -> None:
        self.events.append({"source": source, "event": name, **fields})

    # ---------- balances ----------

    def balance_of(self, token: str, holder: str) -> int:
        return self.balances.get(_addr(token), {}).get(_addr(holder), 0)

    def _set(self, token: str, holder: str, value: int) -> None:
        self.balances.setdefault(token, {})[holder] = value

    def mint(self, token: str, holder: str, amount: int) -> None:
        token, holder = _addr(token), _addr(holder)
        self._set(token, holder, self.balance_of(token, holder) + int(amount))

    def burn(self, token: str, holder: str, amount: int) -> None:
        token, holder = _addr(token), _addr(holder)
        bal = self.balance_of(token, holder)
        if bal < amount:
            raise InsufficientBalance(token, holder, amount, bal)
        self._set(token, holder, bal - int(amount))

    def transfer(self, token: str, src: str, dst: str, amount: int) -> None:
        token, src, dst = _addr(token), _addr(src), _addr(dst)
        amount = int(amount)
        bal = self.balance_of(token, src)
        if bal < amount:
            raise InsufficientBalance(token, src, amount, bal)
        self._set(token, src, bal - amount)
        self._set(token, dst, self.balance_of(token, dst) + amount)

    # ---------- allowances ----------

    def approve(self, token: str, owner: str, spender: str, amount: int) -> None:
        self.allowances[(_addr(token), _addr(owner), _addr(spender))] = int(amount)

    def allowance(self, token: str, owner: str, spender: str) -> int:
        return self.allowances.get((_addr(token), _addr(owner), _addr(spender)), 0)

    def transfer_from(self, token: str, spender: str, src: str, dst: str, amount: int) -> None:
        allowed = self.allowance(token, src, spender)
        if allowed < amount:
            raise InsufficientAllowance(token, src, spender, amount, allowed)
        self.transfer(token, src, dst, amount)
        self.approve(token, src, spender, allowed - int(amount))

    # ---------- atomic sections ----------

    def _snapshot(self) -> Dict[str, Any]:
        return {
            "balances": deepcopy(self.balances),
            "allowances": dict(self.allowances),
            "events": list(self.events),
            "contracts": dict(self.contracts),
            "state": {
                addr: {f: deepcopy(getattr(c, f)) for f in getattr(c, "snapshot_fields", ())}
                for addr, c in self.contracts.items()
            },
        }

    def _restore(self, snap: Dict[str, Any]) -> None:
        self.balances = snap["balances"]
        self.allowances = snap["allowances"]
        self.events = snap["events"]
        self.contracts = snap["contracts"]
        for addr, fields in snap["state"].items():
            contract = self.contracts[addr]
            for f, v in fields.items():
                setattr(contract, f, v)

    @contextmanager
    def atomic(self, name: str = "tx") -> Iterator["Ledger"]:
        """
        Run a block all-or-nothing. On any exception every balance, allowance,
        event and contract state goes back to what it was on entry, and the
        exception propagates.
        """
        snap = self._snapshot()
        try:
            yield self
        except Exception as e:
            self._restore(snap)
            self._logger.debug("Atomic section %s reverted: %s", name, e)
            raise


class SimContract:
    """
    Base for simulated contracts. Subclasses list the attributes holding
    their mutable state in `snapshot_fields` so atomic sections can restore
    them.
    """

    snapshot_fields: Tuple[str, ...] = ()

    def __init__(self, ledger: Ledger, address: str):
        self.ledger = ledger
        self.address = _addr(address)
        ledger.deploy(self)

    def emit(self, name: str, **fields: Any) -> None:
        self.ledger.emit(self.address, name, **fields)
