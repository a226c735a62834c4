from abc import ABC, abstractmethod
from typing import Any, Dict, List

from web3 import Web3

from ..chain.exceptions import UnknownSelector
from ..chain.ledger import Ledger
from ..services.utils import decode_fn_args, encode_fn_call, fn_selector


class Connector:
    """
    Stateless code deployed at its own address and always executed in the
    caller's context: `dispatch(ctx, calldata)` decodes the selector against
    the connector's ABI fragments and runs the matching method with `ctx` as
    the account whose funds move.
    """

    ABI: List[Dict[str, Any]] = []

    def __init__(self, ledger: Ledger, address: str):
        self.ledger = ledger
        self.address = Web3.to_checksum_address(address)
        ledger.deploy(self)

    # ---------- ABI helpers ----------

    @classmethod
    def fragment(cls, name: str) -> Dict[str, Any]:
        for frag in cls.ABI:
            if frag.get("type") == "function" and frag["name"] == name:
                return frag
        raise UnknownSelector(f"{cls.__name__} has no function {name}")

    @classmethod
    def encode_call(cls, name: str, *args: Any) -> bytes:
        return encode_fn_call(cls.fragment(name), args)

    # ---------- delegated execution ----------

    def dispatch(self, ctx: str, calldata: bytes) -> Any:
        selector = bytes(calldata[:4])
        for frag in self.ABI:
            if frag.get("type") == "function" and fn_selector(frag) == selector:
                args = decode_fn_args(frag, calldata)
                return getattr(self, frag["name"])(Web3.to_checksum_address(ctx), *args)
        raise UnknownSelector(f"{self.__class__.__name__}: unknown selector 0x{selector.hex()}")


class LendingConnector(Connector, ABC):
    """
    Adapter that normalizes one secondary lending protocol behind
    deposit / borrow / payback / withdraw.

    `ref` is the asset address for pool-based protocols and the vault id for
    vault-based ones. An amount of MAX_UINT256 means "everything": the full
    balance on deposit, the full collateral on withdraw, the full debt on
    payback.
    """

    def __init__(self, ledger: Ledger, address: str, protocol: Any):
        super().__init__(ledger, address)
        self.protocol = protocol

    # ---------- calldata builders ----------
    @classmethod
    def build_deposit(cls, ref: Any, amount: int) -> bytes:
        return cls.encode_call("deposit", ref, amount)

    @classmethod
    def build_borrow(cls, ref: Any, amount: int) -> bytes:
        return cls.encode_call("borrow", ref, amount)

    @classmethod
    def build_payback(cls, ref: Any, amount: int) -> bytes:
        return cls.encode_call("payback", ref, amount)

    @classmethod
    def build_withdraw(cls, ref: Any, amount: int) -> bytes:
        return cls.encode_call("withdraw", ref, amount)

    # ---------- Write (executed in ctx) ----------
    @abstractmethod
    def deposit(self, ctx: str, ref: Any, amount: int) -> None:
        """Post collateral."""
        ...

    @abstractmethod
    def borrow(self, ctx: str, ref: Any, amount: int, *extra: Any) -> None:
        ...

    @abstractmethod
    def payback(self, ctx: str, ref: Any, amount: int, *extra: Any) -> None:
        ...

    @abstractmethod
    def withdraw(self, ctx: str, ref: Any, amount: int) -> None:
        """Take collateral back."""
        ...
