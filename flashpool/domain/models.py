from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from web3 import Web3

from .enums import ActionType, AssetDenomination, AssetReference, Route
from ..utils.constants import MAX_UINT256


def _checksum(addr: str) -> str:
    return Web3.to_checksum_address(addr)


class AccountRef(BaseModel):
    """One isolated sub-ledger inside the primary pool."""
    model_config = ConfigDict(frozen=True)

    owner: str
    number: int = Field(default=1, ge=0)

    @field_validator("owner")
    @classmethod
    def checksum_owner(cls, v: str) -> str:
        return _checksum(v)


class AssetAmount(BaseModel):
    model_config = ConfigDict(frozen=True)

    sign: bool                       # True == positive
    denomination: AssetDenomination = AssetDenomination.WEI
    reference: AssetReference = AssetReference.DELTA
    value: int = Field(..., ge=0, le=MAX_UINT256)

    def signed(self) -> int:
        return self.value if self.sign else -self.value


class Action(BaseModel):
    """A single operation submitted to the primary pool's batch executor."""
    model_config = ConfigDict(frozen=True)

    action_type: ActionType
    account_id: int = 0
    amount: AssetAmount
    primary_market_id: int = 0
    secondary_market_id: int = 0
    other_address: str
    other_account_id: int = 0
    data: bytes = b""

    @field_validator("other_address")
    @classmethod
    def checksum_other(cls, v: str) -> str:
        return _checksum(v)


class SubOperation(BaseModel):
    """One (target, payload) pair the destination agent executes."""
    model_config = ConfigDict(frozen=True)

    target: str
    payload: bytes = b""

    @field_validator("target")
    @classmethod
    def checksum_target(cls, v: str) -> str:
        return _checksum(v)


class FlashLoanPlan(BaseModel):
    """
    Everything the callback needs to finish a flash-loan step.

    Built by the entry point, carried through the primary pool as an opaque
    blob and rebuilt unchanged inside the callback. `tokens` and `amounts`
    correspond positionally.
    """
    destination_agent: str
    route: Route
    tokens: List[str] = []
    amounts: List[int] = []
    sub_operations: List[SubOperation] = []

    @field_validator("destination_agent")
    @classmethod
    def checksum_agent(cls, v: str) -> str:
        return _checksum(v)

    @field_validator("tokens")
    @classmethod
    def checksum_tokens(cls, v: List[str]) -> List[str]:
        return [_checksum(t) for t in v]

    @field_validator("amounts")
    @classmethod
    def uint_amounts(cls, v: List[int]) -> List[int]:
        for amt in v:
            if amt < 0 or amt > MAX_UINT256:
                raise ValueError(f"amount out of uint256 range: {amt}")
        return v

    @model_validator(mode="after")
    def same_length(self) -> "FlashLoanPlan":
        if len(self.tokens) != len(self.amounts):
            raise ValueError("tokens and amounts must have the same length")
        return self

    @property
    def targets(self) -> List[str]:
        return [op.target for op in self.sub_operations]

    @property
    def payloads(self) -> List[bytes]:
        return [op.payload for op in self.sub_operations]


class FlashLoanRequest(BaseModel):
    """Caller-facing arguments of `initiate`, validated before any work."""
    tokens: List[str]
    amounts: List[int]
    route: Route

    @field_validator("tokens")
    @classmethod
    def checksum_tokens(cls, v: List[str]) -> List[str]:
        return [_checksum(t) for t in v]

    @field_validator("amounts")
    @classmethod
    def uint_amounts(cls, v: List[int]) -> List[int]:
        for amt in v:
            if amt < 0 or amt > MAX_UINT256:
                raise ValueError(f"amount out of uint256 range: {amt}")
        return v

    @model_validator(mode="after")
    def same_length(self) -> "FlashLoanRequest":
        if len(self.tokens) != len(self.amounts):
            raise ValueError("tokens and amounts must have the same length")
        return self
