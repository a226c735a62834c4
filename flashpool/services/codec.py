"""
Plan codec: the wire format of the opaque payload that crosses the primary
pool's callback boundary.

Layouts (standard ABI encoding, eth-abi):

    sub-operations : (address[] targets, bytes[] payloads)
    plan           : (address agent, uint256 route, address[] tokens,
                      uint256[] amounts, bytes subOperationBytes)
    caller data    : (address agent, bytes subOperationBytes)

The sub-operation bytes are nested as-is: `encode` repackages them without
looking inside. Only `decode` unpacks them, to hand typed pairs to the agent.
"""

from typing import List, Sequence, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from pydantic import ValidationError

from ..domain.models import FlashLoanPlan, SubOperation
from .exceptions import PlanDecodeError

SUB_OPERATION_TYPES = ["address[]", "bytes[]"]
PLAN_TYPES = ["address", "uint256", "address[]", "uint256[]", "bytes"]
CALLER_DATA_TYPES = ["address", "bytes"]


def encode_sub_operations(targets: Sequence[str], payloads: Sequence[bytes]) -> bytes:
    return abi_encode(SUB_OPERATION_TYPES, [list(targets), [bytes(p) for p in payloads]])


def decode_sub_operations(data: bytes) -> List[SubOperation]:
    try:
        targets, payloads = abi_decode(SUB_OPERATION_TYPES, bytes(data))
    except Exception as e:
        raise PlanDecodeError(f"malformed sub-operations: {e}") from e
    if len(targets) != len(payloads):
        raise PlanDecodeError("sub-operation targets/payloads length mismatch")
    return [SubOperation(target=t, payload=p) for t, p in zip(targets, payloads)]


def encode(
    destination_agent: str,
    route: int,
    tokens: Sequence[str],
    amounts: Sequence[int],
    sub_operation_bytes: bytes,
) -> bytes:
    return abi_encode(
        PLAN_TYPES,
        [destination_agent, int(route), list(tokens), [int(a) for a in amounts], bytes(sub_operation_bytes)],
    )


def encode_plan(plan: FlashLoanPlan) -> bytes:
    return encode(
        plan.destination_agent,
        plan.route,
        plan.tokens,
        plan.amounts,
        encode_sub_operations(plan.targets, plan.payloads),
    )


def decode(data: bytes) -> FlashLoanPlan:
    try:
        agent, route, tokens, amounts, sub_bytes = abi_decode(PLAN_TYPES, bytes(data))
    except Exception as e:
        raise PlanDecodeError(f"malformed plan: {e}") from e

    try:
        return FlashLoanPlan(
            destination_agent=agent,
            route=route,
            tokens=list(tokens),
            amounts=list(amounts),
            sub_operations=decode_sub_operations(sub_bytes),
        )
    except ValidationError as e:
        raise PlanDecodeError(f"invalid plan: {e}") from e


def encode_caller_data(destination_agent: str, targets: Sequence[str], payloads: Sequence[bytes]) -> bytes:
    """Build the `data` argument a caller hands to `initiate`."""
    return abi_encode(CALLER_DATA_TYPES, [destination_agent, encode_sub_operations(targets, payloads)])


def decode_caller_data(data: bytes) -> Tuple[str, bytes]:
    try:
        agent, sub_bytes = abi_decode(CALLER_DATA_TYPES, bytes(data))
    except Exception as e:
        raise PlanDecodeError(f"malformed caller data: {e}") from e
    return agent, sub_bytes
