from typing import Any, Dict, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector
from hexbytes import HexBytes
from web3 import Web3


def is_zero_address(addr: str | None) -> bool:
    return not addr or int(addr, 16) == 0


def fn_signature(fragment: Dict[str, Any]) -> str:
    """`{"name": "borrow", "inputs": [{"type": "address"}, ...]}` -> 'borrow(address,...)'"""
    types = ",".join(i["type"] for i in fragment.get("inputs", []))
    return f"{fragment['name']}({types})"


def fn_selector(fragment: Dict[str, Any]) -> bytes:
    return bytes(function_signature_to_4byte_selector(fn_signature(fragment)))


def encode_fn_call(fragment: Dict[str, Any], args: Sequence[Any]) -> bytes:
    """selector + ABI-encoded args, the same layout a contract call carries."""
    types = [i["type"] for i in fragment.get("inputs", [])]
    return fn_selector(fragment) + encode(types, list(args))


def decode_fn_args(fragment: Dict[str, Any], calldata: bytes) -> Tuple[Any, ...]:
    types = [i["type"] for i in fragment.get("inputs", [])]
    args = decode(types, bytes(calldata[4:]))
    out = []
    for t, v in zip(types, args):
        # eth_abi hands back lowercase hex; keep addresses in checksum form
        out.append(Web3.to_checksum_address(v) if t == "address" else v)
    return tuple(out)


def to_json_safe(obj: Any) -> Any:
    """
    Recursively convert HexBytes/bytes-heavy structures into plain
    JSON-serializable primitives.

    - HexBytes / bytes -> "0x..." str
    - dict     -> {k: to_json_safe(v)}
    - list/tuple -> [to_json_safe(v), ...]
    - enums and other objects -> str(obj) unless natively serializable
    """
    if isinstance(obj, HexBytes):
        return "0x" + bytes(obj).hex()

    if isinstance(obj, (bytes, bytearray)):
        return "0x" + obj.hex()

    if isinstance(obj, bool) or obj is None:
        return obj

    # IntEnum is an int; report it by name
    if isinstance(obj, int) and type(obj) is not int:
        return getattr(obj, "name", int(obj))

    if isinstance(obj, (str, int, float)):
        return obj

    if isinstance(obj, dict):
        return {str(k): to_json_safe(v) for (k, v) in obj.items()}

    if isinstance(obj, (list, tuple, set)):
        return [to_json_safe(v) for v in obj]

    return str(obj)
