"""
Calldata encoding / return decoding for plain `eth_call` reads.

We go through raw eth_call instead of web3 contract objects so the caller
controls decoding (slot0 is decoded by hand, see pancakeswap_v3.decoder).
"""
from typing import Any, Dict, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_abi_to_4byte_selector
from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def get_function_abi(abi: List[Dict], name: str) -> Dict:
    for item in abi:
        if item.get("type") == "function" and item.get("name") == name:
            return item
    raise KeyError(f"Function {name!r} not found in ABI")


def _types(params: List[Dict]) -> List[str]:
    return [p["type"] for p in params]


def encode_call(abi: List[Dict], name: str, args: Sequence[Any] = ()) -> str:
    fn_abi = get_function_abi(abi, name)
    selector = function_abi_to_4byte_selector(fn_abi)
    payload = encode(_types(fn_abi["inputs"]), list(args)) if fn_abi["inputs"] else b""
    return "0x" + (selector + payload).hex()


def decode_output(abi: List[Dict], name: str, raw: bytes) -> Tuple[Any, ...]:
    fn_abi = get_function_abi(abi, name)
    return decode(_types(fn_abi["outputs"]), bytes(raw))


def decode_single(abi: List[Dict], name: str, raw: bytes) -> Any:
    return decode_output(abi, name, raw)[0]


def to_checksum(address: str) -> str:
    return Web3.to_checksum_address(address)
