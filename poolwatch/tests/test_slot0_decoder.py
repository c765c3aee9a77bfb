import pytest
from eth_abi import encode

from poolwatch.sources.pancakeswap_v3.decoder import compute_price, decode_slot0, decode_tick
from conftest import Q96, slot0_bytes


def _zero_padded(sqrt_price_x96: int, tick: int) -> bytes:
    """slot0 layout with the tick stored as a bare 24-bit field."""
    return sqrt_price_x96.to_bytes(32, "big") + (tick % (1 << 24)).to_bytes(32, "big")


def test_decodes_sqrt_price_and_positive_tick():
    sqrt_price, tick = decode_slot0(slot0_bytes(79228162514264337593543950336, 887))
    assert sqrt_price == 79228162514264337593543950336
    assert tick == 887


@pytest.mark.parametrize("tick", [-8388608, -887272, -1, 0, 1, 60, 887272, 8388607])
def test_tick_round_trips_through_24_bit_layout(tick):
    assert decode_slot0(_zero_padded(Q96, tick)) == (Q96, tick)


@pytest.mark.parametrize("tick", [-887272, -276325, -1])
def test_negative_tick_from_sign_extended_abi_word(tick):
    # int24 values come back from the node sign-extended to 256 bits
    raw = encode(["uint160", "int24"], [Q96, tick])
    assert decode_slot0(raw) == (Q96, tick)


def test_decode_tick_boundaries():
    assert decode_tick(8388607) == 8388607
    assert decode_tick(8388608) == -8388608
    assert decode_tick(16777215) == -1


def test_accepts_hex_string():
    raw = "0x" + slot0_bytes(Q96 * 2, -10).hex()
    assert decode_slot0(raw) == (Q96 * 2, -10)


@pytest.mark.parametrize("raw", [b"", b"\x01" * 63, "0x", "0x" + "00" * 40])
def test_short_payload_defaults_to_zero(raw):
    assert decode_slot0(raw) == (0, 0)


def test_garbage_hex_defaults_to_zero():
    assert decode_slot0("0xnothex") == (0, 0)


def test_price_zero_sqrt_price():
    assert compute_price(0, 18, 6) == 0.0


def test_price_one_to_one():
    assert compute_price(Q96, 18, 18) == 1.0


def test_price_from_squared_sqrt():
    # sqrt(P) = 2  ->  P = 4
    assert compute_price(2 * Q96, 18, 18) == 4.0


def test_price_decimal_adjustment():
    # raw P = 4 token1 units per token0 unit; adjusted by 10^(d1 - d0)
    assert compute_price(2 * Q96, 6, 18) == pytest.approx(4 / 10 ** 12)
    assert compute_price(2 * Q96, 18, 6) == pytest.approx(4 * 10 ** 12)


def test_price_keeps_precision_for_large_sqrt_price():
    sqrt_price = 1461446703485210103287273052203988822378723970341  # near uint160 max
    expected = (sqrt_price * sqrt_price * 10 ** 6 // (1 << 192)) / 10 ** 6
    assert compute_price(sqrt_price, 18, 18) == expected
