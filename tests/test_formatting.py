"""
Tests for display formatting helpers.
"""

import pytest

from eth_explorer.extraction.formatting import (
    decode_extra_data,
    detect_builder_tag,
    format_addr_fixed_width,
    format_address_with_ens,
    format_eth,
    format_gas,
    format_gwei,
    format_timestamp,
    format_token_amount,
    format_u256_decimals,
    hex_encode,
    truncate_hash,
)


class TestFormatU256Decimals:
    """Test exact decimal rendering of wide integers."""

    @pytest.mark.parametrize(
        "value, decimals, expected",
        [
            (0, 18, "0"),
            (10**18, 18, "1"),
            (15 * 10**17, 18, "1.5"),
            (1, 18, "0.000000000000000001"),
            (1_234_500, 6, "1.2345"),
            (2**256 - 1, 18, "115792089237316195423570985008687907853269984665640564039457.584007913129639935"),
            (42, 0, "42"),
            (-15 * 10**17, 18, "-1.5"),
        ],
    )
    def test_values(self, value, decimals, expected):
        assert format_u256_decimals(value, decimals) == expected


class TestFormatGas:
    @pytest.mark.parametrize(
        "gas, expected",
        [
            (999, "999"),
            (1_000, "1.00K"),
            (21_000, "21.00K"),
            (999_999, "1000.00K"),
            (1_000_000, "1.00M"),
            (30_000_000, "30.00M"),
        ],
    )
    def test_values(self, gas, expected):
        assert format_gas(gas) == expected


class TestFormatGwei:
    def test_above_one_gwei(self):
        assert format_gwei(50 * 10**9) == "50.00 gwei"

    def test_below_one_gwei(self):
        assert format_gwei(5 * 10**8) == "0.5000 gwei"

    def test_zero(self):
        assert format_gwei(0) == "0.0000 gwei"


class TestFormatEth:
    def test_whole_ether(self):
        assert format_eth(10**18) == "1.000000 ETH"

    def test_truncates_to_six_digits(self):
        assert format_eth(1_234_567_891_234_567_891) == "1.234567 ETH"

    def test_zero(self):
        assert format_eth(0) == "0.000000 ETH"

    def test_sub_ether_amounts_are_rounded(self):
        assert format_eth(999_999_999_999) == "0.000001 ETH"
        assert format_eth(1_234_567_500_000_000) == "0.001235 ETH"
        assert format_eth(999_999_999_999_999_999) == "1.000000 ETH"

    def test_dust_below_half_a_unit(self):
        assert format_eth(1) == "0.000000 ETH"


class TestFormatTokenAmount:
    def test_whole_amount_has_no_point(self):
        assert format_token_amount(5 * 10**6, 6) == "5"

    def test_truncates_to_four_digits(self):
        assert format_token_amount(1_234_567, 6) == "1.2345"

    def test_zero_decimals(self):
        assert format_token_amount(17, 0) == "17"


class TestAddressDisplay:
    ADDRESS = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"

    def test_with_ens(self):
        assert format_address_with_ens(self.ADDRESS, "vitalik.eth") == (
            f"vitalik.eth ({self.ADDRESS})"
        )

    def test_without_ens(self):
        assert format_address_with_ens(self.ADDRESS, None) == self.ADDRESS

    def test_truncate_hash(self):
        assert truncate_hash(self.ADDRESS) == "0xd8dA6BF2...A96045"

    def test_truncate_short_value_unchanged(self):
        assert truncate_hash("0x1234") == "0x1234"
        assert truncate_hash("0x" + "a" * 18) == "0x" + "a" * 18

    def test_fixed_width_address(self):
        assert len(format_addr_fixed_width(self.ADDRESS, None)) == 19

    def test_fixed_width_short_ens_is_padded(self):
        result = format_addr_fixed_width(self.ADDRESS, "vitalik.eth")
        assert result == "vitalik.eth".ljust(19)

    def test_fixed_width_long_ens_is_cut(self):
        result = format_addr_fixed_width(self.ADDRESS, "a-very-long-name-indeed.eth")
        assert result == "a-very-long-nam" + "e..."
        assert len(result) == 19

    def test_hex_encode(self):
        assert hex_encode(b"\xab\xcd") == "abcd"


class TestFormatTimestamp:
    NOW = 1_700_000_000

    @pytest.mark.parametrize(
        "age, expected",
        [
            (0, "0 secs ago"),
            (59, "59 secs ago"),
            (60, "1 mins ago"),
            (3_599, "59 mins ago"),
            (7_200, "2 hours ago"),
            (3 * 86_400, "3 days ago"),
        ],
    )
    def test_ages(self, age, expected):
        assert format_timestamp(self.NOW - age, now=self.NOW) == expected

    def test_future_timestamp_clamps_to_zero(self):
        assert format_timestamp(self.NOW + 30, now=self.NOW) == "0 secs ago"


class TestExtraData:
    def test_printable_ascii(self):
        assert decode_extra_data(b"Titan (titanbuilder.xyz)") == "Titan (titanbuilder.xyz)"

    def test_binary(self):
        assert decode_extra_data(b"\xd8\x83\x01\x0b") is None

    def test_empty(self):
        assert decode_extra_data(b"") is None


class TestDetectBuilderTag:
    def test_pattern_match(self):
        assert detect_builder_tag(b"Titan (titanbuilder.xyz)") == "Titan"

    def test_pattern_is_case_insensitive(self):
        assert detect_builder_tag(b"Illuminate Dmocratize Dstribute - FLASHBOTS") == "Flashbots"

    def test_short_plain_text_is_returned(self):
        assert detect_builder_tag(b"my-builder") == "my-builder"

    def test_falls_back_to_miner_address(self):
        miner = "0x95222290DD7278Aa3Ddd389Cc1E1d165CC4BAfe5"
        assert detect_builder_tag(b"\xff\xfe", miner) == "Flashbots"

    def test_unknown(self):
        assert detect_builder_tag(b"\xff\xfe") is None
        assert detect_builder_tag(b"", "0x" + "11" * 20) is None
