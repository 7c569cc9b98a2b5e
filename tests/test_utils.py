"""
Unit tests for address validation and input parsing.
"""

import pytest

from nft_wallet_checker.utils import (
    has_address_format,
    is_valid_address,
    parse_address_input,
    redact,
    validate_ethereum_address,
)


class TestAddressValidation:
    """Tests for EVM address validation."""

    def test_accepts_checksummed_address(self, sample_wallet_address):
        """
        Given a correctly checksummed address
        When validating it
        Then it should be valid and returned in checksum form
        """
        valid, checksum = validate_ethereum_address(sample_wallet_address)

        assert valid is True
        assert checksum == sample_wallet_address

    def test_accepts_lowercase_address(self, sample_wallet_address):
        """
        Given an all-lowercase address
        When validating it
        Then it should be valid and normalised to checksum form
        """
        valid, checksum = validate_ethereum_address(sample_wallet_address.lower())

        assert valid is True
        assert checksum == sample_wallet_address

    def test_strips_surrounding_whitespace(self, sample_wallet_address):
        assert is_valid_address(f"  {sample_wallet_address}\n") is True

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "not-an-address",
            "0x123",
            "d8dA6BF26964aF9D7eEd9e03E53415D37aA96045",  # missing prefix
            "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA9604Z",  # non-hex
            "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA960455",  # too long
        ],
    )
    def test_rejects_malformed_addresses(self, value):
        assert is_valid_address(value) is False

    def test_rejects_bad_checksum(self, sample_wallet_address):
        """
        Given a mixed-case address whose checksum is wrong
        When validating it
        Then it should be rejected
        """
        # flip the case of the first letter
        bad = "0xD" + sample_wallet_address[3:]

        assert is_valid_address(bad) is False
        assert has_address_format(bad) is True

    def test_rejects_non_string(self):
        assert is_valid_address(None) is False
        assert has_address_format(None) is False


class TestParseAddressInput:
    """Tests for splitting pasted address lists."""

    def test_splits_on_newlines_and_commas(self):
        text = "0xaaa\n0xbbb, 0xccc\n\n , 0xddd"

        assert parse_address_input(text) == ["0xaaa", "0xbbb", "0xccc", "0xddd"]

    def test_keeps_duplicates_and_malformed_entries(self):
        text = "0xaaa\n0xaaa\nnot-an-address"

        assert parse_address_input(text) == ["0xaaa", "0xaaa", "not-an-address"]

    def test_empty_input_yields_empty_list(self):
        assert parse_address_input("") == []
        assert parse_address_input(" \n , ") == []


class TestRedact:
    def test_removes_secret(self):
        assert redact("GET failed for key abc123", "abc123") == "GET failed for key [REDACTED]"

    def test_no_secret_leaves_message(self):
        assert redact("plain message", "") == "plain message"
