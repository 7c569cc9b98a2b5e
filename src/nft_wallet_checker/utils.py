"""Utility functions for address validation and input parsing"""

import re
from typing import List, Optional, Tuple

from eth_utils import is_address, to_checksum_address
from loguru import logger

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
INPUT_SEPARATORS = re.compile(r"[\n,]")


def validate_ethereum_address(address: str) -> Tuple[bool, Optional[str]]:
    """
    Validate Ethereum address format

    Mixed-case addresses must carry a valid EIP-55 checksum; all-lowercase
    and all-uppercase hex is accepted as is.

    Returns:
        (is_valid, checksum_address or None)
    """
    if not address or not isinstance(address, str):
        return False, None

    address = address.strip()

    # Check basic format
    if not ADDRESS_PATTERN.match(address):
        return False, None

    try:
        if is_address(address):
            return True, to_checksum_address(address)
    except ValueError as e:
        logger.debug(f"Address validation error: {e}")

    return False, None


def has_address_format(address: str) -> bool:
    """Return True for 0x plus 40 hex characters, ignoring checksum case"""
    return isinstance(address, str) and bool(ADDRESS_PATTERN.match(address.strip()))


def is_valid_address(address: str) -> bool:
    """Return True when ``address`` is a well-formed EVM address"""
    valid, _ = validate_ethereum_address(address)
    return valid


def parse_address_input(text: str) -> List[str]:
    """
    Split free-form input into address strings

    Entries may be separated by newlines or commas. Surrounding whitespace is
    stripped and empty entries dropped; duplicates and malformed entries are
    kept so that every line gets a result.
    """
    if not text:
        return []
    return [part.strip() for part in INPUT_SEPARATORS.split(text) if part.strip()]


def redact(message: str, secret: Optional[str]) -> str:
    """Remove a credential from a message before it is logged or returned"""
    if not secret:
        return message
    return message.replace(secret, "[REDACTED]")
