"""
Wire encodings used by the Safe Transaction Service.

The relay's JSON API is strict about three formats:

- addresses are EIP-55 checksummed hex strings,
- 32-byte hashes are ``0x`` followed by 64 lowercase hex digits,
- uint256 quantities (value, nonce, gas fields) are decimal strings, so that
  values above 2**53 survive JSON parsers that use doubles.

``Address`` and ``Hash32`` are validated value types with explicit
``parse``/``format`` functions. The ``Annotated`` aliases at the bottom of the
module plug the same rules into pydantic models.
"""
import re
from dataclasses import dataclass
from typing import Annotated, Any, ClassVar, Union

from pydantic import BeforeValidator, PlainSerializer
from web3 import Web3

from .exceptions import EncodingError

UINT256_MAX = 2**256 - 1

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")
_HASH_RE = re.compile(r"(0x)?[0-9a-fA-F]{64}")
_DECIMAL_RE = re.compile(r"[0-9]+")
_HEX_DATA_RE = re.compile(r"0x([0-9a-fA-F]{2})*")


@dataclass(frozen=True, order=True)
class Address:
    """
    A 20-byte account address.

    Invariant: ``raw`` is exactly 20 bytes. Ordering compares the raw bytes,
    which is the same as comparing the addresses as unsigned big-endian
    integers.
    """
    raw: bytes

    ZERO: ClassVar["Address"]

    def __post_init__(self):
        if not isinstance(self.raw, bytes) or len(self.raw) != 20:
            raise EncodingError(f"Address must be exactly 20 bytes, got {self.raw!r}")

    @classmethod
    def parse(cls, value: Union[str, bytes, "Address"], strict: bool = True) -> "Address":
        """
        Parse an address from its hex form.

        Args:
            value: ``0x`` + 40 hex digits, 20 raw bytes, or an Address
            strict: When True the string must be exactly its EIP-55 checksum
                form, so a single flipped letter case is rejected. Pass False
                to bypass checksum validation and accept any letter case.

        Returns:
            Address instance

        Raises:
            EncodingError: If the value is not a well-formed address or the
                checksum does not match
        """
        if isinstance(value, Address):
            return value
        if isinstance(value, (bytes, bytearray)):
            if len(value) != 20:
                raise EncodingError(f"Address must be exactly 20 bytes, got {len(value)}")
            return cls(bytes(value))
        if not isinstance(value, str):
            raise EncodingError(f"Address must be a hex string, got {type(value).__name__}")
        if not _ADDRESS_RE.fullmatch(value):
            raise EncodingError(f"Invalid address {value!r}: expected 0x followed by 40 hex digits")
        if strict and Web3.to_checksum_address(value) != value:
            raise EncodingError(f"Invalid address checksum: {value!r}")
        return cls(bytes.fromhex(value[2:]))

    def to_checksum(self) -> str:
        """Render the EIP-55 mixed-case form."""
        return Web3.to_checksum_address("0x" + self.raw.hex())

    def to_int(self) -> int:
        return int.from_bytes(self.raw, "big")

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return self.to_checksum()

    def __repr__(self) -> str:
        return f"Address('{self.to_checksum()}')"


Address.ZERO = Address(b"\x00" * 20)


@dataclass(frozen=True)
class Hash32:
    """
    A 32-byte hash (transaction digest, safeTxHash).

    Invariant: ``raw`` is exactly 32 bytes. Renders as ``0x`` + 64 lowercase
    hex digits.
    """
    raw: bytes

    def __post_init__(self):
        if not isinstance(self.raw, bytes) or len(self.raw) != 32:
            raise EncodingError(f"Hash must be exactly 32 bytes, got {self.raw!r}")

    @classmethod
    def parse(cls, value: Union[str, bytes, "Hash32"]) -> "Hash32":
        """
        Parse a hash from hex (``0x`` prefix optional) or raw bytes.

        Raises:
            EncodingError: On wrong length or non-hex characters
        """
        if isinstance(value, Hash32):
            return value
        if isinstance(value, (bytes, bytearray)):
            if len(value) != 32:
                raise EncodingError(f"Invalid hash length: expected 32 bytes, got {len(value)}")
            return cls(bytes(value))
        if not isinstance(value, str):
            raise EncodingError(f"Hash must be a hex string, got {type(value).__name__}")
        if not _HASH_RE.fullmatch(value):
            raise EncodingError(f"Invalid hash {value!r}: expected 64 hex digits")
        return cls(bytes.fromhex(value[2:] if value.startswith("0x") else value))

    def hex(self) -> str:
        return "0x" + self.raw.hex()

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Hash32('{self.hex()}')"


def format_address(address: Address) -> str:
    return address.to_checksum()


def format_hash(value: Hash32) -> str:
    return value.hex()


def parse_decimal(value: Any) -> int:
    """
    Parse a uint256 from a decimal string.

    JSON integers are accepted as well since the relay reports some
    quantities (nonce, safeTxGas) as numbers.

    Raises:
        EncodingError: If the value is not a decimal integer in [0, 2**256)
    """
    if isinstance(value, bool):
        raise EncodingError(f"Invalid integer: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _DECIMAL_RE.fullmatch(value):
        number = int(value)
    else:
        raise EncodingError(f"Invalid decimal integer: {value!r}")
    if not 0 <= number <= UINT256_MAX:
        raise EncodingError(f"Integer out of uint256 range: {value!r}")
    return number


def format_decimal(value: int) -> str:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= UINT256_MAX:
        raise EncodingError(f"Cannot encode {value!r} as a uint256 decimal string")
    return str(value)


def parse_hex_data(value: Any) -> bytes:
    """
    Parse ``0x``-prefixed call data of any even length.

    Raises:
        EncodingError: On missing prefix, odd length or non-hex characters
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str) or not _HEX_DATA_RE.fullmatch(value):
        raise EncodingError(f"Invalid hex data: {value!r}")
    return bytes.fromhex(value[2:])


def format_hex_data(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def _address_field(value: Any) -> Address:
    return Address.parse(value)


def _hash_field(value: Any) -> Hash32:
    return Hash32.parse(value)


# pydantic field types; the models need arbitrary_types_allowed for Address/Hash32
ChecksumAddress = Annotated[
    Address, BeforeValidator(_address_field), PlainSerializer(format_address, return_type=str)
]
HexHash = Annotated[
    Hash32, BeforeValidator(_hash_field), PlainSerializer(format_hash, return_type=str)
]
DecimalInt = Annotated[
    int, BeforeValidator(parse_decimal), PlainSerializer(format_decimal, return_type=str)
]
HexData = Annotated[
    bytes, BeforeValidator(parse_hex_data), PlainSerializer(format_hex_data, return_type=str)
]
