"""
The BIP44 path level types: Purpose, CoinType and Chain
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

from hdsigner.core.exceptions import InvalidPurpose, InvalidChain, InvalidAccount
from hdsigner.core.formats import XKEYS

__all__ = ["Purpose", "CoinType", "Chain"]


class Purpose(IntEnum):
    """
    The first level of a BIP44-style path. The purpose selects the address scheme.
    """
    BIP44 = (44, "BIP-44", "Legacy P2PKH")
    BIP49 = (49, "BIP-49", "SegWit (P2SH-wrapped)")
    BIP84 = (84, "BIP-84", "Native SegWit")
    BIP86 = (86, "BIP-86", "Taproot")

    def __new__(cls, value: int, label: str, description: str):
        obj = int.__new__(cls, value)
        obj._value_ = value
        obj.label = label
        obj.description = description
        return obj

    @classmethod
    def from_value(cls, value: int) -> "Purpose":
        try:
            return cls(value)
        except ValueError:
            raise InvalidPurpose(value) from None

    def __str__(self):
        return self.label


class Chain(IntEnum):
    """
    The fourth level of the path. External addresses receive funds, internal addresses take change.
    """
    EXTERNAL = 0
    INTERNAL = 1

    @classmethod
    def from_value(cls, value: int) -> "Chain":
        try:
            return cls(value)
        except ValueError:
            raise InvalidChain(value) from None

    @property
    def is_external(self) -> bool:
        return self is Chain.EXTERNAL

    @property
    def is_internal(self) -> bool:
        return self is Chain.INTERNAL

    @property
    def label(self) -> str:
        return self.name.lower()

    def __str__(self):
        return self.label


# SLIP-44 index: (symbol, name)
_REGISTRY: dict[int, tuple[str, str]] = {
    0: ("BTC", "Bitcoin"),
    1: ("tBTC", "Bitcoin Testnet"),
    2: ("LTC", "Litecoin"),
    3: ("DOGE", "Dogecoin"),
    5: ("DASH", "Dash"),
    60: ("ETH", "Ethereum"),
    61: ("ETC", "Ethereum Classic"),
    118: ("ATOM", "Cosmos"),
    145: ("BCH", "Bitcoin Cash"),
    195: ("TRX", "Tron"),
    354: ("DOT", "Polkadot"),
    501: ("SOL", "Solana"),
    714: ("BNB", "Binance Coin"),
    1815: ("ADA", "Cardano"),
}

# Coins deriving addresses as keccak256(pubkey)[12:]
_EVM_COMPATIBLE = frozenset({60, 61, 195, 714})

# Coins whose wallets default to native SegWit
_SEGWIT_DEFAULT = frozenset({0, 1, 2})


@dataclass(frozen=True)
class CoinType:
    """
    A SLIP-44 coin type. Registered coins are available as class attributes; any other index is a custom coin.
    """
    index: int

    BITCOIN: ClassVar["CoinType"]
    BITCOIN_TESTNET: ClassVar["CoinType"]
    LITECOIN: ClassVar["CoinType"]
    DOGECOIN: ClassVar["CoinType"]
    DASH: ClassVar["CoinType"]
    ETHEREUM: ClassVar["CoinType"]
    ETHEREUM_CLASSIC: ClassVar["CoinType"]
    COSMOS: ClassVar["CoinType"]
    BITCOIN_CASH: ClassVar["CoinType"]
    TRON: ClassVar["CoinType"]
    POLKADOT: ClassVar["CoinType"]
    SOLANA: ClassVar["CoinType"]
    BINANCE_COIN: ClassVar["CoinType"]
    CARDANO: ClassVar["CoinType"]

    def __post_init__(self):
        if not isinstance(self.index, int) or not (0 <= self.index <= XKEYS.MAX_NORMAL_INDEX):
            raise InvalidAccount(f"Coin type {self.index} must be in the range [0, 2^31 - 1]")

    @classmethod
    def custom(cls, index: int) -> "CoinType":
        return cls(index)

    @classmethod
    def from_index(cls, index: int) -> "CoinType":
        return cls(index)

    @property
    def is_custom(self) -> bool:
        return self.index not in _REGISTRY

    @property
    def symbol(self) -> str:
        return _REGISTRY.get(self.index, ("CUSTOM", "Custom"))[0]

    @property
    def name(self) -> str:
        return _REGISTRY.get(self.index, ("CUSTOM", "Custom"))[1]

    @property
    def is_testnet(self) -> bool:
        return self.index == 1

    @property
    def is_evm_compatible(self) -> bool:
        return self.index in _EVM_COMPATIBLE

    @property
    def default_purpose(self) -> Purpose:
        return Purpose.BIP84 if self.index in _SEGWIT_DEFAULT else Purpose.BIP44

    def __int__(self):
        return self.index

    def __str__(self):
        return f"{self.name} ({self.index})"


CoinType.BITCOIN = CoinType(0)
CoinType.BITCOIN_TESTNET = CoinType(1)
CoinType.LITECOIN = CoinType(2)
CoinType.DOGECOIN = CoinType(3)
CoinType.DASH = CoinType(5)
CoinType.ETHEREUM = CoinType(60)
CoinType.ETHEREUM_CLASSIC = CoinType(61)
CoinType.COSMOS = CoinType(118)
CoinType.BITCOIN_CASH = CoinType(145)
CoinType.TRON = CoinType(195)
CoinType.POLKADOT = CoinType(354)
CoinType.SOLANA = CoinType(501)
CoinType.BINANCE_COIN = CoinType(714)
CoinType.CARDANO = CoinType(1815)
