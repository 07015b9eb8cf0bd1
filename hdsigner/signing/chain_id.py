"""
EVM chain identifiers (EIP-155)
"""
from dataclasses import dataclass
from typing import ClassVar

from hdsigner.core.exceptions import InvalidChainId
from hdsigner.core.formats import EVM

__all__ = ["ChainId"]

_KNOWN_CHAINS = {
    EVM.BSC_MAINNET: ("BSC Mainnet", False),
    EVM.BSC_TESTNET: ("BSC Testnet", True),
}


@dataclass(frozen=True)
class ChainId:
    value: int

    BSC_MAINNET: ClassVar["ChainId"]
    BSC_TESTNET: ClassVar["ChainId"]

    def __post_init__(self):
        if not isinstance(self.value, int) or not (0 < self.value <= EVM.MAX_UINT64):
            raise InvalidChainId(self.value)

    @classmethod
    def custom(cls, value: int) -> "ChainId":
        return cls(value)

    @classmethod
    def of(cls, chain_id: "ChainId | int") -> "ChainId":
        return chain_id if isinstance(chain_id, ChainId) else cls(chain_id)

    @property
    def name(self) -> str:
        return _KNOWN_CHAINS.get(self.value, ("Custom", False))[0]

    @property
    def is_testnet(self) -> bool:
        return _KNOWN_CHAINS.get(self.value, ("Custom", False))[1]

    @property
    def is_custom(self) -> bool:
        return self.value not in _KNOWN_CHAINS

    def __int__(self):
        return self.value

    def __str__(self):
        if self.is_custom:
            return f"Chain {self.value}"
        return f"{self.name} ({self.value})"


ChainId.BSC_MAINNET = ChainId(EVM.BSC_MAINNET)
ChainId.BSC_TESTNET = ChainId(EVM.BSC_TESTNET)
