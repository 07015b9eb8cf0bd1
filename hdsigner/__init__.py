"""
hdsigner: BIP32/BIP44 hierarchical deterministic keys and EVM transaction signing

Packages:
    -core: constants, exceptions, logging and stream helpers
    -cryptography: secp256k1 arithmetic, deterministic ECDSA and hash functions
    -data: base58 and hex encoding, fixed-width key types
    -wallet: extended keys, derivation paths, BIP44 accounts and discovery
    -signing: EVM addresses, EIP-1559, EIP-712 and ERC-4337 signing
"""
# hdsigner/__init__.py
__version__ = "0.1.0"

from hdsigner import core, wallet, signing

__all__ = core.__all__ + wallet.__all__ + signing.__all__

from hdsigner.core import *
from hdsigner.wallet import *
from hdsigner.signing import *
