"""
Cryptographic primitives: the secp256k1 curve, ECDSA and hash functions
"""
# cryptography/__init__.py
from hdsigner.cryptography import ecc, ecc_math, ecdsa, hash_functions

# Built before the star imports: ecdsa.ecdsa rebinds the name
__all__ = ecc.__all__ + ecc_math.__all__ + ecdsa.__all__ + hash_functions.__all__

from hdsigner.cryptography.ecc import *
from hdsigner.cryptography.ecc_math import *
from hdsigner.cryptography.ecdsa import *
from hdsigner.cryptography.hash_functions import *
