"""
EVM signing: addresses, RLP, EIP-1559 transactions, recoverable signatures, the BIP44 signer, EIP-712 typed data and
ERC-4337 user operations
"""
# signing/__init__.py
from hdsigner.signing import (rlp, address, chain_id, wei, signature, transaction, signed_transaction, signer, eip712,
                              erc4337)

# rlp is exported as a module; its encode/decode names are too generic for the package namespace
__all__ = (["rlp"] + address.__all__ + chain_id.__all__ + wei.__all__ + signature.__all__ + transaction.__all__
           + signed_transaction.__all__ + signer.__all__ + eip712.__all__ + erc4337.__all__)

from hdsigner.signing.address import *
from hdsigner.signing.chain_id import *
from hdsigner.signing.wei import *
from hdsigner.signing.signature import *
from hdsigner.signing.transaction import *
from hdsigner.signing.signed_transaction import *
from hdsigner.signing.signer import *
from hdsigner.signing.eip712 import *
from hdsigner.signing.erc4337 import *
