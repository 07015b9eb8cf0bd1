"""
All classes and methods which have to do with the HD wallet: BIP32 keys and paths, the BIP44 account model and
account discovery
"""
# wallet/__init__.py
from hdsigner.wallet import network, child_number, derivation, xkeys, types, path, account, discovery, wallet

__all__ = (network.__all__ + child_number.__all__ + derivation.__all__ + xkeys.__all__ + types.__all__ + path.__all__
           + account.__all__ + discovery.__all__ + wallet.__all__)

from hdsigner.wallet.network import *
from hdsigner.wallet.child_number import *
from hdsigner.wallet.derivation import *
from hdsigner.wallet.xkeys import *
from hdsigner.wallet.types import *
from hdsigner.wallet.path import *
from hdsigner.wallet.account import *
from hdsigner.wallet.discovery import *
from hdsigner.wallet.wallet import *
