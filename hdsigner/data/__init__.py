"""
All methods for encoding and representing key data in hdsigner
"""

# data/__init__.py
from hdsigner.data import encoding, keys

__all__ = encoding.__all__ + keys.__all__

from hdsigner.data.encoding import *
from hdsigner.data.keys import *
