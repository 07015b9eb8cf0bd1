"""
Contains the core elements that are used within hdsigner

Core:
    -Provides the reference formats and constants for hdsigner elements
    -Provides custom exceptions for the wallet and signing elements
    -Provides stream helpers and the shared logger factory
"""
# core/__init__.py
from hdsigner.core import byte_stream, exceptions, formats, logging

__all__ = byte_stream.__all__ + exceptions.__all__ + formats.__all__ + logging.__all__

from hdsigner.core.byte_stream import *
from hdsigner.core.exceptions import *
from hdsigner.core.formats import *
from hdsigner.core.logging import *
