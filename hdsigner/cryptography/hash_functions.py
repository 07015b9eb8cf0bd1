"""
Shortcuts for the hash functions used by the wallet and signer. Each function returns the bytes digest
"""
import hashlib
import hmac

from Cryptodome.Hash import keccak
from ripemd.ripemd160 import ripemd160 as _ripemd160

__all__ = ["sha256", "sha512", "ripemd160", "hash256", "hash160", "hmac_sha256", "hmac_sha512", "keccak256"]


# --- SHA --- #
def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def sha512(data: bytes) -> bytes:
    return hashlib.sha512(data).digest()


# --- RIPEMD --- #

def ripemd160(data: bytes) -> bytes:
    return _ripemd160(bytes(data))


# --- BTC HASH FUNCTIONS --- #

def hash256(data: bytes) -> bytes:
    """SHA256(SHA256(data))"""
    return sha256(sha256(data))


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    return ripemd160(sha256(data))


# --- MAC --- #
def hmac_sha256(key: bytes, message: bytes) -> bytes:
    return hmac.new(key=bytes(key), msg=bytes(message), digestmod=hashlib.sha256).digest()


def hmac_sha512(key: bytes, message: bytes) -> bytes:
    return hmac.new(key=bytes(key), msg=bytes(message), digestmod=hashlib.sha512).digest()


# --- ETHEREUM --- #

def keccak256(data: bytes) -> bytes:
    """Original Keccak-256 (pre-NIST padding) as used by Ethereum"""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()
