"""
Extended Keys (xprv/xpub) Implementation for hdsigner
Implements BIP32 Hierarchical Deterministic Wallet key derivation and serialization

Module functions form the derivation engine and the key serializer; the ExtendedPrivateKey and ExtendedPublicKey
classes expose the same operations as methods.
"""
import json
from io import BytesIO

from hdsigner.core import (XKEYS, get_logger, get_stream, read_stream, ExtendedKeyError, InvalidSeedLength,
                           InvalidPrivateKey, InvalidPublicKey, DerivationError, HardenedFromPublicKey,
                           MaxDepthExceeded, InvalidSerialization, DataEncodingError, ReadError)
from hdsigner.cryptography import SECP256K1, hash160, hash256, hmac_sha512
from hdsigner.data import PrivateKey, PubKey, ChainCode, encode_base58, decode_base58
from hdsigner.wallet.child_number import ChildNumber
from hdsigner.wallet.derivation import DerivationPath
from hdsigner.wallet.network import Network, KeyType

__all__ = ["ExtendedKey", "ExtendedPrivateKey", "ExtendedPublicKey", "master_from_seed", "derive_child_private",
           "derive_child_public", "fingerprint", "to_public", "serialize", "deserialize", "derive_path"]

logger = get_logger(__name__)

SEED_KEY = XKEYS.SEED_KEY
MAX_DEPTH = XKEYS.MAX_DEPTH
ZERO_FINGERPRINT = b'\x00' * XKEYS.FINGERPRINT_LENGTH


def _as_child_number(child: ChildNumber | int) -> ChildNumber:
    """Integers are read as wire values, so 0x80000000 and above are hardened"""
    if isinstance(child, ChildNumber):
        return child
    return ChildNumber.from_index(child)


class ExtendedKey:
    """
    Base class for extended keys (xprv/xpub). Holds the key material together with its chain code and position in
    the tree.
    """
    __slots__ = ('key', 'chain_code', 'depth', 'parent_fingerprint', 'child_number', 'network')
    KEY_TYPE: KeyType = None

    def __init__(self,
                 key,
                 chain_code: ChainCode | bytes,
                 depth: int = 0,
                 parent_fingerprint: bytes = ZERO_FINGERPRINT,
                 child_number: ChildNumber | int = 0,
                 network: Network = Network.BITCOIN_MAINNET):
        """
        Args:
            key: PrivateKey for xprv, PubKey for xpub
            chain_code: Chain code for key derivation (32 bytes)
            depth: Depth in the derivation tree
            parent_fingerprint: Fingerprint of parent key (4 bytes)
            child_number: Child number of this key
            network: Network tag selecting the version bytes
        """
        # --- Validation --- #
        if len(parent_fingerprint) != XKEYS.FINGERPRINT_LENGTH:
            raise ExtendedKeyError("Parent fingerprint must be 4 bytes")
        if not (0 <= depth <= MAX_DEPTH):
            raise ExtendedKeyError(f"Depth must be in the range [0, {MAX_DEPTH}]")
        child_number = _as_child_number(child_number)
        if depth == 0 and (bytes(parent_fingerprint) != ZERO_FINGERPRINT or child_number.to_index() != 0):
            raise ExtendedKeyError("Master key must have zero parent fingerprint and child number 0")

        self.key = key
        self.chain_code = chain_code if isinstance(chain_code, ChainCode) else ChainCode(chain_code)
        self.depth = depth
        self.parent_fingerprint = bytes(parent_fingerprint)
        self.child_number = child_number
        self.network = network

    # --- OVERRIDES --- #
    def __eq__(self, other) -> bool:
        """
        Two extended keys are equal if and only if their serialized bytes are equal
        """
        if not isinstance(other, ExtendedKey):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __str__(self):
        return serialize(self)

    def __repr__(self):
        return (f"{type(self).__name__}(depth={self.depth}, child_number={self.child_number}, "
                f"parent_fingerprint={self.parent_fingerprint.hex()}, network={self.network.name})")

    # --- PROPERTIES --- #
    @property
    def key_type(self) -> KeyType:
        return self.KEY_TYPE

    @property
    def is_private(self) -> bool:
        return self.KEY_TYPE is KeyType.PRIVATE

    @property
    def is_public(self) -> bool:
        return self.KEY_TYPE is KeyType.PUBLIC

    @property
    def version(self) -> bytes:
        return self.network.version_bytes(self.KEY_TYPE)

    @property
    def is_master(self) -> bool:
        return self.depth == 0

    def public_key(self) -> PubKey:
        raise NotImplementedError

    def key_data(self) -> bytes:
        """The 33 bytes of key material in the serialized payload"""
        raise NotImplementedError

    # --- METHODS --- #
    def identifier(self) -> bytes:
        return hash160(self.public_key().compressed())

    def fingerprint(self) -> bytes:
        return fingerprint(self)

    def payload(self) -> bytes:
        """
        version || depth || parent fingerprint || child number || chain code || key data
        """
        parts = [
            self.version,
            self.depth.to_bytes(1, "big"),
            self.parent_fingerprint,
            self.child_number.to_bytes(),
            self.chain_code.to_bytes(),
            self.key_data()
        ]
        return b''.join(parts)

    def to_bytes(self) -> bytes:
        """Payload followed by its 4-byte checksum"""
        preimage = self.payload()
        return preimage + hash256(preimage)[:XKEYS.CHECKSUM_LENGTH]

    def serialize(self) -> str:
        return serialize(self)

    def derive_child(self, child: ChildNumber | int):
        raise NotImplementedError

    def derive_path(self, path: DerivationPath | str):
        return derive_path(self, path)

    def zeroize(self):
        self.chain_code.zeroize()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.zeroize()
        return False

    # --- DISPLAY --- #
    def to_dict(self):
        return {
            "key_type": self.KEY_TYPE.value,
            "network": self.network.name,
            "depth": self.depth,
            "parent_fingerprint": self.parent_fingerprint.hex(),
            "child_number": str(self.child_number),
            "fingerprint": self.fingerprint().hex(),
            "pubkey": self.public_key().compressed().hex()
        }

    def to_json(self):
        return json.dumps(self.to_dict(), indent=2)


class ExtendedPrivateKey(ExtendedKey):
    __slots__ = ('_pubkey',)
    KEY_TYPE = KeyType.PRIVATE

    def __init__(self, key: PrivateKey | bytes, *args, **kwargs):
        if not isinstance(key, PrivateKey):
            key = PrivateKey(key)
        super().__init__(key, *args, **kwargs)
        self._pubkey = None

    @classmethod
    def from_seed(cls, seed: bytes, network: Network = Network.BITCOIN_MAINNET) -> "ExtendedPrivateKey":
        return master_from_seed(seed, network)

    @classmethod
    def from_string(cls, xkey: str) -> "ExtendedPrivateKey":
        key = deserialize(xkey)
        if not isinstance(key, cls):
            raise InvalidSerialization("Expected an extended private key")
        return key

    @property
    def private_key(self) -> PrivateKey:
        return self.key

    def public_key(self) -> PubKey:
        if self._pubkey is None:
            self._pubkey = self.key.public_key()
        return self._pubkey

    def key_data(self) -> bytes:
        return b'\x00' + self.key.to_bytes()

    def derive_child(self, child: ChildNumber | int) -> "ExtendedPrivateKey":
        return derive_child_private(self, child)

    def to_public(self) -> "ExtendedPublicKey":
        return to_public(self)

    def zeroize(self):
        """Overwrite the private scalar and chain code"""
        self.key.zeroize()
        super().zeroize()
        self._pubkey = None


class ExtendedPublicKey(ExtendedKey):
    __slots__ = ()
    KEY_TYPE = KeyType.PUBLIC

    def __init__(self, key: PubKey | bytes, *args, **kwargs):
        if not isinstance(key, PubKey):
            key = PubKey.from_compressed(key)
        super().__init__(key, *args, **kwargs)

    @classmethod
    def from_string(cls, xkey: str) -> "ExtendedPublicKey":
        key = deserialize(xkey)
        if not isinstance(key, cls):
            raise InvalidSerialization("Expected an extended public key")
        return key

    def public_key(self) -> PubKey:
        return self.key

    def key_data(self) -> bytes:
        return self.key.compressed()

    def derive_child(self, child: ChildNumber | int) -> "ExtendedPublicKey":
        return derive_child_public(self, child)


# --- DERIVATION ENGINE --- #

def master_from_seed(seed: bytes, network: Network = Network.BITCOIN_MAINNET) -> ExtendedPrivateKey:
    """
    Generate the master extended private key from a 16 to 64 byte seed.

    I = HMAC-SHA512(key="Bitcoin seed", data=seed); IL is the master scalar, IR the master chain code.
    """
    if not (XKEYS.MIN_SEED_BYTES <= len(seed) <= XKEYS.MAX_SEED_BYTES):
        raise InvalidSeedLength(len(seed))

    # 1. Run the HMAC-512
    seed_hash = bytearray(hmac_sha512(key=SEED_KEY, message=seed))
    # 2. Split into scalar and chain code
    il, ir = seed_hash[:32], seed_hash[32:]
    try:
        il_int = int.from_bytes(il, "big")
        if il_int == 0 or il_int >= SECP256K1.order:
            raise InvalidPrivateKey("Seed produced an invalid master key")

        # 3. Master metadata is all zero
        master = ExtendedPrivateKey(PrivateKey(il), ChainCode(ir), depth=0, parent_fingerprint=ZERO_FINGERPRINT,
                                    child_number=ChildNumber.normal(0), network=network)
    finally:
        for buffer in (seed_hash, il, ir):
            buffer[:] = bytes(len(buffer))

    logger.debug("Generated master key for %s", network.name)
    return master


def _child_hmac(parent: ExtendedKey, data: bytes, index: int) -> tuple[int, bytearray]:
    """
    Returns (IL as integer, IR) after checking IL against the curve order
    """
    key_hash = bytearray(hmac_sha512(key=parent.chain_code.to_bytes(), message=data))
    il_int = int.from_bytes(key_hash[:32], "big")
    chain = key_hash[32:]
    key_hash[:] = bytes(len(key_hash))
    if il_int >= SECP256K1.order:
        chain[:] = bytes(len(chain))
        raise DerivationError(index, "derived scalar is not less than the curve order")
    return il_int, chain


def derive_child_private(parent: ExtendedPrivateKey, child: ChildNumber | int) -> ExtendedPrivateKey:
    """
    Derive the child private key at the given child number.

    Hardened data is 0x00 || k || ser32(i), normal data is serP(K) || ser32(i). An invalid derived scalar raises
    DerivationError for that index; no other index is ever substituted.
    """
    if not isinstance(parent, ExtendedPrivateKey):
        raise ExtendedKeyError("Private derivation requires an extended private key")
    child = _as_child_number(child)
    index = child.to_index()

    # --- Validate depth --- #
    if parent.depth >= MAX_DEPTH:
        raise MaxDepthExceeded(parent.depth)

    # --- Prepare data for HMAC --- #
    if child.is_hardened:
        data = bytearray(b'\x00' + parent.key.to_bytes() + child.to_bytes())
    else:
        data = bytearray(parent.public_key().compressed() + child.to_bytes())

    # --- HMAC SHA512 --- #
    try:
        il_int, child_chain = _child_hmac(parent, data, index)
    finally:
        data[:] = bytes(len(data))

    # --- Child scalar --- #
    child_int = (il_int + parent.key.to_int()) % SECP256K1.order
    if child_int == 0:
        child_chain[:] = bytes(len(child_chain))
        raise DerivationError(index, "derived private key is zero")

    try:
        child_key = ExtendedPrivateKey(
            PrivateKey.from_int(child_int),
            ChainCode(child_chain),
            depth=parent.depth + 1,
            parent_fingerprint=fingerprint(parent),
            child_number=child,
            network=parent.network
        )
    finally:
        child_chain[:] = bytes(len(child_chain))

    logger.debug("Derived private child %s at depth %d", child, parent.depth + 1)
    return child_key


def derive_child_public(parent: ExtendedPublicKey, child: ChildNumber | int) -> ExtendedPublicKey:
    """
    Derive the child public key at the given normal child number. The child point is IL*G + K.
    """
    child = _as_child_number(child)
    index = child.to_index()
    if child.is_hardened:
        raise HardenedFromPublicKey(index)
    if parent.depth >= MAX_DEPTH:
        raise MaxDepthExceeded(parent.depth)

    data = parent.public_key().compressed() + child.to_bytes()
    il_int, child_chain = _child_hmac(parent, data, index)

    try:
        child_pubkey = parent.public_key().tweak_add(il_int)
    except InvalidPublicKey as e:
        raise DerivationError(index, "derived public key is the point at infinity") from e

    child_key = ExtendedPublicKey(
        child_pubkey,
        ChainCode(child_chain),
        depth=parent.depth + 1,
        parent_fingerprint=fingerprint(parent),
        child_number=child,
        network=parent.network
    )
    logger.debug("Derived public child %s at depth %d", child, parent.depth + 1)
    return child_key


def fingerprint(key: ExtendedKey) -> bytes:
    """
    First 4 bytes of HASH160 of the compressed public key
    """
    return key.identifier()[:XKEYS.FINGERPRINT_LENGTH]


def to_public(key: ExtendedPrivateKey) -> ExtendedPublicKey:
    """
    Returns the extended public key with the same metadata. The private source is left untouched.
    """
    if isinstance(key, ExtendedPublicKey):
        return key
    return ExtendedPublicKey(
        key.public_key(),
        key.chain_code.copy(),
        depth=key.depth,
        parent_fingerprint=key.parent_fingerprint,
        child_number=key.child_number,
        network=key.network
    )


def derive_path(key: ExtendedKey, path: DerivationPath | str) -> ExtendedKey:
    """
    Walk the given path from the key. The path is taken relative to the key, so "m" returns the key itself.
    """
    if isinstance(path, str):
        path = DerivationPath.parse(path)
    current = key
    for child in path:
        current = current.derive_child(child)
    return current


# --- SERIALIZATION --- #

def serialize(key: ExtendedKey) -> str:
    """
    Base58Check encoding of the 78-byte BIP32 payload
    """
    return encode_base58(key.to_bytes())


def _parse_serial(stream: BytesIO) -> ExtendedKey:
    # Get parts
    version = read_stream(stream, 4, "version")
    depth = read_stream(stream, 1, "depth")[0]
    parent_fp = read_stream(stream, XKEYS.FINGERPRINT_LENGTH, "parent_fingerprint")
    child_index = int.from_bytes(read_stream(stream, 4, "child_number"), "big")
    chain_code = read_stream(stream, XKEYS.CHAIN_LENGTH, "chain_code")
    key_data = read_stream(stream, 33, "key_data")

    # Verify version and depth zero metadata
    network, key_type = Network.from_version(version)
    if depth == 0 and (parent_fp != ZERO_FINGERPRINT or child_index != 0):
        raise InvalidSerialization("Zero depth key with non-zero parent fingerprint or child number")
    child = ChildNumber.from_index(child_index)

    if key_type is KeyType.PRIVATE:
        if key_data[0] != 0x00:
            raise InvalidSerialization("Private key data must be prefixed with 0x00")
        try:
            key = PrivateKey(key_data[1:])
        except InvalidPrivateKey as e:
            raise InvalidSerialization("Private key not in the range [1, n-1]") from e
        return ExtendedPrivateKey(key, chain_code, depth, parent_fp, child, network)

    if key_data[0] not in (0x02, 0x03):
        raise InvalidSerialization("Public key data must start with 0x02 or 0x03")
    try:
        pubkey = PubKey.from_compressed(key_data)
    except InvalidPublicKey as e:
        raise InvalidSerialization("Public key is not a valid curve point") from e
    return ExtendedPublicKey(pubkey, chain_code, depth, parent_fp, child, network)


def deserialize(xkey: str) -> ExtendedPrivateKey | ExtendedPublicKey:
    """
    Decode a Base58Check extended key. Returns an ExtendedPrivateKey or ExtendedPublicKey according to the version
    bytes; any malformed input raises InvalidSerialization.
    """
    try:
        data = decode_base58(xkey)
    except DataEncodingError as e:
        raise InvalidSerialization("Invalid base58 string") from e
    if len(data) != XKEYS.SERIALIZED_LENGTH:
        raise InvalidSerialization(f"Decoded extended key must be {XKEYS.SERIALIZED_LENGTH} bytes, got {len(data)}")

    # Verify checksum
    preimage, checksum = data[:XKEYS.PAYLOAD_LENGTH], data[XKEYS.PAYLOAD_LENGTH:]
    if hash256(preimage)[:XKEYS.CHECKSUM_LENGTH] != checksum:
        raise InvalidSerialization("Checksum doesn't match serial value")

    try:
        return _parse_serial(get_stream(preimage))
    except ReadError as e:
        raise InvalidSerialization("Truncated extended key payload") from e
    except InvalidSerialization:
        raise
    except ExtendedKeyError as e:
        raise InvalidSerialization(str(e)) from e
