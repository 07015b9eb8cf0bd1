"""
The Bip44Signer: signs 32-byte digests and EIP-1559 transactions with the key at an account's external address.
"""
from hdsigner.core.exceptions import InvalidDigest, InvalidSignature, SigningError, InvalidPrivateKey
from hdsigner.core.formats import EVM
from hdsigner.core.logging import get_logger
from hdsigner.cryptography.ecdsa import ecdsa_recoverable
from hdsigner.data.keys import PrivateKey
from hdsigner.signing.address import Address
from hdsigner.signing.signature import Signature
from hdsigner.signing.signed_transaction import SignedTransaction
from hdsigner.signing.transaction import Eip1559Transaction

__all__ = ["Bip44Signer", "recover_signer", "verify_hash"]

logger = get_logger(__name__)


def _check_digest(digest: bytes) -> bytes:
    if not isinstance(digest, (bytes, bytearray)) or len(digest) != EVM.HASH_BYTES:
        raise InvalidDigest(len(digest) if isinstance(digest, (bytes, bytearray)) else -1)
    return bytes(digest)


class Bip44Signer:
    """
    Holds its own copy of the private key. The account's key material is not referenced after construction.

    Usage:
        signer = Bip44Signer(wallet.get_account(Purpose.BIP44, CoinType.ETHEREUM, 0), 0)
        signed = signer.sign_and_build(tx)
    """
    __slots__ = ("_private_key", "_address")

    def __init__(self, account, address_index: int = 0):
        """
        account is any object exposing derive_external(index) -> ExtendedPrivateKey, normally a wallet Account
        """
        extended_key = account.derive_external(address_index)
        try:
            self._private_key = extended_key.private_key.copy()
        finally:
            extended_key.zeroize()
        self._address = Address.from_public_key(self._private_key.public_key())
        logger.debug("Signer ready for address %s", self._address)

    @classmethod
    def from_private_key(cls, private_key: bytes | PrivateKey) -> "Bip44Signer":
        try:
            key = private_key.copy() if isinstance(private_key, PrivateKey) else PrivateKey(private_key)
        except InvalidPrivateKey as e:
            raise SigningError(f"Invalid private key: {e}") from e
        signer = cls.__new__(cls)
        signer._private_key = key
        signer._address = Address.from_public_key(key.public_key())
        return signer

    def __repr__(self):
        return f"Bip44Signer(address={self._address})"

    # --- SIGNING --- #
    def address(self) -> Address:
        return self._address

    def public_key(self):
        return self._private_key.public_key()

    def sign_hash(self, digest: bytes) -> Signature:
        """
        Sign a 32-byte digest. The result is deterministic (RFC 6979), low-s, with v in {0, 1}.
        """
        digest = _check_digest(digest)
        r, s, recovery_id = ecdsa_recoverable(self._private_key.to_int(), digest)
        return Signature(r, s, recovery_id)

    def sign_transaction(self, tx: Eip1559Transaction) -> Signature:
        return self.sign_hash(tx.signing_hash())

    def sign_and_build(self, tx: Eip1559Transaction) -> SignedTransaction:
        signed = SignedTransaction(tx, self.sign_transaction(tx))
        logger.info("Signed transaction %s on chain %d", signed.tx_hash_hex(), tx.chain_id.value)
        return signed

    # --- ZEROIZE --- #
    def zeroize(self):
        self._private_key.zeroize()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.zeroize()
        return False


def recover_signer(digest: bytes, signature: Signature) -> Address:
    """
    The address whose key produced the signature over the digest
    """
    return signature.recover_address(_check_digest(digest))


def verify_hash(digest: bytes, signature: Signature, expected: Address) -> bool:
    """
    True when the signature over digest recovers to expected. Malformed signatures give False.
    """
    try:
        return recover_signer(digest, signature) == expected
    except InvalidSignature:
        return False
