"""
A signed EIP-1559 transaction, ready for broadcast.

Encoding: 0x02 || rlp([chain_id, nonce, max_priority_fee_per_gas, max_fee_per_gas, gas_limit, to, value, data,
access_list, y_parity, r, s]) with r and s as minimal big-endian integers.
"""
from dataclasses import dataclass

from hdsigner.core.exceptions import RLPError, DataEncodingError
from hdsigner.core.formats import EVM
from hdsigner.cryptography.hash_functions import keccak256
from hdsigner.data.encoding import hex_to_bytes, bytes_to_hex
from hdsigner.signing import rlp
from hdsigner.signing.address import Address
from hdsigner.signing.signature import Signature
from hdsigner.signing.transaction import Eip1559Transaction

__all__ = ["SignedTransaction"]


@dataclass(frozen=True)
class SignedTransaction:
    transaction: Eip1559Transaction
    signature: Signature

    def encode(self) -> bytes:
        fields = self.transaction.rlp_fields() + [self.signature.v, self.signature.r_int, self.signature.s_int]
        return bytes([EVM.TX_TYPE_EIP1559]) + rlp.encode(fields)

    def to_raw_transaction(self) -> str:
        """The 0x-prefixed hex string accepted by eth_sendRawTransaction"""
        return bytes_to_hex(self.encode())

    def tx_hash(self) -> bytes:
        return keccak256(self.encode())

    def tx_hash_hex(self) -> str:
        return bytes_to_hex(self.tx_hash())

    @classmethod
    def from_raw(cls, raw: bytes | str) -> "SignedTransaction":
        """
        Decode a signed type-2 transaction from raw bytes or its hex string
        """
        if isinstance(raw, str):
            try:
                raw = hex_to_bytes(raw)
            except DataEncodingError as e:
                raise RLPError("Raw transaction is not valid hex") from e
        if not raw or raw[0] != EVM.TX_TYPE_EIP1559:
            raise RLPError("Not an EIP-1559 (type 0x02) transaction")

        fields = rlp.decode(raw[1:])
        if not isinstance(fields, list) or len(fields) != 12:
            raise RLPError("Signed EIP-1559 transaction must be a list of 12 fields")
        transaction = Eip1559Transaction.from_rlp_fields(fields[:9])

        v = rlp.decode_int(fields[9], 1)
        r = rlp.decode_int(fields[10])
        s = rlp.decode_int(fields[11])
        return cls(transaction, Signature(r, s, v))

    def recover_sender(self) -> Address:
        return self.signature.recover_address(self.transaction.signing_hash())

    def to_dict(self):
        return {
            "transaction": self.transaction.to_dict(),
            "signature": self.signature.to_dict(),
            "tx_hash": self.tx_hash_hex()
        }
