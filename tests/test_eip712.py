"""
Tests for EIP-712 typed data hashing using the Mail example from the EIP
"""
from dataclasses import dataclass

import pytest

from hdsigner.core import ValidationError
from hdsigner.cryptography import keccak256
from hdsigner.signing import (Address, Bip44Signer, Eip712Type, Eip712Domain, encode_address, encode_string,
                              encode_uint256, encode_bytes32, encode_bool, hash_typed_data, sign_typed_data,
                              verify_typed_data)

COW_KEY = keccak256(b"cow")
COW_ADDRESS = "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"
BOB_ADDRESS = "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"
VERIFYING_CONTRACT = "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC"

EXPECTED_DOMAIN_SEPARATOR = "f2cee375fa42b42143804025fc449deafd50cc031ca257e0b194a650a912090f"
EXPECTED_MAIL_HASH = "c52c0ee5d84264471806290a3f2c4cecfc5490626bf912d01f240d7a274b371e"
EXPECTED_DIGEST = "be609aee343fb3c4b28e1df9e632fca64fcfaede20f02e86244efddf30957bd2"
EXPECTED_R = "4355c47d63924e8a72e509b65029052eb6c299d53a04e167c5775fd466751c9d"
EXPECTED_S = "07299936d304c153f6443dfa05f40ff007d72911b6f72307f996231605b91562"


@dataclass(frozen=True)
class Person(Eip712Type):
    name: str
    wallet: Address

    TYPE_STRING = "Person(string name,address wallet)"

    def encode_data(self) -> bytes:
        return encode_string(self.name) + encode_address(self.wallet)


@dataclass(frozen=True)
class Mail(Eip712Type):
    sender: Person
    recipient: Person
    contents: str

    TYPE_STRING = "Mail(Person from,Person to,string contents)" + Person.TYPE_STRING

    def encode_data(self) -> bytes:
        return self.sender.hash_struct() + self.recipient.hash_struct() + encode_string(self.contents)


@pytest.fixture()
def mail_domain():
    return (Eip712Domain.builder()
            .name("Ether Mail")
            .version("1")
            .chain_id(1)
            .verifying_contract(VERIFYING_CONTRACT)
            .build())


@pytest.fixture()
def mail():
    return Mail(
        sender=Person("Cow", Address.from_hex(COW_ADDRESS)),
        recipient=Person("Bob", Address.from_hex(BOB_ADDRESS)),
        contents="Hello, Bob!"
    )


def test_domain_separator(mail_domain):
    assert mail_domain.type_string() == \
           "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
    assert mail_domain.domain_separator().hex() == EXPECTED_DOMAIN_SEPARATOR, "Domain separator mismatch"


def test_mail_digest(mail_domain, mail):
    assert mail.hash_struct().hex() == EXPECTED_MAIL_HASH, "Mail struct hash mismatch"
    assert hash_typed_data(mail_domain, mail).hex() == EXPECTED_DIGEST, "Typed data digest mismatch"


def test_mail_signature(mail_domain, mail):
    """
    Deterministic signing with the key keccak256("cow") reproduces the published signature
    """
    signer = Bip44Signer.from_private_key(COW_KEY)
    assert str(signer.address()) == COW_ADDRESS

    signature = sign_typed_data(signer, mail_domain, mail)
    assert signature.r.hex() == EXPECTED_R
    assert signature.s.hex() == EXPECTED_S
    assert signature.v == 1
    assert verify_typed_data(mail_domain, mail, signature, signer.address())
    assert not verify_typed_data(mail_domain, mail, signature, Address.from_hex(BOB_ADDRESS))


def test_domain_fields_are_optional():
    domain = Eip712Domain(name="Only Name")
    assert domain.type_string() == "EIP712Domain(string name)"
    assert domain.domain_separator() == keccak256(domain.type_hash() + encode_string("Only Name"))

    salted = Eip712Domain.builder().chain_id(56).salt(b"\x01" * 32).build()
    assert salted.type_string() == "EIP712Domain(uint256 chainId,bytes32 salt)"


def test_domain_validation():
    with pytest.raises(ValidationError):
        Eip712Domain()
    with pytest.raises(ValidationError):
        Eip712Domain(name="x", salt=b"\x01" * 31)


def test_word_encoders():
    assert encode_uint256(1) == bytes(31) + b"\x01"
    assert encode_bool(True) == encode_uint256(1) and encode_bool(False) == bytes(32)
    assert encode_address(Address.from_hex(BOB_ADDRESS))[:12] == bytes(12)
    with pytest.raises(ValidationError):
        encode_uint256(2 ** 256)
    with pytest.raises(ValidationError):
        encode_bytes32(b"\x00" * 16)
