"""
Tests for extended keys: the BIP32 test vectors, invalid serializations and derivation properties
"""
from secrets import token_bytes, randbelow

import pytest

from hdsigner.core import (XKEYS, InvalidSeedLength, InvalidSerialization, HardenedFromPublicKey, MaxDepthExceeded,
                           ExtendedKeyError)
from hdsigner.wallet import (ExtendedKey, ExtendedPrivateKey, ExtendedPublicKey, ChildNumber, Network,
                             master_from_seed, deserialize, derive_child_private, to_public)
from tests.utility import random_seed

# (seed, [(path, xprv, xpub), ...]) for BIP32 test vectors 1 through 4
BIP32_VECTORS = [
    ("000102030405060708090a0b0c0d0e0f", [
        ("m",
         "xprv9s21ZrQH143K3QTDL4LXw2F7HEK3wJUD2nW2nRk4stbPy6cq3jPPqjiChkVvvNKmPGJxWUtg6LnF5kejMRNNU3TGtRBeJgk33yuGBxrMPHi",
         "xpub661MyMwAqRbcFtXgS5sYJABqqG9YLmC4Q1Rdap9gSE8NqtwybGhePY2gZ29ESFjqJoCu1Rupje8YtGqsefD265TMg7usUDFdp6W1EGMcet8"),
        ("m/0H",
         "xprv9uHRZZhk6KAJC1avXpDAp4MDc3sQKNxDiPvvkX8Br5ngLNv1TxvUxt4cV1rGL5hj6KCesnDYUhd7oWgT11eZG7XnxHrnYeSvkzY7d2bhkJ7",
         "xpub68Gmy5EdvgibQVfPdqkBBCHxA5htiqg55crXYuXoQRKfDBFA1WEjWgP6LHhwBZeNK1VTsfTFUHCdrfp1bgwQ9xv5ski8PX9rL2dZXvgGDnw"),
        ("m/0H/1",
         "xprv9wTYmMFdV23N2TdNG573QoEsfRrWKQgWeibmLntzniatZvR9BmLnvSxqu53Kw1UmYPxLgboyZQaXwTCg8MSY3H2EU4pWcQDnRnrVA1xe8fs",
         "xpub6ASuArnXKPbfEwhqN6e3mwBcDTgzisQN1wXN9BJcM47sSikHjJf3UFHKkNAWbWMiGj7Wf5uMash7SyYq527Hqck2AxYysAA7xmALppuCkwQ"),
        ("m/0H/1/2H",
         "xprv9z4pot5VBttmtdRTWfWQmoH1taj2axGVzFqSb8C9xaxKymcFzXBDptWmT7FwuEzG3ryjH4ktypQSAewRiNMjANTtpgP4mLTj34bhnZX7UiM",
         "xpub6D4BDPcP2GT577Vvch3R8wDkScZWzQzMMUm3PWbmWvVJrZwQY4VUNgqFJPMM3No2dFDFGTsxxpG5uJh7n7epu4trkrX7x7DogT5Uv6fcLW5"),
        ("m/0H/1/2H/2",
         "xprvA2JDeKCSNNZky6uBCviVfJSKyQ1mDYahRjijr5idH2WwLsEd4Hsb2Tyh8RfQMuPh7f7RtyzTtdrbdqqsunu5Mm3wDvUAKRHSC34sJ7in334",
         "xpub6FHa3pjLCk84BayeJxFW2SP4XRrFd1JYnxeLeU8EqN3vDfZmbqBqaGJAyiLjTAwm6ZLRQUMv1ZACTj37sR62cfN7fe5JnJ7dh8zL4fiyLHV"),
        ("m/0H/1/2H/2/1000000000",
         "xprvA41z7zogVVwxVSgdKUHDy1SKmdb533PjDz7J6N6mV6uS3ze1ai8FHa8kmHScGpWmj4WggLyQjgPie1rFSruoUihUZREPSL39UNdE3BBDu76",
         "xpub6H1LXWLaKsWFhvm6RVpEL9P4KfRZSW7abD2ttkWP3SSQvnyA8FSVqNTEcYFgJS2UaFcxupHiYkro49S8yGasTvXEYBVPamhGW6cFJodrTHy"),
    ]),
    ("fffcf9f6f3f0edeae7e4e1dedbd8d5d2cfccc9c6c3c0bdbab7b4b1aeaba8a5a29f9c999693908d8a8784817e7b7875726f6c696663605d5a5754514e4b484542", [
        ("m",
         "xprv9s21ZrQH143K31xYSDQpPDxsXRTUcvj2iNHm5NUtrGiGG5e2DtALGdso3pGz6ssrdK4PFmM8NSpSBHNqPqm55Qn3LqFtT2emdEXVYsCzC2U",
         "xpub661MyMwAqRbcFW31YEwpkMuc5THy2PSt5bDMsktWQcFF8syAmRUapSCGu8ED9W6oDMSgv6Zz8idoc4a6mr8BDzTJY47LJhkJ8UB7WEGuduB"),
        ("m/0",
         "xprv9vHkqa6EV4sPZHYqZznhT2NPtPCjKuDKGY38FBWLvgaDx45zo9WQRUT3dKYnjwih2yJD9mkrocEZXo1ex8G81dwSM1fwqWpWkeS3v86pgKt",
         "xpub69H7F5d8KSRgmmdJg2KhpAK8SR3DjMwAdkxj3ZuxV27CprR9LgpeyGmXUbC6wb7ERfvrnKZjXoUmmDznezpbZb7ap6r1D3tgFxHmwMkQTPH"),
        ("m/0/2147483647H",
         "xprv9wSp6B7kry3Vj9m1zSnLvN3xH8RdsPP1Mh7fAaR7aRLcQMKTR2vidYEeEg2mUCTAwCd6vnxVrcjfy2kRgVsFawNzmjuHc2YmYRmagcEPdU9",
         "xpub6ASAVgeehLbnwdqV6UKMHVzgqAG8Gr6riv3Fxxpj8ksbH9ebxaEyBLZ85ySDhKiLDBrQSARLq1uNRts8RuJiHjaDMBU4Zn9h8LZNnBC5y4a"),
        ("m/0/2147483647H/1",
         "xprv9zFnWC6h2cLgpmSA46vutJzBcfJ8yaJGg8cX1e5StJh45BBciYTRXSd25UEPVuesF9yog62tGAQtHjXajPPdbRCHuWS6T8XA2ECKADdw4Ef",
         "xpub6DF8uhdarytz3FWdA8TvFSvvAh8dP3283MY7p2V4SeE2wyWmG5mg5EwVvmdMVCQcoNJxGoWaU9DCWh89LojfZ537wTfunKau47EL2dhHKon"),
        ("m/0/2147483647H/1/2147483646H",
         "xprvA1RpRA33e1JQ7ifknakTFpgNXPmW2YvmhqLQYMmrj4xJXXWYpDPS3xz7iAxn8L39njGVyuoseXzU6rcxFLJ8HFsTjSyQbLYnMpCqE2VbFWc",
         "xpub6ERApfZwUNrhLCkDtcHTcxd75RbzS1ed54G1LkBUHQVHQKqhMkhgbmJbZRkrgZw4koxb5JaHWkY4ALHY2grBGRjaDMzQLcgJvLJuZZvRcEL"),
        ("m/0/2147483647H/1/2147483646H/2",
         "xprvA2nrNbFZABcdryreWet9Ea4LvTJcGsqrMzxHx98MMrotbir7yrKCEXw7nadnHM8Dq38EGfSh6dqA9QWTyefMLEcBYJUuekgW4BYPJcr9E7j",
         "xpub6FnCn6nSzZAw5Tw7cgR9bi15UV96gLZhjDstkXXxvCLsUXBGXPdSnLFbdpq8p9HmGsApME5hQTZ3emM2rnY5agb9rXpVGyy3bdW6EEgAtqt"),
    ]),
    ("4b381541583be4423346c643850da4b320e46a87ae3d2a4e6da11eba819cd4acba45d239319ac14f863b8d5ab5a0d0c64d2e8a1e7d1457df2e5a3c51c73235be", [
        ("m",
         "xprv9s21ZrQH143K25QhxbucbDDuQ4naNntJRi4KUfWT7xo4EKsHt2QJDu7KXp1A3u7Bi1j8ph3EGsZ9Xvz9dGuVrtHHs7pXeTzjuxBrCmmhgC6",
         "xpub661MyMwAqRbcEZVB4dScxMAdx6d4nFc9nvyvH3v4gJL378CSRZiYmhRoP7mBy6gSPSCYk6SzXPTf3ND1cZAceL7SfJ1Z3GC8vBgp2epUt13"),
        ("m/0H",
         "xprv9uPDJpEQgRQfDcW7BkF7eTya6RPxXeJCqCJGHuCJ4GiRVLzkTXBAJMu2qaMWPrS7AANYqdq6vcBcBUdJCVVFceUvJFjaPdGZ2y9WACViL4L",
         "xpub68NZiKmJWnxxS6aaHmn81bvJeTESw724CRDs6HbuccFQN9Ku14VQrADWgqbhhTHBaohPX4CjNLf9fq9MYo6oDaPPLPxSb7gwQN3ih19Zm4Y"),
    ]),
    ("3ddd5602285899a946114506157c7997e5444528f3003f6134712147db19b678", [
        ("m",
         "xprv9s21ZrQH143K48vGoLGRPxgo2JNkJ3J3fqkirQC2zVdk5Dgd5w14S7fRDyHH4dWNHUgkvsvNDCkvAwcSHNAQwhwgNMgZhLtQC63zxwhQmRv",
         "xpub661MyMwAqRbcGczjuMoRm6dXaLDEhW1u34gKenbeYqAix21mdUKJyuyu5F1rzYGVxyL6tmgBUAEPrEz92mBXjByMRiJdba9wpnN37RLLAXa"),
        ("m/0H",
         "xprv9vB7xEWwNp9kh1wQRfCCQMnZUEG21LpbR9NPCNN1dwhiZkjjeGRnaALmPXCX7SgjFTiCTT6bXes17boXtjq3xLpcDjzEuGLQBM5ohqkao9G",
         "xpub69AUMk3qDBi3uW1sXgjCmVjJ2G6WQoYSnNHyzkmdCHEhSZ4tBok37xfFEqHd2AddP56Tqp4o56AePAgCjYdvpW2PU2jbUPFKsav5ut6Ch1m"),
        ("m/0H/1H",
         "xprv9xJocDuwtYCMNAo3Zw76WENQeAS6WGXQ55RCy7tDJ8oALr4FWkuVoHJeHVAcAqiZLE7Je3vZJHxspZdFHfnBEjHqU5hG1Jaj32dVoS6XLT1",
         "xpub6BJA1jSqiukeaesWfxe6sNK9CCGaujFFSJLomWHprUL9DePQ4JDkM5d88n49sMGJxrhpjazuXYWdMf17C9T5XnxkopaeS7jGk1GyyVziaMt"),
    ]),
]

# BIP32 test vector 5: serializations that must be rejected
INVALID_EXTENDED_KEYS = [
    ("xpub661MyMwAqRbcEYS8w7XLSVeEsBXy79zSzH1J8vCdxAZningWLdN3zgtU6LBpB85b3D2yc8sfvZU521AAwdZafEz7mnzBBsz4wKY5fTtTQBm",
     "pubkey version / prvkey mismatch"),
    ("xprv9s21ZrQH143K24Mfq5zL5MhWK9hUhhGbd45hLXo2Pq2oqzMMo63oStZzFGTQQD3dC4H2D5GBj7vWvSQaaBv5cxi9gafk7NF3pnBju6dwKvH",
     "prvkey version / pubkey mismatch"),
    ("xpub661MyMwAqRbcEYS8w7XLSVeEsBXy79zSzH1J8vCdxAZningWLdN3zgtU6Txnt3siSujt9RCVYsx4qHZGc62TG4McvMGcAUjeuwZdduYEvFn",
     "invalid pubkey prefix 04"),
    ("xprv9s21ZrQH143K24Mfq5zL5MhWK9hUhhGbd45hLXo2Pq2oqzMMo63oStZzFGpWnsj83BHtEy5Zt8CcDr1UiRXuWCmTQLxEK9vbz5gPstX92JQ",
     "invalid prvkey prefix 04"),
    ("xpub661MyMwAqRbcEYS8w7XLSVeEsBXy79zSzH1J8vCdxAZningWLdN3zgtU6N8ZMMXctdiCjxTNq964yKkwrkBJJwpzZS4HS2fxvyYUA4q2Xe4",
     "invalid pubkey prefix 01"),
    ("xprv9s21ZrQH143K24Mfq5zL5MhWK9hUhhGbd45hLXo2Pq2oqzMMo63oStZzFAzHGBP2UuGCqWLTAPLcMtD9y5gkZ6Eq3Rjuahrv17fEQ3Qen6J",
     "invalid prvkey prefix 01"),
    ("xprv9s2SPatNQ9Vc6GTbVMFPFo7jsaZySyzk7L8n2uqKXJen3KUmvQNTuLh3fhZMBoG3G4ZW1N2kZuHEPY53qmbZzCHshoQnNf4GvELZfqTUrcv",
     "zero depth with non-zero parent fingerprint"),
    ("xpub661no6RGEX3uJkY4bNnPcw4URcQTrSibUZ4NqJEw5eBkv7ovTwgiT91XX27VbEXGENhYRCf7hyEbWrR3FewATdCEebj6znwMfQkhRYHRLpJ",
     "zero depth with non-zero parent fingerprint"),
    ("xprv9s21ZrQH4r4TsiLvyLXqM9P7k1K3EYhA1kkD6xuquB5i39AU8KF42acDyL3qsDbU9NmZn6MsGSUYZEsuoePmjzsB3eFKSUEh3Gu1N3cqVUN",
     "zero depth with non-zero index"),
    ("xpub661MyMwAuDcm6CRQ5N4qiHKrJ39Xe1R1NyfouMKTTWcguwVcfrZJaNvhpebzGerh7gucBvzEQWRugZDuDXjNDRmXzSZe4c7mnTK97pTvGS8",
     "zero depth with non-zero index"),
    ("DMwo58pR1QLEFihHiXPVykYB6fJmsTeHvyTp7hRThAtCX8CvYzgPcn8XnmdfHGMQzT7ayAmfo4z3gY5KfbrZWZ6St24UVf2Qgo6oujFktLHdHY4",
     "unknown extended key version"),
    ("DMwo58pR1QLEFihHiXPVykYB6fJmsTeHvyTp7hRThAtCX8CvYzgPcn8XnmdfHPmHJiEDXkTiJTVV9rHEBUem2mwVbbNfvT2MTcAqj3nesx8uBf9",
     "unknown extended key version"),
    ("xprv9s21ZrQH143K24Mfq5zL5MhWK9hUhhGbd45hLXo2Pq2oqzMMo63oStZzF93Y5wvzdUayhgkkFoicQZcP3y52uPPxFnfoLZB21Teqt1VvEHx",
     "private key 0 not in 1..n-1"),
    ("xprv9s21ZrQH143K24Mfq5zL5MhWK9hUhhGbd45hLXo2Pq2oqzMMo63oStZzFAzHGBP2UuGCqWLTAPLcMtD5SDKr24z3aiUvKr9bJpdrcLg1y3G",
     "private key n not in 1..n-1"),
    ("xpub661MyMwAqRbcEYS8w7XLSVeEsBXy79zSzH1J8vCdxAZningWLdN3zgtU6Q5JXayek4PRsn35jii4veMimro1xefsM58PgBMrvdYre8QyULY",
     "invalid pubkey 020000000000000000000000000000000000000000000000000000000000000007"),
    ("xprv9s21ZrQH143K3QTDL4LXw2F7HEK3wJUD2nW2nRk4stbPy6cq3jPPqjiChkVvvNKmPGJxWUtg6LnF5kejMRNNU3TGtRBeJgk33yuGBxrMPHL",
     "invalid checksum"),
]


def get_random_xprv(depth: int = 3) -> ExtendedPrivateKey:
    """
    A random master key walked down a random path of the given depth
    """
    key = master_from_seed(random_seed())
    for _ in range(depth):
        index = randbelow(XKEYS.MAX_INDEX + 1)
        key = key.derive_child(index)
    return key


@pytest.mark.parametrize("seed_hex, steps", BIP32_VECTORS)
def test_bip32_vectors(seed_hex, steps):
    master = ExtendedPrivateKey.from_seed(bytes.fromhex(seed_hex))
    for path, xprv, xpub in steps:
        derived = master.derive_path(path)
        assert derived.serialize() == xprv, f"xprv mismatch at {path}"
        assert derived.to_public().serialize() == xpub, f"xpub mismatch at {path}"


@pytest.mark.parametrize("xkey, reason", INVALID_EXTENDED_KEYS)
def test_invalid_extended_keys(xkey, reason):
    with pytest.raises(InvalidSerialization):
        deserialize(xkey)


def test_serialization_round_trip():
    xprv = get_random_xprv()
    xpub = xprv.to_public()

    recovered_xprv = deserialize(xprv.serialize())
    recovered_xpub = deserialize(xpub.serialize())

    assert isinstance(recovered_xprv, ExtendedPrivateKey), "xprv deserialized to the wrong type"
    assert isinstance(recovered_xpub, ExtendedPublicKey), "xpub deserialized to the wrong type"
    assert recovered_xprv == xprv, "Failed to reconstruct random XPRV from serial"
    assert recovered_xpub == xpub, "Failed to reconstruct random XPUB from serial"
    assert len(xprv.to_bytes()) == XKEYS.SERIALIZED_LENGTH
    assert len(xprv.payload()) == len(xpub.payload()) == XKEYS.PAYLOAD_LENGTH, "BIP32 payload must be 78 bytes"


def test_testnet_prefixes():
    master = master_from_seed(random_seed(), Network.BITCOIN_TESTNET)
    assert master.serialize().startswith("tprv"), "Testnet private key should start with tprv"
    assert master.to_public().serialize().startswith("tpub"), "Testnet public key should start with tpub"
    assert deserialize(master.serialize()).network is Network.BITCOIN_TESTNET


def test_seed_length_bounds():
    for length in (XKEYS.MIN_SEED_BYTES - 1, XKEYS.MAX_SEED_BYTES + 1, 0):
        with pytest.raises(InvalidSeedLength):
            master_from_seed(token_bytes(length))
    for length in (XKEYS.MIN_SEED_BYTES, XKEYS.MAX_SEED_BYTES):
        assert master_from_seed(token_bytes(length)).depth == 0


def test_derivation_is_deterministic():
    seed = random_seed()
    path = "m/44'/60'/0'/0/7"
    first = master_from_seed(seed).derive_path(path)
    second = master_from_seed(seed).derive_path(path)
    assert first == second, "Same seed and path gave different keys"


def test_public_derivation_matches_private():
    """
    For normal indices, deriving from the xpub gives the public half of deriving from the xprv
    """
    parent = get_random_xprv(depth=2)
    index = randbelow(XKEYS.HARDENED_OFFSET)
    from_private = parent.derive_child(ChildNumber.normal(index)).to_public()
    from_public = parent.to_public().derive_child(ChildNumber.normal(index))
    assert from_private == from_public, "Public and private derivation disagree"


def test_hardened_from_public_rejected():
    xpub = get_random_xprv(depth=1).to_public()
    with pytest.raises(HardenedFromPublicKey):
        xpub.derive_child(ChildNumber.hardened(0))
    with pytest.raises(HardenedFromPublicKey):
        xpub.derive_path("m/0/1'")


def test_child_metadata():
    parent = get_random_xprv(depth=1)
    child = parent.derive_child(ChildNumber.hardened(5))
    assert child.depth == parent.depth + 1
    assert child.parent_fingerprint == parent.fingerprint(), "Child parent fingerprint mismatch"
    assert child.child_number == ChildNumber.hardened(5)
    assert child.child_number.to_index() == XKEYS.HARDENED_OFFSET + 5


def test_derivation_leaves_parent_untouched():
    parent = get_random_xprv(depth=1)
    before = parent.serialize()
    child = derive_child_private(parent, 3)
    child.zeroize()
    assert parent.serialize() == before, "Zeroizing a child changed its parent"


def test_max_depth():
    master = master_from_seed(random_seed())
    deep = ExtendedPrivateKey(master.private_key.copy(), master.chain_code.copy(), depth=XKEYS.MAX_DEPTH,
                              parent_fingerprint=b'\x01\x02\x03\x04', child_number=ChildNumber.normal(1))
    with pytest.raises(MaxDepthExceeded):
        deep.derive_child(0)


def test_to_public_keeps_private_source():
    xprv = get_random_xprv(depth=1)
    xpub = to_public(xprv)
    assert xpub.public_key() == xprv.public_key()
    assert xpub.chain_code == xprv.chain_code
    assert not xprv.private_key.is_zeroized, "to_public must not consume the private key"


def test_master_metadata_validation():
    with pytest.raises(ExtendedKeyError):
        ExtendedPrivateKey(token_bytes(31) + b'\x01', token_bytes(32), depth=0, parent_fingerprint=b'\x00\x00\x00\x01')


def test_zeroize_extended_key():
    xprv = get_random_xprv(depth=1)
    assert xprv.private_key.to_bytes().hex() not in repr(xprv), "Extended key repr leaks the private key"
    with xprv as key:
        assert isinstance(key, ExtendedKey)
    assert xprv.private_key.is_zeroized, "Private key not cleared on context exit"
    assert xprv.chain_code.is_zeroized, "Chain code not cleared on context exit"
