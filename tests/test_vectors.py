from batchminer.hashing import abbreviate_hash, digest_to_int_le, sha256d
from batchminer.header import BlockHeader
from batchminer.target import GENESIS_BITS, bits_to_target

GENESIS_MERKLE_HEX = "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"
GENESIS_HASH_HEX = "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"


def genesis_header() -> BlockHeader:
    return BlockHeader(
        version=1,
        prev_block_hash=b"\x00" * 32,
        merkle_root=bytes.fromhex(GENESIS_MERKLE_HEX)[::-1],
        timestamp=1231006505,
        bits=GENESIS_BITS,
        nonce=2083236893,
    )


def test_sha256d_vectors():
    # 80 bytes of zeros
    assert sha256d(b"\x00" * 80).hex() == "4be7570e8f70eb093640c8468274ba759745a7aa2b7d25ab1e0421b259845014"

    # 0..79
    assert sha256d(bytes(range(80))).hex() == "852c98044fb00507122ff63bda7b529566348fc204f72b00dff1afd7b40501e4"


def test_genesis_header_hash():
    hdr = genesis_header()
    assert len(hdr.serialize()) == 80
    assert hdr.hash_hex() == GENESIS_HASH_HEX
    assert hdr.hash() == bytes.fromhex(GENESIS_HASH_HEX)[::-1]


def test_genesis_hash_meets_its_target():
    hdr = genesis_header()
    assert hdr.hash_int() == int(GENESIS_HASH_HEX, 16)
    assert hdr.hash_int() <= bits_to_target(hdr.bits)


def test_abbreviated_hash_is_top_word():
    digest = genesis_header().hash()
    assert abbreviate_hash(digest) == digest_to_int_le(digest) >> 224
    # genesis hash starts with 8 zero hex digits
    assert abbreviate_hash(digest) == 0
