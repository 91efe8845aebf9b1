import pytest
from Cryptodome.Random import get_random_bytes

from conftest import DES3ECBOracle
from oraclelib.detect import Mode, classify_mode, detect_block_size, detect_mode, find_prefix_alignment
from oraclelib.errors import NotFoundError
from oraclelib.oracles import ECBOracle, RandomModeOracle, encrypt_cbc, encrypt_ecb, random_key


@pytest.mark.parametrize('prefix_len', [0, 1, 7, 16, 33])
@pytest.mark.parametrize('suffix_len', [0, 5, 16, 138])
def test_detect_block_size(prefix_len, suffix_len):
    oracle = ECBOracle(b's' * suffix_len, prefix=b'p' * prefix_len)
    assert detect_block_size(oracle) == 16


def test_detect_block_size_gives_up():
    with pytest.raises(NotFoundError):
        detect_block_size(lambda data: b'x' * 10, max_probe=64)


def test_classify_ecb():
    ciphertext = encrypt_ecb(b'X' * 48, random_key())
    assert classify_mode(ciphertext, 16) == Mode.ECB


def test_classify_cbc():
    ciphertext = encrypt_cbc(b'X' * 48, random_key(), random_key())
    assert classify_mode(ciphertext, 16) == Mode.CBC


def test_classify_too_short():
    assert classify_mode(b'', 16) == Mode.UNKNOWN
    assert classify_mode(b'x' * 16, 16) == Mode.UNKNOWN


def test_classify_non_repeating_ecb_looks_like_cbc():
    ciphertext = encrypt_ecb(bytes(range(48)), random_key())
    assert classify_mode(ciphertext, 16) == Mode.CBC


def test_detect_mode_matches_oracle():
    for _ in range(20):
        oracle = RandomModeOracle()
        assert detect_mode(oracle, 16).name == oracle.mode


@pytest.mark.parametrize('prefix_len, expected', [
    (0, (0, 0)),
    (1, (15, 1)),
    (15, (1, 1)),
    (16, (0, 1)),
    (17, (15, 2)),
    (40, (8, 3)),
])
def test_find_prefix_alignment(prefix_len, expected):
    oracle = ECBOracle(b'secret suffix', prefix=b'p' * prefix_len)
    assert find_prefix_alignment(oracle) == expected


def test_find_prefix_alignment_prefix_ends_in_marker():
    oracle = ECBOracle(b'secret suffix', prefix=b'\x01' * 5)
    assert find_prefix_alignment(oracle, 16) == (11, 1)


def test_find_prefix_alignment_suffix_starts_with_marker():
    oracle = ECBOracle(b'\x02' * 40, prefix=b'abc')
    assert find_prefix_alignment(oracle, 16) == (13, 1)


def test_find_prefix_alignment_repeated_prefix_blocks():
    oracle = ECBOracle(b'secret suffix', prefix=b'Z' * 32)
    assert find_prefix_alignment(oracle, 16) == (0, 2)


def test_find_prefix_alignment_cbc():
    key, iv = random_key(), random_key()
    with pytest.raises(NotFoundError):
        find_prefix_alignment(lambda data: encrypt_cbc(data, key, iv), 16, max_filler=32)


@pytest.mark.parametrize('prefix_len, expected', [(0, (0, 0)), (3, (5, 1)), (8, (0, 1)), (13, (3, 2))])
def test_des3_ecb_layout(prefix_len, expected):
    oracle = DES3ECBOracle(b'eight byte blocks', prefix=get_random_bytes(prefix_len))
    assert detect_block_size(oracle) == 8
    assert detect_mode(oracle, 8) == Mode.ECB
    assert find_prefix_alignment(oracle) == expected
