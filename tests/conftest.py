import pytest
from Cryptodome.Cipher import DES3
from Cryptodome.Random import get_random_bytes

from oraclelib.oracles import CBCPaddingOracle, ECBOracle
from oraclelib.util import pkcs7_pad

ROLLIN = (b"Rollin' in my 5.0\n"
          b"With my rag-top down so my hair can blow\n"
          b"The girlies on standby waving just to say hi\n"
          b"Did you stop? No, I just drove by\n")

CYMBAL = b'000005I go crazy when I hear a cymbal'


@pytest.fixture
def ecb_oracle():
    return ECBOracle(ROLLIN)


@pytest.fixture
def prefixed_ecb_oracle():
    return ECBOracle(ROLLIN, random_prefix=True)


@pytest.fixture
def padding_oracle():
    return CBCPaddingOracle()


class DES3ECBOracle(object):
    '''prefix + data + suffix under 3DES-ECB, for checking nothing assumes 16 byte blocks'''
    def __init__(self, suffix, prefix=b''):
        self.key = DES3.adjust_key_parity(get_random_bytes(24))
        self.prefix = prefix
        self.suffix = suffix

    def __call__(self, data):
        return DES3.new(self.key, DES3.MODE_ECB).encrypt(pkcs7_pad(self.prefix + data + self.suffix, 8))
