import pytest
import requests

from conftest import CYMBAL
from oraclelib import recover_cbc_plaintext, recover_ecb_suffix
from oraclelib.oracles import CBCPaddingOracle, ECBOracle
from oraclelib.remote import HTTPEncryptionOracle, HTTPPaddingOracle
from oraclelib.util import pkcs7_pad


class FakeResponse(object):
    def __init__(self, status_code, text=''):
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code != 200:
            raise requests.HTTPError(f'{self.status_code} error')


class FakeServer(object):
    '''Stands in for requests.Session, answering like the damned vulnerable oracle server'''
    def __init__(self):
        self.cbc = CBCPaddingOracle(include_iv=True)
        self.ecb = ECBOracle(b'hidden behind http', random_prefix=True)
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        path = url[len('http://oracle.test'):]
        if path == '/encrypt-with-iv':
            return FakeResponse(200, self.cbc.encrypt(CYMBAL).hex())
        if path.startswith('/decrypt-with-iv/'):
            return FakeResponse(200 if self.cbc(bytes.fromhex(path.split('/')[-1])) else 500)
        if path.startswith('/ecb/'):
            return FakeResponse(200, self.ecb(bytes.fromhex(path.split('/')[-1])).hex())
        return FakeResponse(404)


@pytest.fixture
def server():
    return FakeServer()


def test_padding_oracle_status_codes(server):
    oracle = HTTPPaddingOracle('http://oracle.test/', session=server)
    ciphertext = oracle.fetch_ciphertext()
    assert oracle(ciphertext)
    tampered = bytearray(ciphertext)
    tampered[-17] ^= 0x01
    assert not oracle(bytes(tampered))
    assert server.urls[1] == f'http://oracle.test/decrypt-with-iv/{ciphertext.hex()}'


def test_recover_over_http(server):
    oracle = HTTPPaddingOracle('http://oracle.test', session=server)
    ciphertext = oracle.fetch_ciphertext()
    assert recover_cbc_plaintext(ciphertext, None, 16, oracle) == pkcs7_pad(CYMBAL, 16)


def test_encryption_oracle(server):
    oracle = HTTPEncryptionOracle('http://oracle.test', session=server)
    assert oracle(b'') == server.ecb(b'')
    assert recover_ecb_suffix(oracle) == b'hidden behind http'


def test_encryption_oracle_errors_propagate(server):
    oracle = HTTPEncryptionOracle('http://oracle.test', path='/missing/', session=server)
    with pytest.raises(requests.HTTPError):
        oracle(b'x')


def test_padding_oracle_fails_fast_on_wrong_path(server):
    oracle = HTTPPaddingOracle('http://oracle.test', path='/no-such-route/', session=server)
    with pytest.raises(requests.HTTPError):
        recover_cbc_plaintext(b'\x00' * 32, None, 16, oracle)
    # gave up on the first query instead of trying every candidate
    assert len(server.urls) == 1
