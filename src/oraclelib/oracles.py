#!/usr/bin/env python3
'''
In-process oracles for exercising the attacks.

Each oracle picks its hidden key (and IV/prefix where relevant) once, when it is
constructed, and keeps it for its whole lifetime. Pass the oracle object to an
attack; never share secrets between oracles through module state.
'''
import base64
import random

from Cryptodome.Cipher import AES
from Cryptodome.Random import get_random_bytes

from .errors import InvalidPaddingError
from .util import pkcs7_pad, strip_pkcs7_padding

# candidate secrets for the CBC padding oracle demos
CYMBAL_MESSAGES = [
	'MDAwMDAwTm93IHRoYXQgdGhlIHBhcnR5IGlzIGp1bXBpbmc=',
	'MDAwMDAxV2l0aCB0aGUgYmFzcyBraWNrZWQgaW4gYW5kIHRoZSBWZWdhJ3MgYXJlIHB1bXBpbic=',
	'MDAwMDAyUXVpY2sgdG8gdGhlIHBvaW50LCB0byB0aGUgcG9pbnQsIG5vIGZha2luZw==',
	'MDAwMDAzQ29va2luZyBNQydzIGxpa2UgYSBwb3VuZCBvZiBiYWNvbg==',
	'MDAwMDA0QnVybmluZyAnZW0sIGlmIHlvdSBhaW4ndCBxdWljayBhbmQgbmltYmxl',
	'MDAwMDA1SSBnbyBjcmF6eSB3aGVuIEkgaGVhciBhIGN5bWJhbA==',
	'MDAwMDA2QW5kIGEgaGlnaCBoYXQgd2l0aCBhIHNvdXBlZCB1cCB0ZW1wbw==',
	'MDAwMDA3SSdtIG9uIGEgcm9sbCwgaXQncyB0aW1lIHRvIGdvIHNvbG8=',
	'MDAwMDA4b2xsaW4nIGluIG15IGZpdmUgcG9pbnQgb2g=',
	'MDAwMDA5aXRoIG15IHJhZy10b3AgZG93biBzbyBteSBoYWlyIGNhbiBibG93',
]

def pick_message():
	return base64.b64decode(random.choice(CYMBAL_MESSAGES))

def random_key(size=16):
	return get_random_bytes(size)

def encrypt_ecb(plaintext, key):
	return AES.new(key, AES.MODE_ECB).encrypt(pkcs7_pad(plaintext, AES.block_size))

def decrypt_ecb(ciphertext, key):
	return strip_pkcs7_padding(AES.new(key, AES.MODE_ECB).decrypt(ciphertext), AES.block_size)

def encrypt_cbc(plaintext, key, iv):
	return AES.new(key, AES.MODE_CBC, iv).encrypt(pkcs7_pad(plaintext, AES.block_size))

def decrypt_cbc(ciphertext, key, iv):
	return strip_pkcs7_padding(AES.new(key, AES.MODE_CBC, iv).decrypt(ciphertext), AES.block_size)


class ECBOracle(object):
	'''
	Encrypts prefix + data + suffix under AES-ECB with a key fixed at construction

	suffix: the secret the byte-at-a-time attack recovers
	prefix: bytes placed before the attacker's data (default: none)
	random_prefix: if no prefix is given, draw between 1 and 64 random bytes once and keep them
	key: AES key as bytes (default: random)
	'''
	def __init__(self, suffix, prefix=None, random_prefix=False, key=None):
		if prefix is None:
			prefix = get_random_bytes(random.randint(1, 64)) if random_prefix else b''
		self._prefix = prefix
		self._suffix = suffix
		self._key = key if key is not None else random_key()

	def __call__(self, data):
		return encrypt_ecb(self._prefix + data + self._suffix, self._key)


class RandomModeOracle(object):
	'''
	Flips a coin at construction to pick ECB or CBC, then encrypts
	5-10 random bytes + data + 5-10 random bytes under a random key

	mode: the truth, 'ECB' or 'CBC'
	'''
	def __init__(self):
		self.mode = random.choice(['ECB', 'CBC'])
		self._key = random_key()

	def __call__(self, data):
		data = get_random_bytes(random.randint(5, 10)) + data + get_random_bytes(random.randint(5, 10))
		if self.mode == 'ECB':
			return encrypt_ecb(data, self._key)
		return encrypt_cbc(data, self._key, get_random_bytes(AES.block_size))


class CBCPaddingOracle(object):
	'''
	Hands out AES-CBC ciphertexts and answers whether a ciphertext decrypts to valid PKCS#7 padding

	key: AES key as bytes (default: random)
	iv: fixed IV (default: random)
	include_iv: encrypt() draws a fresh IV and prepends it, and the oracle reads the IV from the first block
	'''
	def __init__(self, key=None, iv=None, include_iv=False):
		self.key = key if key is not None else random_key()
		self.iv = iv if iv is not None else get_random_bytes(AES.block_size)
		self.include_iv = include_iv
		self.queries = 0

	def encrypt(self, plaintext):
		if self.include_iv:
			iv = get_random_bytes(AES.block_size)
			return iv + encrypt_cbc(plaintext, self.key, iv)
		return encrypt_cbc(plaintext, self.key, self.iv)

	def decrypt(self, ciphertext):
		if self.include_iv:
			return decrypt_cbc(ciphertext[AES.block_size:], self.key, ciphertext[:AES.block_size])
		return decrypt_cbc(ciphertext, self.key, self.iv)

	def __call__(self, ciphertext):
		self.queries += 1
		if len(ciphertext) == 0 or len(ciphertext) % AES.block_size != 0:
			return False
		if self.include_iv and len(ciphertext) < 2 * AES.block_size:
			return False
		try:
			self.decrypt(ciphertext)
		except InvalidPaddingError:
			return False
		return True


def parse_kv(data):
	'''Parse foo=bar&baz=qux into a dict. Keys and values stay bytes.'''
	result = {}
	for pair in data.split(b'&'):
		if b'=' not in pair:
			raise ValueError(f'malformed key-value pair {pair!r}')
		key, value = pair.split(b'=', 1)
		result[key] = value
	return result

def encode_kv(items):
	return b'&'.join(key + b'=' + value for key, value in items.items())

def profile_for(email):
	# metacharacters are eaten so nobody can just type &role=admin
	email = email.replace(b'&', b'').replace(b'=', b'')
	return {b'email': email, b'uid': b'10', b'role': b'user'}


class ProfileOracle(object):
	'''
	Hands out AES-ECB encrypted user profiles (email=...&uid=10&role=user) for any email
	and decrypts them back into a dict, under a key fixed at construction

	key: AES key as bytes (default: random)
	'''
	def __init__(self, key=None):
		self._key = key if key is not None else random_key()

	def __call__(self, email):
		return encrypt_ecb(encode_kv(profile_for(email)), self._key)

	def decrypt(self, ciphertext):
		return parse_kv(decrypt_ecb(ciphertext, self._key))
