#!/usr/bin/env python3
'''
Oracles that live behind HTTP, in the shape the damned vulnerable oracle server exposes them.

In a realistic scenario you may need to do more complex request creation and response parsing;
subclass and override query() for that.
'''
import requests

class HTTPPaddingOracle(object):
	'''
	Sends a suitably encoded request and returns True or False based on the result.
	A 200 means the server accepted the padding, a 500 means it didn't.
	Any other status is a broken request (wrong path, bad encoding) and is raised.

	base_url: server root, e.g. http://localhost:8080
	path: route the hex ciphertext is appended to (default: /decrypt-with-iv/)
	session: a requests.Session to reuse (default: a new one)
	'''
	def __init__(self, base_url, path='/decrypt-with-iv/', session=None, timeout=10):
		self.base_url = base_url.rstrip('/')
		self.url = self.base_url + path
		self.session = session if session is not None else requests.Session()
		self.timeout = timeout

	def query(self, ciphertext):
		return self.session.get(f'{self.url}{ciphertext.hex()}', timeout=self.timeout)

	def __call__(self, ciphertext):
		r = self.query(ciphertext)
		if r.status_code == 200:
			return True
		if r.status_code == 500:
			return False
		r.raise_for_status()
		raise requests.HTTPError(f'unexpected status {r.status_code} from padding oracle', response=r)

	def fetch_ciphertext(self, path='/encrypt-with-iv'):
		'''Ask the server for a ciphertext to attack (IV first)'''
		r = self.session.get(self.base_url + path, timeout=self.timeout)
		r.raise_for_status()
		return bytes.fromhex(r.text.strip())


class HTTPEncryptionOracle(object):
	'''
	Sends attacker bytes as hex and returns the ciphertext the server sends back (as hex).
	Any HTTP error is raised - a failing encryption oracle ends the attack.
	'''
	def __init__(self, base_url, path='/ecb/', session=None, timeout=10):
		self.url = base_url.rstrip('/') + path
		self.session = session if session is not None else requests.Session()
		self.timeout = timeout

	def __call__(self, data):
		r = self.session.get(f'{self.url}{data.hex()}', timeout=self.timeout)
		r.raise_for_status()
		return bytes.fromhex(r.text.strip())
