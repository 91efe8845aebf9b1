#!/usr/bin/env python3
import logging
import sys
from multiprocessing.pool import ThreadPool

from .detect import FILLER_BYTE, Mode, detect_block_size, detect_mode, find_prefix_alignment
from .errors import MismatchedLengthsError, NotFoundError
from .util import pkcs7_pad

log = logging.getLogger(__name__)

class ByteAtATimeAttack(object):
	'''Class for recovering a secret suffix from an ECB-mode encryption oracle, one byte at a time'''
	def __init__(self, oracle, block_size=None, alignment=None, workers=1, verbose=False):
		'''
		oracle: a function that takes one input (attacker-controlled bytes) and returns the ECB encryption of prefix + input + secret suffix
		block_size: size of the block cipher in bytes (default: detected)
		alignment: (filler_len, first_controlled_block) if already known (default: detected)
		workers: number of threads used to query the oracle for the 256 candidates of each byte (default: 1)
		verbose: shows individual byte recovery output if enabled (default: False)
		'''
		self.oracle = oracle
		self.block_size = block_size
		self.alignment = alignment
		self.workers = workers
		self.verbose = verbose

		# recovered suffix bytes, in order
		self.recovered = bytearray()

		# number of oracle queries
		self.stats = 0

	def debug(self, msg, newline=False):
		if self.verbose:
			sys.stdout.write(msg)
			if newline:
				print()

	def query(self, data):
		self.stats += 1
		return self.oracle(data)

	def block_at(self, ciphertext, idx):
		return ciphertext[idx * self.block_size:(idx + 1) * self.block_size]

	def prepare(self):
		'''Work out everything the byte loop needs: block size, mode, alignment and suffix length'''
		if self.block_size is None:
			self.block_size = detect_block_size(self.query)

		if self.alignment is None:
			mode = detect_mode(self.query, self.block_size)
			if mode != Mode.ECB:
				raise NotFoundError(f'oracle does not look like ECB (got {mode.name})')
			self.alignment = find_prefix_alignment(self.query, self.block_size)

		self.filler = FILLER_BYTE * self.alignment[0]
		self.first_block = self.alignment[1]
		self.suffix_len = self.find_suffix_length()

		log.info('block size %d, %d filler bytes, first controlled block %d, suffix is %d bytes',
			self.block_size, self.alignment[0], self.first_block, self.suffix_len)

	def find_suffix_length(self):
		# with our data block-aligned, the padding spills into a new block after exactly
		# enough extra bytes to fill the last block of the suffix
		base = len(self.query(self.filler))
		for n in range(1, self.block_size + 1):
			if len(self.query(self.filler + FILLER_BYTE * n)) > base:
				return base - self.first_block * self.block_size - n
		raise NotFoundError(f'ciphertext length did not change within {self.block_size} bytes')

	def build_guess_table(self, window):
		'''
		Encrypt window + every possible last byte and map the resulting block to the byte.
		window must be block_size - 1 bytes.
		'''
		probes = [self.filler + window + bytes([n]) for n in range(256)]

		if self.workers > 1:
			with ThreadPool(self.workers) as pool:
				ciphertexts = pool.map(self.oracle, probes)
			self.stats += len(probes)
		else:
			ciphertexts = [self.query(probe) for probe in probes]

		return {self.block_at(ct, self.first_block): n for n, ct in enumerate(ciphertexts)}

	def recover_byte(self, idx):
		# enough filler to slide suffix byte idx into the last slot of a block
		pad_len = self.block_size - 1 - (idx % self.block_size)
		target_block = self.first_block + idx // self.block_size

		reference = self.block_at(self.query(self.filler + FILLER_BYTE * pad_len), target_block)

		# the same block_size - 1 bytes that precede the target byte in the reference block
		window = (FILLER_BYTE * (self.block_size - 1) + bytes(self.recovered))[-(self.block_size - 1):]
		guess_table = self.build_guess_table(window)

		try:
			return guess_table[reference]
		except KeyError:
			raise NotFoundError(f'no candidate matches suffix byte {idx} - is the oracle deterministic?') from None

	def recover(self):
		'''Recovers the whole suffix, without its padding'''
		self.recovered = bytearray()
		self.prepare()

		for idx in range(self.suffix_len):
			self.debug(f'\r[Block {idx // self.block_size:2} | Byte {idx % self.block_size:2}] Trying...'.ljust(48))
			plain_byte = self.recover_byte(idx)
			self.recovered.append(plain_byte)

			self.debug(f'\r[Block {idx // self.block_size:2} | Byte {idx % self.block_size:2}] {plain_byte:02x} {chr(plain_byte) if chr(plain_byte).isprintable() else "."}'.ljust(48, ' '), newline=True)

			if (idx + 1) % self.block_size == 0:
				log.debug('recovered block %d: %r', idx // self.block_size, bytes(self.recovered[-self.block_size:]))

		return bytes(self.recovered)

def recover_ecb_suffix(oracle, **kwargs):
	'''Recover the secret an ECB oracle appends after our input. kwargs go to ByteAtATimeAttack.'''
	return ByteAtATimeAttack(oracle, **kwargs).recover()

def forge_ecb_blocks(oracle, plaintext, block_size=None, alignment=None, pad=False):
	'''
	Get the ECB encryption of plaintext under the oracle's key, block by block, ready to be
	cut and pasted into another of the oracle's ciphertexts.

	plaintext: whole blocks to encrypt (must survive whatever filtering the oracle applies to our input)
	block_size: size of the block cipher in bytes (default: detected)
	alignment: (filler_len, first_controlled_block) if already known (default: detected)
	pad: PKCS#7 pad plaintext first, so the result can stand as the final block(s) of a message
	'''
	if block_size is None:
		block_size = detect_block_size(oracle)
	if pad:
		plaintext = pkcs7_pad(plaintext, block_size)
	if len(plaintext) == 0 or len(plaintext) % block_size != 0:
		raise MismatchedLengthsError(f'{len(plaintext)} bytes is not a whole number of {block_size} byte blocks')

	if alignment is None:
		alignment = find_prefix_alignment(oracle, block_size)
	filler_len, first_block = alignment

	# our blocks sit at a block boundary, so each one encrypts on its own
	ciphertext = oracle(FILLER_BYTE * filler_len + plaintext)
	start = first_block * block_size
	log.debug('forged %d blocks from block %d', len(plaintext) // block_size, first_block)
	return ciphertext[start:start + len(plaintext)]
