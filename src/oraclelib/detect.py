#!/usr/bin/env python3
'''
Learn what we can about an encryption oracle from the shape of its output:
block size, ECB vs CBC, and where our own data starts.
'''
import enum
import logging

from .errors import NotFoundError
from .util import chunks, hamming_distances

log = logging.getLogger(__name__)

# upper bound on how many bytes any probe is allowed to grow to
MAX_PROBE_LENGTH = 1024

FILLER_BYTE = b'A'

# two different markers so a prefix/suffix byte can't fake an aligned pair
MARKER_BYTES = (b'\x01', b'\x02')

class Mode(enum.Enum):
	UNKNOWN = 0
	ECB = 1
	CBC = 2

def detect_block_size(oracle, max_probe=MAX_PROBE_LENGTH):
	'''
	Grow a probe of identical bytes until the ciphertext length jumps.
	The size of the jump is the block size (PKCS#7 always adds at least one byte,
	so the length moves in whole blocks).
	'''
	baseline = len(oracle(b''))
	for n in range(1, max_probe + 1):
		length = len(oracle(FILLER_BYTE * n))
		if length != baseline:
			block_size = length - baseline
			log.debug('block size %d (length jumped after %d bytes)', block_size, n)
			return block_size
	raise NotFoundError(f'ciphertext length did not change within {max_probe} bytes')

def classify_mode(ciphertext, block_size):
	'''
	Two byte-identical blocks means ECB, otherwise assume CBC.
	The plaintext must contain at least two identical aligned blocks for this to mean anything.
	'''
	distances = hamming_distances(ciphertext, block_size)
	if not distances:
		return Mode.UNKNOWN
	if min(distances) == 0:
		return Mode.ECB
	return Mode.CBC

def detect_mode(oracle, block_size):
	# three blocks of the same byte always gives two aligned duplicates, whatever the prefix
	return classify_mode(oracle(FILLER_BYTE * (3 * block_size)), block_size)

def find_prefix_alignment(oracle, block_size=None, max_filler=MAX_PROBE_LENGTH):
	'''
	Find how many filler bytes push our data onto a block boundary.

	Returns (filler_len, first_controlled_block): sending filler_len filler bytes first means
	whatever comes next starts at block first_controlled_block.
	'''
	if block_size is None:
		block_size = detect_block_size(oracle)

	for filler_len in range(max_filler + 1):
		filler = FILLER_BYTE * filler_len
		ciphertexts = [oracle(filler + marker * (2 * block_size)) for marker in MARKER_BYTES]

		blocks = [chunks(ct, block_size) for ct in ciphertexts]
		for idx in range(min(len(b) for b in blocks) - 1):
			# both markers have to give a duplicated pair at the same index...
			if not all(b[idx] == b[idx + 1] for b in blocks):
				continue
			# ...and the pair has to actually depend on the marker
			if blocks[0][idx] == blocks[1][idx]:
				continue
			log.debug('aligned with %d filler bytes, controlled data starts at block %d', filler_len, idx)
			return filler_len, idx

	raise NotFoundError(f'no block alignment found within {max_filler} filler bytes')
