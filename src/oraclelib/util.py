#!/usr/bin/env python3
from .errors import EmptyError, InvalidPaddingError, MismatchedLengthsError

def chunks(data, block_size):
	'''Split data into block_size pieces. The last piece may be short.'''
	return [data[n:n+block_size] for n in range(0, len(data), block_size)]

def xor_bytes(a, b):
	if len(a) != len(b):
		raise MismatchedLengthsError(f'cannot xor {len(a)} bytes with {len(b)} bytes')
	return bytes([x ^ y for x, y in zip(a, b)])

def hamming_distance(a, b):
	'''Number of bits that differ between a and b'''
	if len(a) != len(b):
		raise MismatchedLengthsError(f'cannot compare {len(a)} bytes with {len(b)} bytes')
	return sum(bin(x ^ y).count('1') for x, y in zip(a, b))

def hamming_distances(data, block_size):
	'''Hamming distances between every ordered pair of distinct full blocks in data'''
	# a trailing partial block can't be compared with anything
	blocks = [block for block in chunks(data, block_size) if len(block) == block_size]
	results = []
	for i in range(len(blocks)):
		for j in range(len(blocks)):
			if i == j:
				continue
			results.append(hamming_distance(blocks[i], blocks[j]))
	return results

def min_hamming_distance(data, block_size):
	distances = hamming_distances(data, block_size)
	if not distances:
		raise EmptyError('need at least two full blocks to compare')
	return min(distances)

def pkcs7_pad(data, block_size):
	'''Always adds between 1 and block_size bytes, each holding the padding length'''
	padding = block_size - (len(data) % block_size)
	return data + bytes([padding for n in range(padding)])

def strip_pkcs7_padding(data, block_size):
	if len(data) == 0:
		raise EmptyError('nothing to unpad')
	if len(data) % block_size != 0:
		raise InvalidPaddingError(f'length {len(data)} is not a multiple of {block_size}')

	padding_len = data[-1]
	if not 0 < padding_len <= block_size:
		raise InvalidPaddingError(f'bad padding length {padding_len}')

	# every padding byte must hold the padding length
	if data[-padding_len:] != bytes([padding_len]) * padding_len:
		raise InvalidPaddingError('inconsistent padding bytes')
	return data[:-padding_len]
