#!/usr/bin/env python3
'''
oraclelib - recover plaintext from block cipher oracles without the key

detect_block_size / classify_mode / find_prefix_alignment learn the shape of an encryption oracle,
ByteAtATimeAttack recovers the secret suffix behind an ECB oracle,
forge_ecb_blocks encrypts chosen blocks for ECB cut-and-paste,
PaddingOracleAttack decrypts (and forges) CBC ciphertexts given a padding oracle.
'''
from .cbc import PaddingOracleAttack, recover_cbc_plaintext
from .detect import Mode, classify_mode, detect_block_size, detect_mode, find_prefix_alignment
from .ecb import ByteAtATimeAttack, forge_ecb_blocks, recover_ecb_suffix
from .errors import EmptyError, InvalidPaddingError, MismatchedLengthsError, NotFoundError, OracleError
from .util import hamming_distance, pkcs7_pad, strip_pkcs7_padding

__all__ = [
	'ByteAtATimeAttack',
	'EmptyError',
	'InvalidPaddingError',
	'MismatchedLengthsError',
	'Mode',
	'NotFoundError',
	'OracleError',
	'PaddingOracleAttack',
	'classify_mode',
	'detect_block_size',
	'detect_mode',
	'find_prefix_alignment',
	'forge_ecb_blocks',
	'hamming_distance',
	'pkcs7_pad',
	'recover_cbc_plaintext',
	'recover_ecb_suffix',
	'strip_pkcs7_padding',
]
