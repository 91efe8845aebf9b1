#!/usr/bin/env python3
import logging
import time

from oraclelib import PaddingOracleAttack, recover_ecb_suffix, strip_pkcs7_padding
from oraclelib.remote import HTTPEncryptionOracle, HTTPPaddingOracle

BASE_URL = 'http://localhost:8080'
VERBOSE = True

logging.basicConfig(level=logging.INFO)

padding_oracle = HTTPPaddingOracle(BASE_URL)
ciphertext = padding_oracle.fetch_ciphertext()

print(f'[+] Got ciphertext: {ciphertext.hex()}')
print('[+] Decrypting without crib...')

t0_no_crib = time.time_ns()
attack = PaddingOracleAttack(ciphertext, padding_oracle, verbose=VERBOSE)
plaintext = attack.decrypt()
t1_no_crib = time.time_ns()

print(strip_pkcs7_padding(plaintext, attack.block_size))
guesses_per_byte_no_crib = attack.stats / len(plaintext)
print()

print('[+] Decrypting with crib...')
t0_crib = time.time_ns()
attack = PaddingOracleAttack(ciphertext, padding_oracle, crib=PaddingOracleAttack.CRIB_ENGLISH, verbose=VERBOSE)
plaintext = attack.decrypt()
t1_crib = time.time_ns()

print(strip_pkcs7_padding(plaintext, attack.block_size))
guesses_per_byte_crib = attack.stats / len(plaintext)
print()

no_crib = t1_no_crib - t0_no_crib
crib = t1_crib - t0_crib
delta = crib / no_crib * 100
print(f'[+] Crib took {delta:.1f}% of the time to decrypt vs without crib')
print(f'[+] Guesses per byte:\n    Without crib = {guesses_per_byte_no_crib:.1f}\n    With crib    = {guesses_per_byte_crib:.1f}')
print()

print('[+] Encrypting message: a test message!')
attack = PaddingOracleAttack(ciphertext, padding_oracle, verbose=VERBOSE)
forged = attack.encrypt(b'a test message!')
print(forged.hex())
print(f'[+] Server accepts forged ciphertext: {padding_oracle(forged)}')
print()

print('[+] Recovering the ECB secret...')
t0_ecb = time.time_ns()
secret = recover_ecb_suffix(HTTPEncryptionOracle(BASE_URL), verbose=VERBOSE)
t1_ecb = time.time_ns()
print(secret.decode(errors='replace'))
print(f'[+] ECB recovery took {(t1_ecb - t0_ecb) / 1000000000:.1f} seconds')
