"""
Envelope Crypto - AES-256-GCM for flag configuration records

Envelope layout (base64 for transport):
    16-byte nonce | ciphertext | 16-byte authentication tag
"""

import base64
import binascii
from typing import Union

from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes

from ghostflags.core.exceptions import CryptoError
from ghostflags.core.secret_key import SecretKey

NONCE_SIZE = 16
TAG_SIZE = 16


def encrypt(plaintext: Union[str, bytes], key: SecretKey) -> str:
	"""
	Encrypt a rule string or a whole configuration document.

	A fresh random nonce is drawn on every call.

	Returns:
	    Base64 envelope suitable for a TXT record value
	"""
	if isinstance(plaintext, str):
		plaintext = plaintext.encode('utf-8')

	nonce = get_random_bytes(NONCE_SIZE)
	cipher = AES.new(key.raw, AES.MODE_GCM, nonce=nonce, mac_len=TAG_SIZE)
	ciphertext, tag = cipher.encrypt_and_digest(plaintext)

	return base64.b64encode(nonce + ciphertext + tag).decode('ascii')


def decrypt(envelope: str, key: SecretKey) -> bytes:
	"""
	Decode and authenticate an envelope.

	Args:
	    envelope: Base64 text taken from the TXT record
	    key: Shared secret

	Returns:
	    Decrypted plaintext bytes

	Raises:
	    CryptoError: invalid base64, truncated envelope or tag mismatch
	"""
	try:
		data = base64.b64decode(''.join(envelope.split()), validate=True)
	except (binascii.Error, ValueError, AttributeError) as e:
		raise CryptoError(f'Envelope is not valid base64: {e}') from e

	if len(data) < NONCE_SIZE + TAG_SIZE:
		raise CryptoError(f'Envelope too short: {len(data)} bytes, need at least {NONCE_SIZE + TAG_SIZE}')

	nonce = data[:NONCE_SIZE]
	tag = data[-TAG_SIZE:]
	ciphertext = data[NONCE_SIZE:-TAG_SIZE]

	cipher = AES.new(key.raw, AES.MODE_GCM, nonce=nonce, mac_len=TAG_SIZE)
	try:
		return cipher.decrypt_and_verify(ciphertext, tag)
	except ValueError as e:
		raise CryptoError('Envelope authentication failed') from e
