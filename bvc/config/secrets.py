"""
Private key encryption at rest.

AES-256-GCM with a key derived from a passphrase by scrypt. The stored blob
is a dict of hex strings: {"kdf", "salt", "nonce", "ciphertext"}.
"""

import os
from typing import Dict

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..core.errors import ConfigurationError

PASSPHRASE_ENV = "BVC_KEY_PASSPHRASE"

_SCRYPT_N = 2 ** 14
_SCRYPT_R = 8
_SCRYPT_P = 1


def _derive_key(passphrase: str, salt: bytes) -> bytes:
    kdf = Scrypt(salt=salt, length=32, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P)
    return kdf.derive(passphrase.encode("utf-8"))


def encrypt_secret(plaintext: str, passphrase: str) -> Dict[str, str]:
    """
    Encrypt a secret string.

    Args:
        plaintext: Secret (e.g. a private key)
        passphrase: User passphrase

    Returns:
        Blob suitable for user-config.json
    """
    if not passphrase:
        raise ConfigurationError("Passphrase must not be empty")
    salt = os.urandom(16)
    nonce = os.urandom(12)
    ciphertext = AESGCM(_derive_key(passphrase, salt)).encrypt(nonce, plaintext.encode("utf-8"), None)
    return {
        "kdf": "scrypt",
        "salt": salt.hex(),
        "nonce": nonce.hex(),
        "ciphertext": ciphertext.hex(),
    }


def decrypt_secret(blob: Dict[str, str], passphrase: str) -> str:
    """
    Decrypt a blob produced by encrypt_secret.

    Raises:
        ConfigurationError: On a wrong passphrase or a malformed blob
    """
    try:
        salt = bytes.fromhex(blob["salt"])
        nonce = bytes.fromhex(blob["nonce"])
        ciphertext = bytes.fromhex(blob["ciphertext"])
    except (KeyError, ValueError) as ex:
        raise ConfigurationError(
            f"Encrypted private key is malformed: {ex}",
            remediation="Set the key again with 'bvc config --private-key <key>'.",
        ) from ex
    try:
        plaintext = AESGCM(_derive_key(passphrase, salt)).decrypt(nonce, ciphertext, None)
    except InvalidTag as ex:
        raise ConfigurationError(
            "Wrong passphrase for the encrypted private key",
            remediation=f"Check {PASSPHRASE_ENV} or the passphrase you typed.",
        ) from ex
    return plaintext.decode("utf-8")
