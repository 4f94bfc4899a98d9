"""
Cryptographic utilities: secret bundles, AES-256-CTR and token hashing.
"""

import hashlib
import json
import secrets
from typing import Any, Dict, Tuple

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .encoding import from_url_safe_base64, to_url_safe_base64

SECRET_KEY_LENGTH = 32
IV_LENGTH = 16


def random_bytes(length: int) -> bytes:
    """Return `length` bytes from the OS CSPRNG."""
    return secrets.token_bytes(length)


def sha512(data: str) -> str:
    """Return the hex SHA-512 digest of UTF-8 text."""
    return hashlib.sha512(data.encode("utf-8")).hexdigest()


def hash_token(token: str, salt: str) -> str:
    """
    Hash a token together with a salt.

    Args:
        token: Token to hash
        salt: Non-empty salt prepended to the token

    Returns:
        Hex encoded SHA-512 digest of salt + token
    """
    if not salt:
        raise ValueError('hash_token: "salt" can not be empty')

    return sha512(f"{salt}{token}")


def get_salt_properties(salt: str) -> Dict[str, Any]:
    """Decode an encoded secret bundle into its JSON properties."""
    raw = from_url_safe_base64(salt, "utf-8")
    return json.loads(raw)


def generate_salt() -> str:
    """
    Generate a new encoded secret bundle.

    Returns:
        URL-safe base64 JSON object holding a 32 byte ``secretKey`` and a
        16 byte ``iv``, each URL-safe base64 encoded
    """
    props = {
        "secretKey": to_url_safe_base64(random_bytes(SECRET_KEY_LENGTH)),
        "iv": to_url_safe_base64(random_bytes(IV_LENGTH)),
    }
    return to_url_safe_base64(json.dumps(props, separators=(",", ":")))


def _key_material(salt: str) -> Tuple[bytes, bytes]:
    props = get_salt_properties(salt)
    secret_key = from_url_safe_base64(props["secretKey"])
    iv = from_url_safe_base64(props["iv"])

    if len(secret_key) != SECRET_KEY_LENGTH:
        raise ValueError(f"Invalid key length: expected {SECRET_KEY_LENGTH} bytes, got {len(secret_key)}")
    if len(iv) != IV_LENGTH:
        raise ValueError(f"Invalid IV length: expected {IV_LENGTH} bytes, got {len(iv)}")

    return secret_key, iv


def _cipher(salt: str) -> Cipher:
    secret_key, iv = _key_material(salt)
    return Cipher(algorithms.AES(secret_key), modes.CTR(iv))


def encrypt(value: Any, salt: str) -> str:
    """
    Encrypt a value with AES-256-CTR.

    Text is UTF-8 encoded before encryption. The ciphertext carries no
    authentication tag.

    Returns:
        URL-safe base64 ciphertext
    """
    data = value if isinstance(value, (bytes, bytearray)) else str(value).encode("utf-8")
    encryptor = _cipher(salt).encryptor()
    encrypted = encryptor.update(bytes(data)) + encryptor.finalize()
    return to_url_safe_base64(encrypted)


def decrypt(value: str, salt: str) -> str:
    """
    Decrypt URL-safe base64 ciphertext produced by `encrypt`.

    Bytes that are not valid UTF-8 are replaced rather than rejected.
    """
    ciphertext = from_url_safe_base64(value)
    decryptor = _cipher(salt).decryptor()
    decrypted = decryptor.update(ciphertext) + decryptor.finalize()
    return decrypted.decode("utf-8", errors="replace")
