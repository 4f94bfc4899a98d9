"""
Compact encrypted time-bounded tokens (TWTs).

This package is organised in three layers:

- encoding: URL-safe base64 and base-36 transcoding
- crypto_utils: secret bundles, AES-256-CTR and token hashing
- tokens: claim embedding, generation and verification

Supporting modules:

- errors: TWTError and its machine-readable codes
- config: Lifetime limits via pydantic-settings
- logging: Structured logging
"""

from .config import TWTSettings, get_settings
from .crypto_utils import (
    decrypt,
    encrypt,
    generate_salt,
    get_salt_properties,
    hash_token,
)
from .encoding import from_url_safe_base64, to_url_safe_base64
from .errors import ErrorCategory, ErrorCode, ErrorResponse, TWTError
from .tokens import (
    GenerateOptions,
    TWTCodec,
    VerifyOptions,
    generate_twt,
    now_seconds,
    validate_encoded_secret,
    verify_twt,
)

__version__ = "1.0.0"

__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "ErrorResponse",
    "GenerateOptions",
    "TWTCodec",
    "TWTError",
    "TWTSettings",
    "VerifyOptions",
    "decrypt",
    "encrypt",
    "from_url_safe_base64",
    "generate_salt",
    "generate_twt",
    "get_salt_properties",
    "get_settings",
    "hash_token",
    "now_seconds",
    "to_url_safe_base64",
    "validate_encoded_secret",
    "verify_twt",
]
