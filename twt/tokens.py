"""
Token generation and verification.

A token is the AES-256-CTR ciphertext of the JSON claims object, URL-safe
base64 encoded. The validity window travels inside the claims as two
base-36 integers: ``$`` (valid at) and ``$$`` (expires at), both in seconds
since the UNIX epoch.
"""

import json
import math
import time
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from .config import TWTSettings, default_settings
from .crypto_utils import IV_LENGTH, SECRET_KEY_LENGTH, decrypt, encrypt, get_salt_properties
from .encoding import from_url_safe_base64, parse_base36, to_base36
from .errors import ErrorCode, TWTError
from .logging import get_logger

VALID_AT_KEY = "$"
EXPIRES_AT_KEY = "$$"

_BAD_SECRET_MESSAGE = (
    'Bad "encodedSecret" provided: "encodedSecret" must be a URL-safe base64 encoded '
    'JSON object containing valid "secretKey" and "iv" properties'
)

logger = get_logger("twt.tokens")

Clock = Callable[[], int]


def now_seconds() -> int:
    """Current time in whole seconds since the UNIX epoch."""
    return math.floor(time.time())


class GenerateOptions(BaseModel):
    """Options for `generate_twt`."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    encoded_secret: Optional[str] = Field(default=None, alias="encodedSecret")
    valid_at: Optional[StrictInt] = Field(default=None, alias="validAt")
    expires_at: Optional[StrictInt] = Field(default=None, alias="expiresAt")


class VerifyOptions(BaseModel):
    """Options for `verify_twt`."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    encoded_secret: Optional[str] = Field(default=None, alias="encodedSecret")
    key_map: Optional[Dict[str, Any]] = Field(default=None, alias="keyMap")
    # Anything other than a finite number falls back to the default.
    allowable_clock_drift_seconds: Any = Field(default=None, alias="allowableClockDriftSeconds")


_FIELD_CODES = {
    "valid_at": ErrorCode.VALID_AT,
    "validAt": ErrorCode.VALID_AT,
    "expires_at": ErrorCode.EXPIRES_AT,
    "expiresAt": ErrorCode.EXPIRES_AT,
    "encoded_secret": ErrorCode.SECRET,
    "encodedSecret": ErrorCode.SECRET,
}
_CODE_PRIORITY = [ErrorCode.VALID_AT, ErrorCode.EXPIRES_AT, ErrorCode.SECRET, ErrorCode.OPTIONS]
_OPTION_MESSAGES = {
    ErrorCode.VALID_AT: '"validAt" must be a number (of seconds since the UNIX epoch)',
    ErrorCode.EXPIRES_AT: '"expiresAt" must be a number (of seconds since the UNIX epoch)',
    ErrorCode.SECRET: _BAD_SECRET_MESSAGE,
    ErrorCode.OPTIONS: "Invalid options",
}

OptionsT = TypeVar("OptionsT", GenerateOptions, VerifyOptions)
OptionsInput = Union[None, str, Mapping, GenerateOptions, VerifyOptions]


def _coerce_options(options: OptionsInput, model: Type[OptionsT]) -> OptionsT:
    if isinstance(options, model):
        return options
    if options is None:
        return model()
    if isinstance(options, str):
        return model(encoded_secret=options)
    if not isinstance(options, Mapping):
        raise TWTError(
            ErrorCode.OPTIONS,
            f"Options must be a mapping, an encoded secret or {model.__name__}",
            details={"type": type(options).__name__},
        )

    try:
        return model.model_validate(dict(options))
    except ValidationError as error:
        codes = {
            _FIELD_CODES.get(str(err["loc"][0]) if err["loc"] else "", ErrorCode.OPTIONS)
            for err in error.errors()
        }
        code = next(c for c in _CODE_PRIORITY if c in codes)
        raise TWTError(code, _OPTION_MESSAGES[code], cause=error) from error


def validate_encoded_secret(encoded_secret: Optional[str]) -> None:
    """
    Check that an encoded secret carries a 32 byte key and a 16 byte IV.

    Raises:
        TWTError: With code ESECRET when the secret is missing or malformed
    """
    if not encoded_secret:
        raise TWTError(ErrorCode.SECRET, _BAD_SECRET_MESSAGE)

    try:
        props = get_salt_properties(encoded_secret)
    except (ValueError, TypeError) as error:
        raise TWTError(ErrorCode.SECRET, _BAD_SECRET_MESSAGE, cause=error) from error

    if not isinstance(props, dict) or not props.get("secretKey") or not props.get("iv"):
        raise TWTError(ErrorCode.SECRET, _BAD_SECRET_MESSAGE)

    try:
        secret_key = from_url_safe_base64(str(props["secretKey"]))
        iv = from_url_safe_base64(str(props["iv"]))
    except ValueError as error:
        raise TWTError(ErrorCode.SECRET, _BAD_SECRET_MESSAGE, cause=error) from error

    if len(secret_key) != SECRET_KEY_LENGTH:
        raise TWTError(
            ErrorCode.SECRET,
            f'Bad "encodedSecret" provided: "encodedSecret.secretKey" must be {SECRET_KEY_LENGTH} bytes long',
            details={"length": len(secret_key)},
        )

    if len(iv) != IV_LENGTH:
        raise TWTError(
            ErrorCode.SECRET,
            f'Bad "encodedSecret" provided: "encodedSecret.iv" must be {IV_LENGTH} bytes long',
            details={"length": len(iv)},
        )


def _validate_window(now: int, valid_at: int, expires_at: int, max_window: int) -> None:
    if valid_at < now:
        raise TWTError(ErrorCode.VALID_AT, '"validAt" must be no sooner than "now" in seconds since the UNIX epoch')

    if valid_at > now + max_window:
        raise TWTError(ErrorCode.VALID_AT, '"validAt" can not be more than a year into the future')

    if expires_at < now:
        raise TWTError(ErrorCode.EXPIRES_AT, '"expiresAt" must be no sooner than "now" in seconds since the UNIX epoch')

    if expires_at < valid_at:
        raise TWTError(ErrorCode.EXPIRES_AT, '"expiresAt" must not be before "validAt"')

    if expires_at - valid_at > max_window:
        raise TWTError(ErrorCode.EXPIRES_AT, '"expiresAt" can not be more than a year into the future from "validAt"')


def _resolve_drift(value: Any, default: int) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        return value
    return default


def generate_twt(
    claims: Optional[Mapping] = None,
    options: OptionsInput = None,
    *,
    clock: Optional[Clock] = None,
    settings: Optional[TWTSettings] = None,
) -> str:
    """
    Generate an encrypted token for the given claims.

    Args:
        claims: JSON-serializable mapping embedded in the token
        options: GenerateOptions, a mapping of the same fields, or the
            encoded secret on its own
        clock: Source of the current time in seconds
        settings: Lifetime limits; built-in defaults when omitted

    Returns:
        URL-safe base64 token

    Raises:
        TWTError: EVALIDAT, EEXPIRESAT, ESECRET, ESERIALIZE or EENCRYPTION
    """
    opts = _coerce_options(options, GenerateOptions)
    settings = settings or default_settings()
    now = (clock or now_seconds)()

    valid_at = opts.valid_at or now
    expires_at = opts.expires_at or (valid_at + settings.default_expiration_seconds)

    _validate_window(now, valid_at, expires_at, settings.max_window_seconds)
    validate_encoded_secret(opts.encoded_secret)

    if claims is not None and not isinstance(claims, Mapping):
        raise TWTError(
            ErrorCode.SERIALIZE,
            "Serializing error: claims must be a mapping",
            details={"type": type(claims).__name__},
        )

    payload = dict(claims or {})
    payload[VALID_AT_KEY] = to_base36(valid_at)
    payload[EXPIRES_AT_KEY] = to_base36(expires_at)

    try:
        serialized = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as error:
        raise TWTError(ErrorCode.SERIALIZE, f"Serializing error: {error}", cause=error) from error

    try:
        token = encrypt(serialized, opts.encoded_secret)
    except Exception as error:
        raise TWTError(ErrorCode.ENCRYPTION, f"Encryption error: {error}", cause=error) from error

    logger.debug("Token issued", valid_at=valid_at, expires_at=expires_at)
    return token


def _decode_claims(token: str, encoded_secret: str) -> Dict[str, Any]:
    try:
        decrypted = decrypt(token, encoded_secret)
    except Exception as error:
        raise TWTError(ErrorCode.ENCRYPTION, f"Decryption error: {error}", cause=error) from error

    try:
        claims = json.loads(decrypted)
        if not isinstance(claims, dict):
            raise ValueError("token payload is not a JSON object")
        claims[VALID_AT_KEY] = parse_base36(claims[VALID_AT_KEY])
        claims[EXPIRES_AT_KEY] = parse_base36(claims[EXPIRES_AT_KEY])
    except (ValueError, KeyError, TypeError, RecursionError) as error:
        raise TWTError(ErrorCode.PARSE, f"Parsing error: {error}", cause=error) from error

    return claims


def _check_times(claims: Dict[str, Any], now: int, drift: float) -> None:
    valid_at = claims[VALID_AT_KEY]
    expires_at = claims[EXPIRES_AT_KEY]

    if valid_at <= 0 or expires_at <= 0:
        raise TWTError(ErrorCode.TIME, "Invalid token")

    if valid_at > expires_at:
        raise TWTError(ErrorCode.TIME, 'Token "validAt" is greater than "expiresAt"')

    valid_delta = now - valid_at
    if valid_delta < 0 and abs(valid_delta) > drift:
        raise TWTError(
            ErrorCode.WINDOW,
            "Token is not yet valid",
            details={"reason": "not_yet_valid", "seconds": abs(valid_delta)},
        )

    expire_delta = expires_at - now
    if expire_delta < 0 and abs(expire_delta) > drift:
        raise TWTError(
            ErrorCode.WINDOW,
            "Token has expired",
            details={"reason": "expired", "seconds": abs(expire_delta)},
        )


def _remap_claims(claims: Dict[str, Any], key_map: Optional[Mapping]) -> Dict[str, Any]:
    mapped = {}
    for key, value in claims.items():
        if key == VALID_AT_KEY:
            mapped_key = "validAt"
        elif key == EXPIRES_AT_KEY:
            mapped_key = "expiresAt"
        else:
            target = key_map.get(key) if key_map else None
            mapped_key = str(target) if target else key
        mapped[mapped_key] = value
    return mapped


def verify_twt(
    token: str,
    options: OptionsInput = None,
    *,
    clock: Optional[Clock] = None,
    settings: Optional[TWTSettings] = None,
) -> Dict[str, Any]:
    """
    Decrypt and validate a token.

    Args:
        token: Token produced by `generate_twt`
        options: VerifyOptions, a mapping of the same fields, or the
            encoded secret on its own
        clock: Source of the current time in seconds
        settings: Default clock drift; built-in defaults when omitted

    Returns:
        The claims, with ``validAt``, ``expiresAt`` and ``expiresIn`` added
        and keys renamed through ``key_map``

    Raises:
        TWTError: ESECRET, EENCRYPTION, EPARSE, ETIME or EWINDOW
    """
    try:
        opts = _coerce_options(options, VerifyOptions)
        settings = settings or default_settings()
        drift = _resolve_drift(opts.allowable_clock_drift_seconds, settings.allowable_clock_drift_seconds)

        validate_encoded_secret(opts.encoded_secret)

        now = (clock or now_seconds)()
        claims = _decode_claims(token, opts.encoded_secret)
        _check_times(claims, now, drift)
    except TWTError as error:
        logger.warning("Token verification failed", code=error.code.value, category=error.category.value)
        raise

    claims["expiresIn"] = claims[EXPIRES_AT_KEY] - claims[VALID_AT_KEY]
    logger.debug("Token verified", valid_at=claims[VALID_AT_KEY], expires_at=claims[EXPIRES_AT_KEY])

    return _remap_claims(claims, opts.key_map)


class TWTCodec:
    """Generates and verifies tokens with one secret, settings and clock."""

    def __init__(
        self,
        encoded_secret: str,
        settings: Optional[TWTSettings] = None,
        clock: Optional[Clock] = None,
    ):
        validate_encoded_secret(encoded_secret)
        self.encoded_secret = encoded_secret
        self.settings = settings or default_settings()
        self.clock = clock or now_seconds

    def generate(
        self,
        claims: Optional[Mapping] = None,
        valid_at: Optional[int] = None,
        expires_at: Optional[int] = None,
    ) -> str:
        options = {"encoded_secret": self.encoded_secret, "valid_at": valid_at, "expires_at": expires_at}
        return generate_twt(claims, options, clock=self.clock, settings=self.settings)

    def verify(
        self,
        token: str,
        key_map: Optional[Mapping[str, Any]] = None,
        allowable_clock_drift_seconds: Optional[float] = None,
    ) -> Dict[str, Any]:
        options = {
            "encoded_secret": self.encoded_secret,
            "key_map": dict(key_map) if key_map else None,
            "allowable_clock_drift_seconds": allowable_clock_drift_seconds,
        }
        return verify_twt(token, options, clock=self.clock, settings=self.settings)
