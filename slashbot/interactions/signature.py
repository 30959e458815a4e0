from __future__ import annotations

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

from slashbot.core.errors import ConfigError

SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"


def _verify_with_key(key: VerifyKey, raw_body: bytes, signature_hex: str | None, timestamp: str | None) -> bool:
    if not signature_hex or not timestamp:
        return False
    try:
        signature = bytes.fromhex(signature_hex)
        # signed over the exact bytes received; headers arrive decoded as latin-1
        key.verify(timestamp.encode("latin-1") + bytes(raw_body), signature)
    except (BadSignatureError, CryptoError, ValueError, TypeError):
        return False
    return True


def verify(raw_body: bytes, signature_hex: str | None, timestamp: str | None, public_key_hex: str) -> bool:
    try:
        key = VerifyKey(bytes.fromhex(public_key_hex))
    except (CryptoError, ValueError, TypeError):
        return False
    return _verify_with_key(key, raw_body, signature_hex, timestamp)


class SignatureVerifier:
    def __init__(self, public_key_hex: str):
        try:
            self._key = VerifyKey(bytes.fromhex(public_key_hex))
        except (CryptoError, ValueError, TypeError) as e:
            raise ConfigError(code="PUBLIC_KEY_INVALID", message="public key must be 32 bytes of hex") from e

    def verify(self, raw_body: bytes, signature_hex: str | None, timestamp: str | None) -> bool:
        return _verify_with_key(self._key, raw_body, signature_hex, timestamp)
