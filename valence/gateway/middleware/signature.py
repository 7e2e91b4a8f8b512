"""Ed25519 request-signature middleware.

- Headers: public_key (hex), address, signature (hex)
- The signed message is the address; it is also the storage key
- Missing headers or a failed verification -> InvalidSignatureError (401)
- healthz / metrics exempt

The check runs before any route handler, so a rejected request never
reaches the store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from valence.shared.errors import InvalidSignatureError

logger = logging.getLogger(__name__)

PUBLIC_KEY_HEADER = "public_key"
ADDRESS_HEADER = "address"
SIGNATURE_HEADER = "signature"

SignatureVerifier = Callable[[str, str, str], bool]


def verify_signature(public_key: str, message: str, signature: str) -> bool:
    """Verify an Ed25519 signature of `message`. Malformed input is False."""
    try:
        key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key))
        key.verify(bytes.fromhex(signature), message.encode("utf-8"))
    except (ValueError, InvalidSignature):
        return False
    return True


@dataclass(frozen=True)
class SignedRequest:
    """Identity proven by a verified request signature."""

    public_key: str
    address: str


class SignatureAuthMiddleware:
    """Signature check for gateway requests.

    Exempt paths (healthz, metrics) skip verification entirely.
    """

    def __init__(
        self,
        *,
        verifier: SignatureVerifier = verify_signature,
        exempt_paths: list[str] | None = None,
    ) -> None:
        self._verifier = verifier
        self._exempt_paths = set(exempt_paths or [])

    def authenticate(self, *, headers: Mapping[str, str], path: str) -> SignedRequest | None:
        """Authenticate request. Returns None for exempt paths.

        Raises InvalidSignatureError for missing headers or a signature
        that does not verify on non-exempt paths.
        """
        if path in self._exempt_paths:
            return None

        public_key = headers.get(PUBLIC_KEY_HEADER, "")
        address = headers.get(ADDRESS_HEADER, "")
        signature = headers.get(SIGNATURE_HEADER, "")
        logger.debug("Validating signature for address=%s", address)

        if not (public_key and address and signature):
            raise InvalidSignatureError("Missing signature headers")

        if not self._verifier(public_key, address, signature):
            logger.warning("Invalid signature for address=%s", address)
            raise InvalidSignatureError()

        return SignedRequest(public_key=public_key, address=address)
