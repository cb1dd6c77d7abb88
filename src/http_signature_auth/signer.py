"""
Client-side request signing for the Signature scheme

Produces the ``Authorization: Signature ...`` header a strategy verifies. The
signing string is built by the same builder the server uses, so both sides
agree byte for byte.
"""

import base64
import hashlib
import logging
from email.utils import formatdate
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .crypto import KeyMaterial, load_private_key, resolve_algorithm, sign_signing_string
from .exceptions import ErrorCodes, SigningError
from .params import format_authorization
from .signing_string import build_signing_string
from .types import DATE_HEADER, FIXED_MANDATORY_HEADERS, REQUEST_TARGET, SignatureRequest

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "rsa-sha256"
DIGEST_HEADER = "digest"


def calculate_digest(body: Union[str, bytes, None]) -> str:
    """
    Calculate a ``Digest`` header value for a request body.

    Returns:
        str: "SHA-256=<base64 digest>"
    """
    if body is None:
        body = b""
    elif isinstance(body, str):
        body = body.encode('utf-8')

    digest = base64.b64encode(hashlib.sha256(body).digest()).decode('ascii')
    return f"SHA-256={digest}"


class HeaderSigner:
    """
    Signs request headers with a private key

    Attributes:
        key_id: Key identifier sent as ``keyId``
        algorithm: Lower-case algorithm name
        headers: Header names to sign, in signing order
    """

    def __init__(
        self,
        key_id: str,
        private_key: KeyMaterial,
        algorithm: str = DEFAULT_ALGORITHM,
        headers: Optional[Sequence[str]] = None,
        password: Optional[Union[str, bytes]] = None
    ):
        """
        Initialize the signer.

        Args:
            key_id: Key identifier
            private_key: PEM private key or loaded ``cryptography`` key
            algorithm: Signature algorithm name
            headers: Headers to sign (default: "(request-target)" and "date")
            password: Passphrase for an encrypted PEM key

        Raises:
            SigningError: If key_id or headers are invalid
            UnsupportedAlgorithmError: If the algorithm is unknown
            KeyFormatError: If the key cannot be loaded
        """
        if not key_id or '"' in key_id:
            raise SigningError(
                f"Invalid key id: {key_id!r}",
                ErrorCodes.INVALID_KEY_ID
            )

        resolve_algorithm(algorithm)

        names: List[str] = [h.lower() for h in headers] if headers else list(FIXED_MANDATORY_HEADERS)
        if any(not name or ' ' in name for name in names):
            raise SigningError(
                f"Invalid header list: {names}",
                ErrorCodes.INVALID_HEADERS
            )

        self.key_id = key_id
        self.algorithm = algorithm.lower()
        self.headers = names
        self._private_key = load_private_key(private_key, password)

    def sign(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Union[str, bytes, None] = None
    ) -> Dict[str, str]:
        """
        Sign a request.

        A ``Date`` header is added when missing, and a ``Digest`` header when
        ``digest`` is signed and absent.

        Args:
            method: HTTP method
            path: Request path including the query string
            headers: Request headers
            body: Request body, used only for the Digest header

        Returns:
            dict: Copy of ``headers`` with Date/Digest and Authorization set

        Raises:
            SigningError: If a header to sign is missing from the request
        """
        signed = dict(headers or {})
        present = {name.lower() for name in signed}

        if DATE_HEADER not in present:
            signed['Date'] = formatdate(usegmt=True)
        if DIGEST_HEADER in self.headers and DIGEST_HEADER not in present:
            signed['Digest'] = calculate_digest(body)

        signed['Authorization'] = self.build_authorization(method, path, signed)
        logger.debug(f"Signed {method.upper()} {path} with key {self.key_id!r}")
        return signed

    def build_authorization(self, method: str, path: str, headers: Mapping[str, str]) -> str:
        """
        Build the Authorization header value for a request.

        Raises:
            SigningError: If a header to sign is missing from ``headers``
        """
        request = SignatureRequest(method=method, path=path, headers=dict(headers))
        missing = [
            name for name in self.headers
            if name != REQUEST_TARGET and request.get_header(name) is None
        ]
        if missing:
            raise SigningError(
                f"Headers to sign are missing from the request: {missing}",
                ErrorCodes.MISSING_HEADER,
                {"missing": missing}
            )

        signing_string = build_signing_string(self.headers, request)
        signature = sign_signing_string(self.algorithm, signing_string, self._private_key)

        return format_authorization({
            'keyId': self.key_id,
            'algorithm': self.algorithm,
            'headers': ' '.join(self.headers),
            'signature': signature,
        })
