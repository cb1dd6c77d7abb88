"""
HTTP client integration for request signing

Signs outbound ``requests`` traffic with the Signature scheme, either per
request (``auth=HttpSignatureAuth(...)``) or for a whole session.
"""

import logging
from typing import Optional, Sequence, Union
from urllib.parse import urlsplit

import requests
from requests.auth import AuthBase
from requests.models import PreparedRequest

from .crypto import KeyMaterial
from .signer import DEFAULT_ALGORITHM, HeaderSigner

logger = logging.getLogger(__name__)


class HttpSignatureAuth(AuthBase):
    """
    ``requests`` authentication handler for the Signature scheme

    Example:
        auth = HttpSignatureAuth('rsa-key-1', private_pem, headers=['(request-target)', 'date', 'host'])
        requests.get('https://api.example.com/foo', auth=auth)
    """

    def __init__(
        self,
        key_id: str,
        private_key: KeyMaterial,
        algorithm: str = DEFAULT_ALGORITHM,
        headers: Optional[Sequence[str]] = None,
        password: Optional[Union[str, bytes]] = None
    ):
        self.signer = HeaderSigner(
            key_id,
            private_key,
            algorithm=algorithm,
            headers=headers,
            password=password
        )

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        url_parts = urlsplit(request.url)
        path = url_parts.path or '/'
        if url_parts.query:
            path = f"{path}?{url_parts.query}"

        headers = dict(request.headers)
        # The transport adds Host after auth runs; sign the value it will send
        if 'host' in self.signer.headers and 'host' not in {k.lower() for k in headers}:
            headers['Host'] = url_parts.netloc

        signed = self.signer.sign(request.method, path, headers, body=request.body)
        request.headers.update(signed)

        logger.debug(f"Signed {request.method} request to {request.url}")
        return request


def create_signing_session(
    key_id: str,
    private_key: KeyMaterial,
    algorithm: str = DEFAULT_ALGORITHM,
    headers: Optional[Sequence[str]] = None,
    password: Optional[Union[str, bytes]] = None,
    session: Optional[requests.Session] = None
) -> requests.Session:
    """
    Create (or configure) a session that signs every request.

    Args:
        key_id: Key identifier
        private_key: Private key material
        algorithm: Signature algorithm name
        headers: Headers to sign
        password: Passphrase for an encrypted PEM key
        session: Existing session to configure

    Returns:
        requests.Session: Session with signing auth installed
    """
    session = session or requests.Session()
    session.auth = HttpSignatureAuth(
        key_id,
        private_key,
        algorithm=algorithm,
        headers=headers,
        password=password
    )
    logger.info(f"Configured request signing for key ID: {key_id}")
    return session
