"""
Shared fixtures for the HTTP Signature test suite

Keys are generated once per session. The RSA private key is serialized with
a passphrase, like a key created with ``openssl genrsa -des3``.
"""

import base64
from email.utils import formatdate
from typing import Any, Dict, List, Optional, Union

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from http_signature_auth.types import SignatureRequest

RSA_PASSPHRASE = '123456'


@pytest.fixture(scope='session')
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope='session')
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope='session')
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope='session')
def ed25519_key():
    return Ed25519PrivateKey.generate()


def _public_pem(private_key) -> str:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode('ascii')


@pytest.fixture(scope='session')
def rsa_private_pem(rsa_key) -> str:
    """Passphrase-protected PEM of ``rsa_key``"""
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.BestAvailableEncryption(RSA_PASSPHRASE.encode()),
    ).decode('ascii')


@pytest.fixture(scope='session')
def rsa_public_pem(rsa_key) -> str:
    return _public_pem(rsa_key)


@pytest.fixture(scope='session')
def other_rsa_public_pem(other_rsa_key) -> str:
    return _public_pem(other_rsa_key)


@pytest.fixture(scope='session')
def ec_public_pem(ec_key) -> str:
    return _public_pem(ec_key)


@pytest.fixture(scope='session')
def ed25519_public_pem(ed25519_key) -> str:
    return _public_pem(ed25519_key)


@pytest.fixture(scope='session')
def rsa_sign(rsa_key):
    """Sign a message with RSA-SHA256, independently of the library under test"""
    def _sign(message: str) -> str:
        signature = rsa_key.sign(message.encode('utf-8'), padding.PKCS1v15(), hashes.SHA256())
        return base64.b64encode(signature).decode('ascii')
    return _sign


_DEFAULT = object()


@pytest.fixture
def make_request(rsa_sign):
    """
    Factory for signed test requests

    Args of the returned callable:
        method: HTTP method (default "GET")
        path: Request path (default "/foo")
        headers: Extra request headers; a None value removes a default header
        scheme: Authorization scheme (default "Signature")
        params: Overrides for keyId/algorithm/headers; None removes the entry
        signature: None to omit it, a string to send verbatim, a list of
            header names to sign from the request, or a dict of lines to sign
    """
    def _make(
        method: str = 'GET',
        path: str = '/foo',
        headers: Optional[Dict[str, Optional[str]]] = None,
        scheme: str = 'Signature',
        params: Optional[Dict[str, Optional[str]]] = None,
        signature: Any = _DEFAULT,
    ) -> SignatureRequest:
        request_headers: Dict[str, str] = {
            'date': formatdate(usegmt=True),
            'content-length': '1234',
        }
        for name, value in (headers or {}).items():
            if value is None:
                request_headers.pop(name, None)
            else:
                request_headers[name] = value

        if 'authorization' not in request_headers:
            auth_params: Dict[str, str] = {
                'keyId': 'some key',
                'algorithm': 'rsa-sha256',
                'headers': '(request-target) date',
            }
            for name, value in (params or {}).items():
                if value is None:
                    auth_params.pop(name, None)
                else:
                    auth_params[name] = value

            if signature is not None:
                auth_params['signature'] = _make_signature(signature, method, path, request_headers)

            rendered = ','.join(f'{name}="{value}"' for name, value in auth_params.items())
            request_headers['authorization'] = f'{scheme} {rendered}'

        return SignatureRequest(method=method, path=path, headers=request_headers)

    def _make_signature(
        signature: Union[str, List[str], Dict[str, str], object],
        method: str,
        path: str,
        request_headers: Dict[str, str]
    ) -> str:
        if isinstance(signature, str):
            return signature
        if isinstance(signature, dict):
            return rsa_sign('\n'.join(f'{name}: {value}' for name, value in signature.items()))

        names = signature if isinstance(signature, list) else ['(request-target)', 'date']
        lines = []
        for name in names:
            if name == '(request-target)':
                lines.append(f'{name}: {method.lower()} {path}')
            else:
                lines.append(f'{name}: {request_headers.get(name, "")}')
        return rsa_sign('\n'.join(lines))

    return _make
