"""
Signature primitives for the Signature scheme

Maps algorithm names such as ``rsa-sha256`` onto the ``cryptography`` package's
asymmetric primitives. Verification fails closed: an unknown algorithm, an
unloadable key or an undecodable signature is reported exactly like a
signature that does not match.
"""

import base64
import logging
from typing import Any, Iterable, Optional, Tuple, Type, Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from .exceptions import (
    ErrorCodes,
    KeyFormatError,
    SigningError,
    UnsupportedAlgorithmError,
)

logger = logging.getLogger(__name__)

RSA = "rsa"
ECDSA = "ecdsa"
ED25519 = "ed25519"

_DIGESTS = {
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

SUPPORTED_ALGORITHMS: Tuple[str, ...] = (
    tuple(f"{RSA}-{name}" for name in _DIGESTS)
    + tuple(f"{ECDSA}-{name}" for name in ("sha256", "sha384", "sha512"))
    + (ED25519,)
)

KeyMaterial = Union[str, bytes, Any]


def resolve_algorithm(
    algorithm: str,
    allowed_algorithms: Optional[Iterable[str]] = None
) -> Tuple[str, Optional[Type[hashes.HashAlgorithm]]]:
    """
    Resolve an algorithm name into a key family and digest.

    Args:
        algorithm: Algorithm name, case-insensitive (e.g. "RSA-SHA256")
        allowed_algorithms: Optional allow-list of lower-case names

    Returns:
        tuple: (key family, hash class or None for ed25519)

    Raises:
        UnsupportedAlgorithmError: If the name is unknown or not allowed
    """
    name = (algorithm or "").lower()

    if allowed_algorithms is not None and name not in allowed_algorithms:
        raise UnsupportedAlgorithmError(
            f"Algorithm not allowed: {algorithm}",
            ErrorCodes.UNSUPPORTED_ALGORITHM,
            {"algorithm": algorithm}
        )

    if name not in SUPPORTED_ALGORITHMS:
        raise UnsupportedAlgorithmError(
            f"Unsupported algorithm: {algorithm}",
            ErrorCodes.UNSUPPORTED_ALGORITHM,
            {"algorithm": algorithm, "supported": list(SUPPORTED_ALGORITHMS)}
        )

    if name == ED25519:
        return ED25519, None

    family, _, digest = name.partition("-")
    return family, _DIGESTS[digest]


def _to_bytes(key: Union[str, bytes]) -> bytes:
    return key.encode("utf-8") if isinstance(key, str) else key


def load_public_key(key: KeyMaterial) -> Any:
    """
    Load a public key.

    Accepts a loaded ``cryptography`` public key, PEM text/bytes (public key
    or X.509 certificate) or DER bytes.

    Raises:
        KeyFormatError: If the key cannot be loaded
    """
    if isinstance(key, (rsa.RSAPublicKey, ec.EllipticCurvePublicKey, Ed25519PublicKey)):
        return key

    if not isinstance(key, (str, bytes)):
        raise KeyFormatError(
            f"Unsupported public key type: {type(key).__name__}",
            ErrorCodes.INVALID_PUBLIC_KEY
        )

    data = _to_bytes(key)
    try:
        if b"-----BEGIN CERTIFICATE-----" in data:
            return x509.load_pem_x509_certificate(data).public_key()
        if data.lstrip().startswith(b"-----"):
            return serialization.load_pem_public_key(data)
        return serialization.load_der_public_key(data)
    except (ValueError, TypeError) as e:
        raise KeyFormatError(
            f"Failed to load public key: {e}",
            ErrorCodes.INVALID_PUBLIC_KEY
        ) from e


def load_private_key(key: KeyMaterial, password: Optional[Union[str, bytes]] = None) -> Any:
    """
    Load a private key from PEM text/bytes, optionally encrypted.

    Raises:
        KeyFormatError: If the key cannot be loaded
    """
    if isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, Ed25519PrivateKey)):
        return key

    if not isinstance(key, (str, bytes)):
        raise KeyFormatError(
            f"Unsupported private key type: {type(key).__name__}",
            ErrorCodes.INVALID_PRIVATE_KEY
        )

    secret = _to_bytes(password) if password is not None else None
    try:
        return serialization.load_pem_private_key(_to_bytes(key), password=secret)
    except (ValueError, TypeError) as e:
        raise KeyFormatError(
            f"Failed to load private key: {e}",
            ErrorCodes.INVALID_PRIVATE_KEY
        ) from e


def _check_key_family(family: str, key: Any, rsa_type: type, ec_type: type, ed_type: type) -> None:
    expected = {RSA: rsa_type, ECDSA: ec_type, ED25519: ed_type}[family]
    if not isinstance(key, expected):
        raise KeyFormatError(
            f"Key type {type(key).__name__} does not match algorithm family {family}",
            ErrorCodes.KEY_ALGORITHM_MISMATCH,
            {"family": family}
        )


def verify_signature(
    algorithm: str,
    signing_string: str,
    signature: str,
    public_key: KeyMaterial,
    allowed_algorithms: Optional[Iterable[str]] = None
) -> bool:
    """
    Verify a base64 signature over a signing string.

    Never raises: every failure, including an unsupported algorithm, returns
    False.

    Args:
        algorithm: Algorithm name from the Authorization header
        signing_string: Reconstructed signing string
        signature: Base64 signature text
        public_key: Public key material
        allowed_algorithms: Optional allow-list of lower-case algorithm names

    Returns:
        bool: True if the signature is valid
    """
    try:
        family, digest = resolve_algorithm(algorithm, allowed_algorithms)
        key = load_public_key(public_key)
        _check_key_family(family, key, rsa.RSAPublicKey, ec.EllipticCurvePublicKey, Ed25519PublicKey)
        signature_bytes = base64.b64decode(signature, validate=True)
        message = signing_string.encode("utf-8")

        if family == RSA:
            key.verify(signature_bytes, message, padding.PKCS1v15(), digest())
        elif family == ECDSA:
            key.verify(signature_bytes, message, ec.ECDSA(digest()))
        else:
            key.verify(signature_bytes, message)
        return True

    except InvalidSignature:
        return False
    except Exception as e:
        logger.debug(f"Signature verification could not run: {e}")
        return False


def sign_signing_string(
    algorithm: str,
    signing_string: str,
    private_key: KeyMaterial,
    password: Optional[Union[str, bytes]] = None
) -> str:
    """
    Sign a signing string and return the base64 signature.

    Raises:
        UnsupportedAlgorithmError: If the algorithm is unknown
        KeyFormatError: If the key cannot be loaded or does not fit the algorithm
        SigningError: If the primitive fails
    """
    family, digest = resolve_algorithm(algorithm)
    key = load_private_key(private_key, password)
    _check_key_family(family, key, rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, Ed25519PrivateKey)
    message = signing_string.encode("utf-8")

    try:
        if family == RSA:
            signature = key.sign(message, padding.PKCS1v15(), digest())
        elif family == ECDSA:
            signature = key.sign(message, ec.ECDSA(digest()))
        else:
            signature = key.sign(message)
    except Exception as e:
        raise SigningError(
            f"Signing failed: {e}",
            ErrorCodes.SIGNING_FAILED,
            {"algorithm": algorithm}
        ) from e

    return base64.b64encode(signature).decode("ascii")


def generate_private_key(key_type: str = RSA, key_size: int = 2048) -> Any:
    """
    Generate a private key for one of the supported families.

    Args:
        key_type: "rsa", "ec"/"ecdsa" (P-256) or "ed25519"
        key_size: RSA modulus size in bits
    """
    if key_type == RSA:
        return rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    if key_type in ("ec", ECDSA):
        return ec.generate_private_key(ec.SECP256R1())
    if key_type == ED25519:
        return Ed25519PrivateKey.generate()

    raise UnsupportedAlgorithmError(
        f"Unsupported key type: {key_type}",
        ErrorCodes.UNSUPPORTED_ALGORITHM,
        {"key_type": key_type}
    )


def private_key_to_pem(private_key: Any, password: Optional[Union[str, bytes]] = None) -> str:
    """Serialize a private key as PKCS#8 PEM, encrypted when a password is given"""
    if password:
        encryption = serialization.BestAvailableEncryption(_to_bytes(password))
    else:
        encryption = serialization.NoEncryption()

    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    ).decode("ascii")


def public_key_to_pem(key: Any) -> str:
    """Serialize the public half of a key pair as SubjectPublicKeyInfo PEM"""
    public_key = key.public_key() if hasattr(key, "private_bytes") else key
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
