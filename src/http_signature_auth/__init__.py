"""
HTTP Signature authentication
Server-side verification and client-side signing for the Signature scheme
("Signing HTTP Messages", draft-cavage-http-signatures)
"""

from .version import __version__
from .types import (
    AUTH_SCHEME,
    REQUEST_TARGET,
    DEFAULT_REALM,
    STRATEGY_NAME,
    AuthOutcome,
    AuthenticationResult,
    AuthorizationParams,
    SignatureRequest,
    CredentialLookup,
)
from .exceptions import (
    HttpSignatureError,
    ConfigurationError,
    CredentialLookupError,
    SigningError,
    KeyFormatError,
    UnsupportedAlgorithmError,
    ErrorCodes,
)
from .params import (
    parse_authorization_params,
    split_authorization,
    format_authorization,
)
from .signing_string import (
    SigningStringBuilder,
    build_signing_string,
)
from .crypto import (
    SUPPORTED_ALGORITHMS,
    verify_signature,
    sign_signing_string,
    load_public_key,
    load_private_key,
    generate_private_key,
)
from .config import StrategyConfig
from .strategy import HttpSignatureStrategy, create_strategy
from .signer import HeaderSigner, calculate_digest
from .integration import HttpSignatureAuth, create_signing_session

__all__ = [
    '__version__',
    # Types
    'AUTH_SCHEME',
    'REQUEST_TARGET',
    'DEFAULT_REALM',
    'STRATEGY_NAME',
    'AuthOutcome',
    'AuthenticationResult',
    'AuthorizationParams',
    'SignatureRequest',
    'CredentialLookup',
    # Exceptions
    'HttpSignatureError',
    'ConfigurationError',
    'CredentialLookupError',
    'SigningError',
    'KeyFormatError',
    'UnsupportedAlgorithmError',
    'ErrorCodes',
    # Parsing
    'parse_authorization_params',
    'split_authorization',
    'format_authorization',
    # Signing string
    'SigningStringBuilder',
    'build_signing_string',
    # Crypto
    'SUPPORTED_ALGORITHMS',
    'verify_signature',
    'sign_signing_string',
    'load_public_key',
    'load_private_key',
    'generate_private_key',
    # Verification
    'StrategyConfig',
    'HttpSignatureStrategy',
    'create_strategy',
    # Client signing
    'HeaderSigner',
    'calculate_digest',
    'HttpSignatureAuth',
    'create_signing_session',
]
