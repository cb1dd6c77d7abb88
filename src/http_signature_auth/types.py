"""
Type definitions for HTTP Signature authentication

This module provides the data classes shared by the parser, the signing-string
builder and the verification strategy: the inbound request view, the validated
Authorization parameters and the tagged authentication result.
"""

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import quote, urlsplit


AUTH_SCHEME = "signature"
REQUEST_TARGET = "(request-target)"
DATE_HEADER = "date"
DEFAULT_REALM = "Users"
STRATEGY_NAME = "http-signature"

# Always required, always first, not configurable
FIXED_MANDATORY_HEADERS: Tuple[str, ...] = (REQUEST_TARGET, DATE_HEADER)

# RFC 3986 pchar sub-delims plus "/", left unescaped when re-quoting a path
_PATH_SAFE = "/:@!$&'()*+,;="


class AuthOutcome(str, Enum):
    """Externally observed outcome of one authentication attempt"""
    SUCCESS = "success"
    CHALLENGE = "challenge"
    ERROR = "error"


def _wsgi_request_target(environ: Mapping[str, Any]) -> str:
    """
    Return the request target as the client sent it.

    Prefers the raw URI that gunicorn (``RAW_URI``), uWSGI/mod_wsgi and
    Werkzeug (``REQUEST_URI``) expose. Otherwise re-quotes ``SCRIPT_NAME`` +
    ``PATH_INFO``, which WSGI delivers percent-decoded as latin-1 text.
    """
    raw = environ.get('RAW_URI') or environ.get('REQUEST_URI')
    if raw:
        if '://' in raw.split('?', 1)[0]:
            # absolute-form target (proxy requests)
            parts = urlsplit(raw)
            raw = f"{parts.path or '/'}?{parts.query}" if parts.query else (parts.path or '/')
        return raw

    path = f"{environ.get('SCRIPT_NAME', '')}{environ.get('PATH_INFO', '')}" or '/'
    path = quote(path.encode('latin-1'), safe=_PATH_SAFE)
    query = environ.get('QUERY_STRING')
    return f"{path}?{query}" if query else path


@dataclass
class SignatureRequest:
    """
    Request view consumed by the signing-string builder

    Attributes:
        method: HTTP method (any case)
        path: Request path including the query string, without scheme/host
        headers: Request headers; names are lower-cased on construction
    """
    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Normalize headers to lowercase for case-insensitive lookup"""
        if not self.method:
            raise ValueError("Request method cannot be empty")

        if not isinstance(self.headers, Mapping):
            raise ValueError("Headers must be a mapping")

        self.headers = {str(k).lower(): v for k, v in self.headers.items()}

    def get_header(self, name: str) -> Optional[str]:
        """Return the header value for ``name`` (case-insensitive) or None"""
        return self.headers.get(name.lower())

    @classmethod
    def from_object(cls, request: Any) -> 'SignatureRequest':
        """
        Build a SignatureRequest from a framework request object.

        Accepts anything exposing ``method``, ``path`` and a dict-like or
        iterable-of-pairs ``headers`` attribute. WSGI requests (anything with
        an ``environ`` mapping, e.g. Flask/Werkzeug) use the undecoded
        request target instead of the decoded ``path``.
        """
        if isinstance(request, cls):
            return request

        headers: Dict[str, str] = {}
        request_headers = getattr(request, 'headers', None) or {}
        if hasattr(request_headers, 'items'):
            for key, value in request_headers.items():
                headers[key.lower()] = value
        else:
            for key, value in request_headers:
                headers[key.lower()] = value

        environ = getattr(request, 'environ', None)
        if isinstance(environ, Mapping):
            path = _wsgi_request_target(environ)
        else:
            path = getattr(request, 'path', '') or ''
        query = getattr(request, 'query_string', b'') or b''
        if isinstance(query, bytes):
            query = query.decode('latin-1')
        if query and '?' not in path:
            path = f"{path}?{query}"

        return cls(
            method=str(getattr(request, 'method', 'GET')),
            path=path,
            headers=headers,
        )


@dataclass
class AuthorizationParams:
    """
    Validated parameters of a ``Signature`` Authorization header

    Attributes:
        key_id: Opaque key identifier handed to the credential lookup
        algorithm: Algorithm name as sent by the client (e.g. "rsa-sha256")
        headers: Declared header names, in the order the client signed them
        signature: Base64 signature text
    """
    key_id: str
    algorithm: str
    headers: List[str]
    signature: str

    def __post_init__(self):
        """Reject missing or empty parameters"""
        if not self.key_id:
            raise ValueError("keyId cannot be empty")
        if not self.algorithm:
            raise ValueError("algorithm cannot be empty")
        if not self.headers:
            raise ValueError("headers cannot be empty")
        if not self.signature:
            raise ValueError("signature cannot be empty")

    @classmethod
    def from_mapping(cls, params: Mapping[str, str]) -> 'AuthorizationParams':
        """
        Create validated parameters from a parsed parameter mapping.

        Raises:
            ValueError: If any of keyId, algorithm, headers or signature is
                missing or empty
        """
        header_list = params.get('headers') or ''
        return cls(
            key_id=params.get('keyId') or '',
            algorithm=params.get('algorithm') or '',
            headers=header_list.split(' ') if header_list else [],
            signature=params.get('signature') or '',
        )


@dataclass
class AuthenticationResult:
    """
    Tagged result of one authentication attempt

    Exactly one of ``user``, ``challenge`` or ``error`` is meaningful,
    selected by ``outcome``.
    """
    outcome: AuthOutcome
    user: Any = None
    challenge: Optional[str] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, user: Any) -> 'AuthenticationResult':
        return cls(outcome=AuthOutcome.SUCCESS, user=user)

    @classmethod
    def challenged(cls, challenge: str) -> 'AuthenticationResult':
        return cls(outcome=AuthOutcome.CHALLENGE, challenge=challenge)

    @classmethod
    def failed(cls, error: BaseException) -> 'AuthenticationResult':
        return cls(outcome=AuthOutcome.ERROR, error=error)

    @property
    def is_success(self) -> bool:
        return self.outcome == AuthOutcome.SUCCESS

    def dispatch(
        self,
        on_success: Callable[[Any], Any],
        on_challenge: Callable[[str], Any],
        on_error: Callable[[BaseException], Any],
    ) -> Any:
        """Invoke exactly one continuation for this outcome and return its value"""
        if self.outcome == AuthOutcome.SUCCESS:
            return on_success(self.user)
        if self.outcome == AuthOutcome.CHALLENGE:
            return on_challenge(self.challenge)
        return on_error(self.error)


# Type aliases for convenience
HeaderDict = Dict[str, str]
Credential = Tuple[Any, Any]  # (identity, key material)
LookupResult = Optional[Credential]
CredentialLookup = Callable[[str], Union[LookupResult, Awaitable[LookupResult]]]
