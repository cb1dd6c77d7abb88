"""
Authorization header parsing and formatting

Handles the ``Signature`` scheme's parameter string:

    keyId="rsa-key-1",algorithm="rsa-sha256",headers="(request-target) date",signature="..."
"""

import re
from typing import Dict, Mapping, Optional, Tuple

from .types import AUTH_SCHEME

# key="value" followed by a comma or the end of input; no escape processing
_PARAM_PATTERN = re.compile(r'(\w+)="([^"]*)"(?:,|\Z)', re.ASCII)

# Canonical order used when rendering a header
_PARAM_ORDER = ('keyId', 'algorithm', 'headers', 'signature')


def parse_authorization_params(auth: str) -> Dict[str, str]:
    """
    Parse a ``key="value",...`` parameter string.

    Malformed segments are skipped and never raise; missing keys are left for
    the caller to detect. When a key repeats, the last occurrence wins.

    Args:
        auth: Parameter string (the Authorization value after the scheme)

    Returns:
        dict: Parameter name to raw value
    """
    params: Dict[str, str] = {}
    if not auth:
        return params

    for match in _PARAM_PATTERN.finditer(auth):
        params[match.group(1)] = match.group(2)

    return params


def split_authorization(authorization: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Split an Authorization header value on its first space.

    Returns:
        tuple: (scheme, parameter string), or None when the value is empty or
        has no space
    """
    if not authorization:
        return None

    scheme, sep, rest = authorization.partition(' ')
    if not sep:
        return None

    return scheme, rest


def is_signature_scheme(scheme: str) -> bool:
    """Case-insensitive comparison with the ``Signature`` scheme"""
    return scheme.lower() == AUTH_SCHEME


def format_authorization(params: Mapping[str, str], scheme: str = 'Signature') -> str:
    """
    Render an Authorization header value.

    Known parameters come first in keyId, algorithm, headers, signature order;
    any others follow in mapping order.
    """
    ordered = [name for name in _PARAM_ORDER if name in params]
    ordered += [name for name in params if name not in _PARAM_ORDER]
    rendered = ','.join(f'{name}="{params[name]}"' for name in ordered)
    return f'{scheme} {rendered}'
