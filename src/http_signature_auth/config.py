"""
Configuration management for the HTTP Signature strategy

Provides the immutable per-strategy configuration and loaders for JSON
documents, files and environment variables.
"""

import json
import os
import re
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union
from dataclasses import dataclass, field
from pathlib import Path

from .crypto import SUPPORTED_ALGORITHMS
from .exceptions import ConfigurationError, ErrorCodes
from .types import DEFAULT_REALM, FIXED_MANDATORY_HEADERS

ENV_PREFIX = "HTTP_SIGNATURE_"

_LIST_SEPARATOR = re.compile(r'[\s,]+')


def _split_list(value: str) -> Tuple[str, ...]:
    return tuple(item for item in _LIST_SEPARATOR.split(value.strip()) if item)


def _normalize_names(value: Union[str, Iterable[str], None], what: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(name.lower() for name in _split_list(value))

    names = []
    for name in value:
        if not isinstance(name, str) or not name.strip() or any(c.isspace() for c in name.strip()):
            raise ConfigurationError(
                f"Invalid {what} entry: {name!r}",
                ErrorCodes.INVALID_HEADERS,
                {what: list(value)}
            )
        names.append(name.strip().lower())
    return tuple(names)


@dataclass(frozen=True)
class StrategyConfig:
    """
    Immutable strategy configuration

    Attributes:
        realm: Realm reported in challenges (default "Users")
        headers: Additional headers every request must sign
        allowed_algorithms: Optional allow-list of algorithm names; None accepts
            whatever the crypto backend supports
        lookup_timeout: Optional deadline in seconds for the credential lookup
        mandatory_headers: "(request-target)", "date", then ``headers``
        challenge_string: Value for the WWW-Authenticate challenge
    """
    realm: str = DEFAULT_REALM
    headers: Tuple[str, ...] = ()
    allowed_algorithms: Optional[Tuple[str, ...]] = None
    lookup_timeout: Optional[float] = None
    mandatory_headers: Tuple[str, ...] = field(init=False)
    challenge_string: str = field(init=False)

    def __post_init__(self):
        """Normalize, validate and derive the challenge string"""
        realm = self.realm or DEFAULT_REALM
        if not isinstance(realm, str) or '"' in realm:
            raise ConfigurationError(
                f"Invalid realm: {realm!r}",
                ErrorCodes.INVALID_REALM
            )

        headers = _normalize_names(self.headers, 'headers')

        allowed = None
        if self.allowed_algorithms is not None:
            allowed = _normalize_names(self.allowed_algorithms, 'allowed_algorithms')
            unknown = [name for name in allowed if name not in SUPPORTED_ALGORITHMS]
            if unknown or not allowed:
                raise ConfigurationError(
                    f"Unsupported algorithms in allow-list: {unknown}",
                    ErrorCodes.INVALID_CONFIG,
                    {"supported": list(SUPPORTED_ALGORITHMS)}
                )

        timeout = self.lookup_timeout
        if timeout is not None:
            try:
                timeout = float(timeout)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"Lookup timeout must be a number: {self.lookup_timeout!r}",
                    ErrorCodes.INVALID_TIMEOUT
                )
            if timeout <= 0:
                raise ConfigurationError(
                    "Lookup timeout must be positive",
                    ErrorCodes.INVALID_TIMEOUT
                )

        mandatory = FIXED_MANDATORY_HEADERS + headers
        challenge = f'Signature realm="{realm}",headers="{" ".join(mandatory)}"'

        object.__setattr__(self, 'realm', realm)
        object.__setattr__(self, 'headers', headers)
        object.__setattr__(self, 'allowed_algorithms', allowed)
        object.__setattr__(self, 'lookup_timeout', timeout)
        object.__setattr__(self, 'mandatory_headers', mandatory)
        object.__setattr__(self, 'challenge_string', challenge)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'StrategyConfig':
        """
        Create configuration from a mapping.

        Recognized keys: realm, headers, allowed_algorithms, lookup_timeout.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                "Configuration must be a mapping",
                ErrorCodes.INVALID_CONFIG
            )

        known = {'realm', 'headers', 'allowed_algorithms', 'lookup_timeout'}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {unknown}",
                ErrorCodes.INVALID_CONFIG,
                {"unknown": unknown}
            )

        return cls(**dict(data))

    @classmethod
    def from_json(cls, json_string: str) -> 'StrategyConfig':
        """Load configuration from a JSON string"""
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Failed to parse configuration JSON: {e}", ErrorCodes.PARSE_ERROR)
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'StrategyConfig':
        """Load configuration from a JSON file"""
        try:
            with open(Path(file_path), 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration file: {e}", ErrorCodes.FILE_ERROR)
        return cls.from_json(json_string)

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None
    ) -> 'StrategyConfig':
        """
        Load configuration from environment variables.

        Reads ``<prefix>REALM``, ``<prefix>HEADERS``, ``<prefix>ALLOWED_ALGORITHMS``
        and ``<prefix>LOOKUP_TIMEOUT``. List values are space or comma separated.
        """
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}

        if env.get(f"{prefix}REALM"):
            data['realm'] = env[f"{prefix}REALM"]
        if env.get(f"{prefix}HEADERS"):
            data['headers'] = _split_list(env[f"{prefix}HEADERS"])
        if env.get(f"{prefix}ALLOWED_ALGORITHMS"):
            data['allowed_algorithms'] = _split_list(env[f"{prefix}ALLOWED_ALGORITHMS"])
        if env.get(f"{prefix}LOOKUP_TIMEOUT"):
            data['lookup_timeout'] = env[f"{prefix}LOOKUP_TIMEOUT"]

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the configurable fields"""
        return {
            'realm': self.realm,
            'headers': list(self.headers),
            'allowed_algorithms': list(self.allowed_algorithms) if self.allowed_algorithms is not None else None,
            'lookup_timeout': self.lookup_timeout,
        }
