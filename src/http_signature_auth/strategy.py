"""
HTTP Signature authentication strategy

Implements server-side verification of "Signing HTTP Messages"
(draft-cavage-http-signatures). Example request header:

    Authorization: Signature
      keyId="rsa-key-1",
      algorithm="rsa-sha256",
      headers="(request-target) host date digest content-length",
      signature="Base64(RSA-SHA256(signing string))"

Every attempt ends in exactly one of three outcomes: success with the
resolved identity, a challenge carrying the WWW-Authenticate value, or an
internal error raised by the credential lookup.
"""

import asyncio
import inspect
import logging
from typing import Any, Iterable, Optional, Tuple

from .config import StrategyConfig
from .crypto import verify_signature
from .exceptions import ConfigurationError, CredentialLookupError, ErrorCodes
from .params import is_signature_scheme, parse_authorization_params, split_authorization
from .signing_string import build_signing_string
from .types import (
    STRATEGY_NAME,
    AuthenticationResult,
    AuthorizationParams,
    CredentialLookup,
    LookupResult,
    SignatureRequest,
)

logger = logging.getLogger(__name__)


class HttpSignatureStrategy:
    """
    Verification strategy for the Signature authentication scheme

    The strategy holds only immutable configuration and can be shared by
    concurrent requests.
    """

    name = STRATEGY_NAME

    def __init__(
        self,
        get_user_and_key: CredentialLookup,
        config: Optional[StrategyConfig] = None,
        **options: Any
    ):
        """
        Initialize the strategy.

        Args:
            get_user_and_key: Credential lookup; called with the keyId and
                returning ``(user, key)`` or None, directly or as an awaitable.
                Raising signals a lookup fault. Synchronous callables run on
                the default executor.
            config: Strategy configuration
            **options: Shorthand for StrategyConfig fields (realm, headers, ...)
                when ``config`` is not given

        Raises:
            ConfigurationError: If both config and options are given, or the
                lookup is not callable
        """
        if not callable(get_user_and_key):
            raise ConfigurationError(
                "get_user_and_key must be callable",
                ErrorCodes.INVALID_CONFIG
            )
        if config is not None and options:
            raise ConfigurationError(
                "Pass either a StrategyConfig or keyword options, not both",
                ErrorCodes.INVALID_CONFIG,
                {"options": sorted(options)}
            )

        self.get_user_and_key = get_user_and_key
        self.config = config if config is not None else StrategyConfig(**options)

    @property
    def challenge_string(self) -> str:
        return self.config.challenge_string

    @property
    def mandatory_headers(self) -> Tuple[str, ...]:
        return self.config.mandatory_headers

    async def authenticate(self, request: Any) -> AuthenticationResult:
        """
        Authenticate a request.

        Args:
            request: SignatureRequest or any object exposing method, path and
                headers

        Returns:
            AuthenticationResult: success, challenge or error
        """
        signature_request = SignatureRequest.from_object(request)

        split = split_authorization(signature_request.get_header('authorization'))
        if split is None:
            return self._challenge("missing or malformed Authorization header")

        scheme, params_string = split
        if not is_signature_scheme(scheme):
            return self._challenge(f"scheme {scheme!r} is not Signature")

        try:
            params = AuthorizationParams.from_mapping(parse_authorization_params(params_string))
        except ValueError as e:
            return self._challenge(str(e))

        if not self._covers_mandatory_headers(params.headers):
            return self._challenge(f"declared headers {params.headers} miss a mandatory header")

        # Declared order, not configured order: it is the order the client signed
        signing_string = build_signing_string(params.headers, signature_request)

        try:
            credential = await self._lookup(params.key_id)
        except Exception as error:
            logger.warning(f"Credential lookup failed for key {params.key_id!r}: {error}")
            return AuthenticationResult.failed(error)

        user, key = credential if credential is not None else (None, None)
        # Any identity other than None is passed through, even a falsy one
        if user is None or key is None or (isinstance(key, (str, bytes)) and not key):
            return self._challenge(f"no credential for key {params.key_id!r}")

        if not verify_signature(
            params.algorithm,
            signing_string,
            params.signature,
            key,
            self.config.allowed_algorithms
        ):
            return self._challenge(f"signature invalid for key {params.key_id!r}")

        logger.debug(f"Authenticated request signed with key {params.key_id!r}")
        return AuthenticationResult.success(user)

    def authenticate_sync(self, request: Any) -> AuthenticationResult:
        """Run :meth:`authenticate` to completion from synchronous code"""
        return asyncio.run(self.authenticate(request))

    async def _lookup(self, key_id: str) -> LookupResult:
        """
        Resolve ``(user, key)`` for a key id.

        Exceptions raised by the lookup propagate unchanged. A timeout or a
        result that is not a pair is raised as CredentialLookupError.
        """
        if self.config.lookup_timeout is None:
            result = await self._call_lookup(key_id)
        else:
            try:
                result = await asyncio.wait_for(self._call_lookup(key_id), self.config.lookup_timeout)
            except asyncio.TimeoutError as e:
                raise CredentialLookupError(
                    f"Credential lookup timed out after {self.config.lookup_timeout}s",
                    ErrorCodes.LOOKUP_TIMEOUT,
                    {"key_id": key_id}
                ) from e

        if result is None:
            return None

        if not isinstance(result, (tuple, list)) or len(result) != 2:
            raise CredentialLookupError(
                f"Credential lookup must return (user, key) or None, got {type(result).__name__}",
                ErrorCodes.LOOKUP_FAILED,
                {"key_id": key_id}
            )

        return result[0], result[1]

    async def _call_lookup(self, key_id: str) -> Any:
        # Plain callables run on the default executor, off the event loop
        if inspect.iscoroutinefunction(self.get_user_and_key):
            result = self.get_user_and_key(key_id)
        else:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, self.get_user_and_key, key_id)

        if inspect.isawaitable(result):
            result = await result
        return result

    def _covers_mandatory_headers(self, declared: Iterable[str]) -> bool:
        """Check that the configured mandatory headers are a subset of ``declared``"""
        declared_set = set(declared)
        return all(header in declared_set for header in self.config.mandatory_headers)

    def _challenge(self, reason: str) -> AuthenticationResult:
        logger.debug(f"Challenging request: {reason}")
        return AuthenticationResult.challenged(self.config.challenge_string)


def create_strategy(get_user_and_key: CredentialLookup, **options: Any) -> HttpSignatureStrategy:
    """
    Create a strategy instance

    Args:
        get_user_and_key: Credential lookup
        **options: StrategyConfig fields

    Returns:
        HttpSignatureStrategy: Strategy instance
    """
    return HttpSignatureStrategy(get_user_and_key, **options)
