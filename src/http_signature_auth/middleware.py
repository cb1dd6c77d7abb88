"""
Web framework integration for request verification

Maps the strategy's three outcomes onto framework responses: the identity is
exposed to the view, a challenge becomes ``401`` with ``WWW-Authenticate``,
and a lookup fault becomes ``500``.
"""

import logging
from typing import Any, Callable, Optional

from .strategy import HttpSignatureStrategy

logger = logging.getLogger(__name__)


def create_flask_authenticator(
    strategy: HttpSignatureStrategy,
    user_attribute: str = 'user'
) -> Callable[[], Optional[Any]]:
    """
    Create a Flask ``before_request`` hook

    Args:
        strategy: Verification strategy
        user_attribute: Attribute of ``flask.g`` receiving the identity

    Returns:
        Callable suitable for ``app.before_request`` or
        ``blueprint.before_request``
    """
    try:
        from flask import Response, g, request  # type: ignore
    except ImportError:
        raise ImportError("Flask is required for Flask middleware. Install with: pip install http-signature-auth[flask]")

    def on_success(user: Any) -> None:
        setattr(g, user_attribute, user)
        return None

    def on_challenge(challenge: str) -> Any:
        return Response('Unauthorized', status=401, headers={'WWW-Authenticate': challenge})

    def on_error(error: BaseException) -> Any:
        logger.error(f"Signature authentication failed with an internal error: {error}")
        return Response('Internal Server Error', status=500)

    def flask_signature_authentication():
        result = strategy.authenticate_sync(request)
        return result.dispatch(on_success, on_challenge, on_error)

    return flask_signature_authentication
