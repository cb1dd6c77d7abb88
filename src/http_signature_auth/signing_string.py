"""
Signing string construction

This module rebuilds the exact text a client signed: one ``name: value`` line
per declared header, in the declared order, joined by newlines.
"""

from typing import Iterable, List

from .types import REQUEST_TARGET, SignatureRequest


class SigningStringBuilder:
    """
    Signing string builder for the Signature scheme
    """

    def __init__(self, request: SignatureRequest):
        """
        Initialize the builder.

        Args:
            request: Request whose components are signed
        """
        self.request = request

    def build(self, headers: Iterable[str]) -> str:
        """
        Build the signing string.

        The builder is total: headers the request does not carry contribute an
        empty value instead of raising.

        Args:
            headers: Header names in the order the client signed them

        Returns:
            str: Newline-joined signing string without a trailing newline
        """
        lines: List[str] = []
        for header in headers:
            if header == REQUEST_TARGET:
                lines.append(self._build_request_target_line())
            else:
                lines.append(self._build_header_line(header))
        return '\n'.join(lines)

    def _build_request_target_line(self) -> str:
        # Only the method is case-folded, never the path
        return f"{REQUEST_TARGET}: {self.request.method.lower()} {self.request.path}"

    def _build_header_line(self, header: str) -> str:
        value = self.request.headers.get(header)
        return f"{header}: {value if value else ''}"


def build_signing_string(headers: Iterable[str], request: SignatureRequest) -> str:
    """
    Build the signing string for a request.

    Args:
        headers: Declared header names (lower-case tokens), in signing order
        request: Request view

    Returns:
        str: Signing string
    """
    return SigningStringBuilder(request).build(headers)
