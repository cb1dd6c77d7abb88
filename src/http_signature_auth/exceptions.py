"""
Exception classes for HTTP Signature authentication
"""

from typing import Optional, Dict, Any


class HttpSignatureError(Exception):
    """Base exception for all HTTP Signature errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.error_code}, details: {self.details})"
        return f"{self.message} (code: {self.error_code})"


class ConfigurationError(HttpSignatureError):
    """Exception raised for invalid strategy configuration"""
    pass


class CredentialLookupError(HttpSignatureError):
    """Exception raised when the credential lookup collaborator fails"""
    pass


class SigningError(HttpSignatureError):
    """Exception raised when a request cannot be signed"""
    pass


class KeyFormatError(HttpSignatureError):
    """Exception raised when key material cannot be loaded"""
    pass


class UnsupportedAlgorithmError(HttpSignatureError):
    """Exception raised for algorithm names the crypto backend cannot handle"""
    pass


class ErrorCodes:
    """Standard error codes"""

    # Configuration errors
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_REALM = "INVALID_REALM"
    INVALID_HEADERS = "INVALID_HEADERS"
    INVALID_TIMEOUT = "INVALID_TIMEOUT"
    PARSE_ERROR = "PARSE_ERROR"
    FILE_ERROR = "FILE_ERROR"

    # Credential lookup errors
    LOOKUP_FAILED = "LOOKUP_FAILED"
    LOOKUP_TIMEOUT = "LOOKUP_TIMEOUT"

    # Key and algorithm errors
    INVALID_PUBLIC_KEY = "INVALID_PUBLIC_KEY"
    INVALID_PRIVATE_KEY = "INVALID_PRIVATE_KEY"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
    KEY_ALGORITHM_MISMATCH = "KEY_ALGORITHM_MISMATCH"

    # Signing errors
    INVALID_KEY_ID = "INVALID_KEY_ID"
    SIGNING_FAILED = "SIGNING_FAILED"
    MISSING_HEADER = "MISSING_HEADER"
