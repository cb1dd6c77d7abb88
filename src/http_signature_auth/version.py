"""Version information for http-signature-auth"""

__version__ = "0.1.0"
