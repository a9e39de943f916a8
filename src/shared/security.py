"""
Security utilities for the token harness.

This module provides input validation for the values entered on the harness page
and the security headers applied to every harness response.
"""

import re
from typing import Optional
from urllib.parse import urlparse


class InputValidator:
    """
    Input validation for harness form values.

    The harness forwards values to the identity provider verbatim, so validation
    only rejects inputs that cannot form a usable URL or would break markup.
    """

    REALM_PATTERN = re.compile(r'^[^\s/?#]+$')
    DANGEROUS_URI_CHARS = ['<', '>', '"', "'", ' ', '\n', '\r', '\t']

    @staticmethod
    def validate_redirect_uri(redirect_uri: str, allowed_schemes: Optional[list] = None) -> bool:
        """
        Validate a redirect URI or API origin.

        Args:
            redirect_uri: URI to validate
            allowed_schemes: List of allowed URI schemes (default: ['http', 'https'])

        Returns:
            bool: True if valid URI, False otherwise
        """
        if not isinstance(redirect_uri, str):
            return False

        if allowed_schemes is None:
            allowed_schemes = ['http', 'https']

        try:
            parsed = urlparse(redirect_uri)
        except ValueError:
            return False

        if parsed.scheme not in allowed_schemes or not parsed.netloc:
            return False

        return not any(char in redirect_uri for char in InputValidator.DANGEROUS_URI_CHARS)

    @staticmethod
    def validate_realm(realm: str) -> bool:
        """Realm must be a single non-blank path segment before encoding."""
        if not isinstance(realm, str):
            return False
        return 1 <= len(realm) <= 255 and InputValidator.REALM_PATTERN.match(realm) is not None


class SecurityHeaders:
    """
    Security headers for HTTP responses.

    Provides standard security headers to protect against
    common web vulnerabilities.
    """

    @staticmethod
    def get_harness_security_headers() -> dict:
        """
        Get security headers for harness pages.

        Tokens are rendered into the page, so responses must never be cached.

        Returns:
            dict: Dictionary of security headers
        """
        return {
            'X-Content-Type-Options': 'nosniff',
            'X-Frame-Options': 'DENY',
            'Referrer-Policy': 'no-referrer',
            'Cache-Control': 'no-cache, no-store, must-revalidate',
            'Pragma': 'no-cache',
            'Expires': '0'
        }
