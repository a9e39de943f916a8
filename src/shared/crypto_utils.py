"""
Cryptographic helpers for the authorization code flow.

Covers the CSRF state parameter generated per login attempt and the HTTP Basic
credential value used for token introspection (RFC 7617).
"""

import secrets
import base64


STATE_BYTES = 16


def generate_state(num_bytes: int = STATE_BYTES) -> str:
    """
    Generate a state parameter for CSRF protection.

    Creates a cryptographically random token encoded as lowercase hex, so the
    length is fixed (two characters per byte) and the alphabet unambiguous.

    Args:
        num_bytes: Number of random bytes (minimum 16)

    Returns:
        str: Hex encoded state value

    Example:
        state = generate_state()
        # "9f86d081884c7d659a2feaa0c55ad015"
    """
    if num_bytes < STATE_BYTES:
        raise ValueError(f"State needs at least {STATE_BYTES} bytes of entropy")
    return secrets.token_hex(num_bytes)


def constant_time_compare(a: str, b: str) -> bool:
    """
    Perform constant-time string comparison.

    Prevents timing attacks by ensuring comparison time doesn't depend
    on where strings differ. Comparison is exact, not case-insensitive.

    Args:
        a: First string
        b: Second string

    Returns:
        bool: True if strings are equal, False otherwise
    """
    return secrets.compare_digest(a.encode('utf-8'), b.encode('utf-8'))


def basic_auth_header_value(client_id: str, client_secret: str) -> str:
    """
    Build the `Authorization` header value for HTTP Basic client credentials.

    Args:
        client_id: OAuth client identifier
        client_secret: OAuth client secret

    Returns:
        str: "Basic " followed by base64(client_id:client_secret)

    Example:
        basic_auth_header_value("c", "s")
        # "Basic Yzpz"
    """
    raw = f"{client_id}:{client_secret}".encode('utf-8')
    return f"Basic {base64.b64encode(raw).decode('ascii')}"
