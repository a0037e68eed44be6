def redact_token(token: str | None, visible_chars: int = 6) -> str:
    """
    Redact an identity token for logging purposes.
    Shows the first few characters followed by ***.
    """
    if not token:
        return "anonymous"
    if len(token) <= visible_chars:
        return "***"
    return f"{token[:visible_chars]}***"


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
