def redact_token(token: str | None) -> str:
    """
    Redact a token or API key for logging purposes.
    Shows the first 4 characters followed by ***.
    """
    if not token:
        return "None"
    if len(token) <= 4:
        return "***"
    return f"{token[:4]}***"


def bearer_headers(token: str | None) -> dict[str, str]:
    """Authorization header for a bearer token; empty when there is no token."""
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}
