import base64

DEFAULT_AUTH_HEADER = "Authorization"


def basic_auth_value(user: str, password: str) -> str:
    """Build a Basic authentication header value."""
    token = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"
