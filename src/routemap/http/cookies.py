"""Cookie header parsing for the request view."""


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Returns an empty dict for empty or missing headers. When a name
    repeats, the first occurrence wins (the most specific path is sent
    first by browsers).
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" in pair:
            key, _, value = pair.partition("=")
            cookies.setdefault(key.strip(), value.strip())
    return cookies
