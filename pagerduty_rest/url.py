from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

DEFAULT_PAGE_LIMIT = 100


def update_url(address: str, offset: int = 0) -> str:
    """Make sure the query string of a GET url carries the pagination params.

    ``offset``, ``total`` and ``limit`` are added when missing. Values the
    caller already put in the query string are kept untouched, whatever they
    are. Other params keep their original order, the added ones follow in the
    order offset, total, limit.

    Example:
        >>> update_url("http://localhost:3333/users?query=Test%20User&total=false", 10)
        'http://localhost:3333/users?query=Test%20User&total=false&offset=10&limit=100'
    """
    parts = urlsplit(address)
    params = parse_qsl(parts.query, keep_blank_values=True)
    present = {name for name, _ in params}

    defaults = [
        ("offset", str(offset)),
        ("total", "true"),
        ("limit", str(DEFAULT_PAGE_LIMIT)),
    ]
    params.extend((name, value) for name, value in defaults if name not in present)

    return urlunsplit(parts._replace(query=urlencode(params, quote_via=quote)))
