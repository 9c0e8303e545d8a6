"""
URL identity helpers - canonical form used as the dedup key for a run.

Canonicalization never touches the network and never raises: anything that
does not parse as an absolute URL comes back trimmed but otherwise untouched.
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_PARAMS = frozenset({
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "gclid",
    "fbclid",
    "ref",
    "ref_src",
    "source",
})

DEFAULT_PORTS = {"http": 80, "https": 443}


def _rebuild_netloc(parts):
    hostname = (parts.hostname or "").lower()
    if ":" in hostname:
        hostname = f"[{hostname}]"

    userinfo = ""
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo += f":{parts.password}"
        userinfo += "@"

    port = ""
    if parts.port is not None and DEFAULT_PORTS.get(parts.scheme.lower()) != parts.port:
        port = f":{parts.port}"
    return f"{userinfo}{hostname}{port}"


def canonicalize_url(raw_url):
    """
    Normalize a URL so two links to the same resource compare equal.

    Rules: drop the fragment, lower-case the host, remove tracking params,
    sort the remaining params by key (stable for repeated keys) and strip one
    trailing slash from non-root paths.
    """
    text = (raw_url or "").strip()

    try:
        parts = urlsplit(text)
        # Accessing .port validates it (raises ValueError when out of range)
        parts.port
    except ValueError:
        return text

    if not parts.scheme or not parts.hostname:
        return text

    params = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key.lower() not in TRACKING_PARAMS
    ]
    params.sort(key=lambda pair: pair[0])

    path = parts.path or "/"
    if path != "/" and path.endswith("/"):
        path = path[:-1]

    return urlunsplit((
        parts.scheme.lower(),
        _rebuild_netloc(parts),
        path,
        urlencode(params),
        "",
    ))


def to_source_domain(url):
    """Lower-cased hostname of a URL, or "unknown" when there is none."""
    try:
        hostname = urlsplit((url or "").strip()).hostname
    except ValueError:
        return "unknown"
    return hostname.lower() if hostname else "unknown"


def dedupe_by_canonical_url(items):
    """
    Keep the first item per canonical source_url, preserving input order.

    Retained items are copied with source_url rewritten to the canonical
    form; later duplicates are dropped without being reported.
    """
    seen = set()
    deduped = []

    for item in items:
        canonical = canonicalize_url(item["source_url"])
        if canonical in seen:
            continue

        seen.add(canonical)
        deduped.append({**item, "source_url": canonical})

    return deduped
