"""
Package registry lookups.

Each lookup produces a single entry describing the latest published version,
pointing at the package's repository when the registry knows it.
"""

from urllib.parse import quote

import requests

from ingest.rss import REQUEST_TIMEOUT, USER_AGENT

NPM_REGISTRY_URL = "https://registry.npmjs.org/{name}"
NPM_PACKAGE_URL = "https://www.npmjs.com/package/{name}"
PYPI_JSON_URL = "https://pypi.org/pypi/{name}/json"
PYPI_PROJECT_URL = "https://pypi.org/project/{name}/"


def fetch_json(url, timeout=REQUEST_TIMEOUT):
    response = requests.get(
        url,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )
    response.raise_for_status()
    return response.json()


def _clean_repository_url(value):
    if not value:
        return ""
    url = value.strip()
    if url.startswith("git+"):
        url = url[len("git+"):]
    if url.endswith(".git"):
        url = url[:-len(".git")]
    if url.startswith("git://"):
        url = "https://" + url[len("git://"):]
    return url if url.startswith(("http://", "https://")) else ""


def fetch_npm_items(source, max_items=1):
    package_name = source["identifier"].strip()
    payload = fetch_json(NPM_REGISTRY_URL.format(name=quote(package_name, safe="@")))

    latest = (payload.get("dist-tags") or {}).get("latest")
    published_at = (payload.get("time") or {}).get(latest) if latest else None

    repository = payload.get("repository")
    repository_url = repository.get("url") if isinstance(repository, dict) else repository
    url = _clean_repository_url(repository_url) or NPM_PACKAGE_URL.format(name=package_name)

    if latest:
        title = f"{package_name} published {latest}"
    else:
        title = f"{package_name} package registry update"

    snippet = payload.get("description") or (
        f"{package_name} posted a new npm update. "
        "Inspect changelog and dependency impact for downstream apps."
    )

    return [{
        "title": title,
        "url": url,
        "snippet": snippet,
        "published_at": published_at,
    }]


def fetch_pypi_items(source, max_items=1):
    package_name = source["identifier"].strip()
    payload = fetch_json(PYPI_JSON_URL.format(name=quote(package_name)))

    info = payload.get("info") or {}
    latest = info.get("version")

    # Upload time of the first file in the latest release
    files = payload.get("urls") or []
    published_at = files[0].get("upload_time_iso_8601") if files else None

    project_urls = info.get("project_urls") or {}
    url = ""
    for key in ("Source", "Source Code", "Repository", "Homepage"):
        if (project_urls.get(key) or "").startswith(("http://", "https://")):
            url = project_urls[key]
            break
    url = url or info.get("project_url") or PYPI_PROJECT_URL.format(name=package_name)

    if latest:
        title = f"{package_name} released {latest} on PyPI"
    else:
        title = f"{package_name} package registry update"

    snippet = info.get("summary") or (
        f"{package_name} posted a new PyPI release. "
        "Inspect changelog and dependency impact for downstream apps."
    )

    return [{
        "title": title,
        "url": url,
        "snippet": snippet,
        "published_at": published_at,
    }]
