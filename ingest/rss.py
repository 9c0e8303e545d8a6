from urllib.parse import urljoin

import feedparser
import requests
from bs4 import BeautifulSoup

# Paths & constants

USER_AGENT = "SignalNookBot/1.0"
REQUEST_TIMEOUT = 12

GITHUB_RELEASES_URL = "https://github.com/{identifier}/releases.atom"
REDDIT_FEED_URL = "https://www.reddit.com/r/{name}/.rss"


# HTTP

def fetch_text(url, timeout=REQUEST_TIMEOUT):
    """GET a URL and return the body text; non-2xx responses raise."""
    response = requests.get(
        url,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
    )
    response.raise_for_status()
    return response.text


# Content extraction helpers

def html_to_text(value):
    if not value:
        return ""
    if "<" not in value:
        return value
    return BeautifulSoup(value, "html.parser").get_text(" ", strip=True)


def extract_content(entry):
    if "content" in entry and entry.content:
        return html_to_text(entry.content[0].value)
    if "summary" in entry:
        return html_to_text(entry.summary)
    if "description" in entry:
        return html_to_text(entry.description)
    return ""


def parse_feed_entries(xml_text, feed_url, max_items):
    """
    Parse RSS/Atom text into plain entry dicts.

    Entries without a link are skipped; relative links resolve against the
    feed URL. Returns at most max_items entries in feed order.
    """
    feed = feedparser.parse(xml_text)
    if feed.bozo and not feed.entries:
        raise ValueError(f"Unparseable feed at {feed_url}: {feed.get('bozo_exception')}")

    entries = []
    for entry in feed.entries[:max_items]:
        link = (entry.get("link") or "").strip()
        if not link:
            continue

        url = urljoin(feed_url, link)
        if not url.startswith(("http://", "https://")):
            continue

        entries.append({
            "title": entry.get("title") or "",
            "url": url,
            "snippet": extract_content(entry),
            "published_at": entry.get("published") or entry.get("updated"),
        })

    return entries


# Adapters

def fetch_feed_items(source, feed_url, max_items):
    xml_text = fetch_text(feed_url)
    return parse_feed_entries(xml_text, feed_url, max_items)


def fetch_github_release_items(source, max_items):
    identifier = source["identifier"].strip()
    if identifier.startswith("http"):
        feed_url = identifier
    else:
        feed_url = GITHUB_RELEASES_URL.format(identifier=identifier.strip("/"))
    return fetch_feed_items(source, feed_url, max_items)


def fetch_reddit_items(source, max_items):
    identifier = source["identifier"].strip()
    if identifier.startswith("http"):
        feed_url = identifier
    else:
        name = identifier[2:] if identifier.startswith("r/") else identifier
        feed_url = REDDIT_FEED_URL.format(name=name)
    return fetch_feed_items(source, feed_url, max_items)
