# Defines fetch behavior by source type
# Maps directly to the "type" field of a Source row (see config/sources.yaml)

INGESTION_POLICY = {
    #FEEDS: syndicated RSS/Atom, identifier is the feed URL
    "RSS": {
        "adapter": "feed",
        "max_items": 25,
        "notes": "Vendor changelogs and blogs - identifier is the feed URL"
    },

    "CUSTOM_RSS": {
        "adapter": "feed",
        "max_items": 25,
        "notes": "Operator-added feeds - same handling as RSS"
    },

    #CODE HOSTS: release Atom feeds
    "GITHUB_RELEASES": {
        "adapter": "github_releases",
        "max_items": 25,
        "notes": "owner/repo expands to https://github.com/<owner>/<repo>/releases.atom; full URLs used as-is"
    },

    #REGISTRIES: one item per lookup (latest published version)
    "NPM_UPDATES": {
        "adapter": "npm",
        "max_items": 1,
        "notes": "registry.npmjs.org package document - latest dist-tag only"
    },

    "PYPI_UPDATES": {
        "adapter": "pypi",
        "max_items": 1,
        "notes": "pypi.org JSON API - latest release only"
    },

    #FORUMS: community feeds
    "REDDIT_RSS": {
        "adapter": "reddit",
        "max_items": 25,
        "notes": "Subreddit name (or r/name) expands to https://www.reddit.com/r/<name>/.rss"
    },
}

# Hard ceiling on items requested from any single source
MAX_ITEMS_PER_SOURCE = 25


def policy_for(source_type):
    """Policy for a source type, or None when the type has no adapter."""
    return INGESTION_POLICY.get((source_type or "").upper())
