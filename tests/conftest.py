from datetime import datetime, timezone

import pytest

import core.classify as classify
import core.observability as observability
from ingest.sources import to_raw_item
from store.repository import SignalStore

PUBLISHED = datetime(2026, 2, 10, 1, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """No OpenAI key, no cached client, events logged under tmp_path."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(classify, "_openai_client", None)
    monkeypatch.setattr(observability, "LOG_FILE", str(tmp_path / "events.log"))


@pytest.fixture
def store(tmp_path):
    signal_store = SignalStore(database_url=f"sqlite:///{tmp_path / 'signal_nook.db'}")
    signal_store.init_db()
    return signal_store


@pytest.fixture
def make_source(store):
    def _make(name="OpenAI Platform Changelog", type="RSS", tier=1, enabled=True,
              identifier="https://platform.openai.com/docs/changelog/rss.xml",
              provider_label="OpenAI / Platform"):
        source, _ = store.upsert_source({
            "name": name,
            "type": type,
            "identifier": identifier,
            "provider_label": provider_label,
            "tier": tier,
            "enabled": enabled,
        })
        return source
    return _make


def make_item(url, title="AI SDK release adds TypeScript tool helpers",
              snippet="The SDK update includes new package exports and CLI enhancements.",
              tier=2, source_id="src-1", provider_label="Vercel / AI SDK Studio"):
    source = {"id": source_id, "provider_label": provider_label, "tier": tier}
    return to_raw_item(source, title=title, url=url, snippet=snippet, published_at=PUBLISHED)
