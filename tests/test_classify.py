import json
from types import SimpleNamespace

from core.classify import classify_raw_item, decode_classification, extract_json_text, merge_citations
from conftest import make_item

SOURCE_URL = "https://github.com/vercel/ai/releases/tag/v6"

MODEL_OUTPUT = {
    "title": "AI SDK 6 ships tool helpers",
    "summary": "Adds typed tool helpers for agents.",
    "rationale": "Affects every TypeScript agent. Upgrade soon.",
    "heat": "HOT",
    "track_key": "sdks-tooling",
    "track_label": "SDKs & Tooling",
    "stream_key": "TOOLCHAIN",
    "stream_label": "Toolchain",
    "confidence": "VERIFIED",
    "tier": 1,
    "citations": ["https://vercel.com/blog/ai-sdk-6"],
}


class FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeClient:
    def __init__(self, *replies):
        self.completions = FakeCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)


def test_valid_first_attempt_is_used():
    client = FakeClient(json.dumps(MODEL_OUTPUT))

    signal = classify_raw_item(make_item(SOURCE_URL), client=client, model="test-model")

    assert signal.confidence == "VERIFIED"
    assert signal.citations == [SOURCE_URL, "https://vercel.com/blog/ai-sdk-6"]
    assert len(client.completions.calls) == 1
    assert client.completions.calls[0]["temperature"] == 0.2
    assert client.completions.calls[0]["model"] == "test-model"


def test_invalid_output_retries_strictly_once():
    client = FakeClient("not json at all", "```json\n" + json.dumps(MODEL_OUTPUT) + "\n```")

    signal = classify_raw_item(make_item(SOURCE_URL), client=client)

    assert signal.title == "AI SDK 6 ships tool helpers"
    assert [call["temperature"] for call in client.completions.calls] == [0.2, 0.0]


def test_two_failures_fall_back_to_heuristics():
    bad = dict(MODEL_OUTPUT, heat="SCORCHING")
    client = FakeClient(json.dumps(bad), RuntimeError("upstream timeout"))

    signal = classify_raw_item(make_item(SOURCE_URL), client=client)

    assert signal.confidence == "UNVERIFIED"
    assert signal.citations == [SOURCE_URL]
    assert len(client.completions.calls) == 2


def test_without_api_key_uses_heuristics():
    signal = classify_raw_item(make_item(SOURCE_URL))
    assert signal.confidence == "UNVERIFIED"
    assert signal.track_key == "sdks-tooling"


def test_decode_reports_errors_instead_of_raising():
    item = make_item(SOURCE_URL)

    assert decode_classification("{broken", item).error.startswith("Invalid JSON")
    assert not decode_classification("[1, 2]", item).ok
    too_wordy = dict(MODEL_OUTPUT, rationale="One. Two. Three. Four.")
    assert decode_classification(json.dumps(too_wordy), item).error.startswith("Schema violation")


def test_decode_defaults_tier_to_item_tier():
    output = dict(MODEL_OUTPUT)
    del output["tier"]

    result = decode_classification(json.dumps(output), make_item(SOURCE_URL, tier=3))

    assert result.ok
    assert result.signal.tier == 3


def test_extract_json_text_prefers_fence_then_braces():
    assert extract_json_text('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert extract_json_text('Sure! {"a": 1} hope that helps') == '{"a": 1}'


def test_merge_citations_source_first_and_capped():
    citations = [SOURCE_URL] + [f"https://a.dev/{n}" for n in range(10)]
    merged = merge_citations(SOURCE_URL, citations)

    assert merged[0] == SOURCE_URL
    assert len(merged) == 8
    assert len(set(merged)) == 8


def test_terse_model_output_triggers_strict_retry():
    terse = dict(MODEL_OUTPUT, title="AI", summary="New.", rationale="Big.")
    client = FakeClient(json.dumps(terse), json.dumps(MODEL_OUTPUT))

    signal = classify_raw_item(make_item(SOURCE_URL), client=client)

    assert len(client.completions.calls) == 2
    assert signal.summary == MODEL_OUTPUT["summary"]
