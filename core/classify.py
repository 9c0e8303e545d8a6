"""
Signal classification with a graceful degradation chain.

    model (temperature 0.2) -> model again, stricter (temperature 0) -> heuristics

The model path only runs when OPENAI_API_KEY is set. Whatever happens on it,
classify_raw_item() returns a ClassifiedSignal and never raises.
"""

import json
import re
from dataclasses import dataclass
from typing import Optional

from openai import OpenAI
from pydantic import ValidationError

from core.config import get_classifier_timeout, get_openai_api_key, get_openai_model
from core.heuristics import heuristic_classify
from core.observability import log
from core.schemas import MAX_CITATIONS, ClassifiedSignal, ModelClassification
from core.taxonomy import STREAM_DEFINITIONS, TRACK_DEFINITIONS

FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)

SYSTEM_PROMPT = (
    "You classify AI ecosystem updates into a strict schema for the product Signal Nook.\n"
    "Return compact JSON only. No markdown, no prose.\n"
    "Summaries must be <= 240 chars and rationale must be 1-3 sentences.\n"
    "Citations must include the input source_url at minimum.\n"
    "Tracks and streams must map to the provided enum values."
)

_STREAM_KEYS_TEXT = ", ".join(key for key, _ in STREAM_DEFINITIONS)
_TRACK_LINES_TEXT = "\n".join(f"- {key}: {label}" for key, label in TRACK_DEFINITIONS)

INSTRUCTIONS = f"""
Allowed heat values: HOT, NOTABLE, QUIET.
Allowed stream keys: {_STREAM_KEYS_TEXT}.
Allowed track keys and labels:
{_TRACK_LINES_TEXT}
Track labels must match the labels above exactly.
Confidence must be VERIFIED only when the source is clearly official and specific, otherwise UNVERIFIED.
Tier must be integer 1..3.

Return EXACTLY this JSON schema:
{{
  "title": "...",
  "summary": "...",
  "rationale": "...",
  "heat": "HOT|NOTABLE|QUIET",
  "track_key": "...",
  "track_label": "...",
  "stream_key": "...",
  "stream_label": "...",
  "confidence": "VERIFIED|UNVERIFIED",
  "tier": 1,
  "citations": ["https://..."]
}}
"""

STANDARD_NOTE = "Classify and summarize this signal. Keep output operational and concise."
STRICT_NOTE = "Return exact JSON object matching required keys. Keep wording short."

# OpenAI client (lazy initialization)
_openai_client = None


def get_openai_client():
    """Get or create the OpenAI client; None when no API key is configured."""
    global _openai_client
    if _openai_client is None:
        api_key = get_openai_api_key()
        if not api_key:
            return None
        _openai_client = OpenAI(
            api_key=api_key,
            timeout=get_classifier_timeout(),
            max_retries=0,
        )
    return _openai_client


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one model response: a signal or an error."""

    signal: Optional[ClassifiedSignal] = None
    error: Optional[str] = None

    @property
    def ok(self):
        return self.signal is not None


def extract_json_text(raw):
    fenced = FENCED_JSON.search(raw)
    if fenced and fenced.group(1).strip():
        return fenced.group(1).strip()

    first = raw.find("{")
    last = raw.rfind("}")
    if first >= 0 and last > first:
        return raw[first:last + 1].strip()

    return raw.strip()


def merge_citations(source_url, citations):
    """Source URL first, then model citations, deduplicated and capped."""
    merged = [source_url]
    for url in citations or []:
        if isinstance(url, str) and url.strip() and url.strip() not in merged:
            merged.append(url.strip())
    return merged[:MAX_CITATIONS]


def decode_classification(raw, item):
    """Parse and validate model text for `item` into a DecodeResult."""
    try:
        parsed = json.loads(extract_json_text(raw or ""))
    except json.JSONDecodeError as e:
        return DecodeResult(error=f"Invalid JSON: {e}")

    if not isinstance(parsed, dict):
        return DecodeResult(error="Model output is not a JSON object")

    citations = parsed.get("citations")
    normalized = {
        **parsed,
        "citations": merge_citations(item["source_url"], citations if isinstance(citations, list) else []),
        "tier": parsed.get("tier") or item["tier"],
    }

    try:
        return DecodeResult(signal=ModelClassification.model_validate(normalized))
    except ValidationError as e:
        return DecodeResult(error=f"Schema violation: {e.error_count()} error(s): {e.errors()[0]['msg']}")


def build_user_prompt(item, strict=False):
    payload = {
        "source_url": item["source_url"],
        "source_domain": item["source_domain"],
        "provider_label": item["provider_label"],
        "provider_key": item["provider_key"],
        "source_tier": item["tier"],
        "title": item["title"],
        "snippet": item["snippet"],
        "published_at": item["published_at"].isoformat(),
        "output_notes": STRICT_NOTE if strict else STANDARD_NOTE,
    }
    return json.dumps(payload, ensure_ascii=False)


def request_classification(client, item, strict=False, model=None):
    """One model attempt. Network/API errors propagate to the caller."""
    response = client.chat.completions.create(
        model=model or get_openai_model(),
        temperature=0.0 if strict else 0.2,
        max_tokens=600,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT + "\n" + INSTRUCTIONS},
            {"role": "user", "content": build_user_prompt(item, strict=strict)},
        ],
    )

    content = response.choices[0].message.content or ""
    return decode_classification(content.strip(), item)


def classify_with_model(client, item, model=None):
    """
    Run the standard attempt and one stricter retry.

    Returns the first valid signal, or None when both attempts failed.
    """
    for attempt, strict in enumerate((False, True), start=1):
        try:
            result = request_classification(client, item, strict=strict, model=model)
        except Exception as e:
            result = DecodeResult(error=f"{type(e).__name__}: {e}")

        if result.ok:
            return result.signal

        log("classify", "model.attempt_failed", {
            "url": item["source_url"],
            "attempt": attempt,
            "strict": strict,
            "error": result.error,
        })

    return None


def classify_raw_item(item, client=None, model=None):
    """
    Classify one raw item.

    Args:
        item: RawSignalItem dict
        client: OpenAI-compatible client; defaults to the configured client
            (None when OPENAI_API_KEY is unset)
        model: Model name override

    Returns:
        ClassifiedSignal from the model when it validates, otherwise from
        the heuristic fallback.
    """
    if client is None:
        client = get_openai_client()

    if client is not None:
        try:
            signal = classify_with_model(client, item, model=model)
        except Exception as e:
            log("classify", "model.unexpected_error", {
                "url": item["source_url"],
                "error": str(e),
            })
            signal = None

        if signal is not None:
            return signal

        log("classify", "fallback.heuristic", {"url": item["source_url"]})

    return heuristic_classify(item)
