# Fixed classification tables shared by the classifier, scorer and store.
# Tracks map to a default stream; HEADLINERS is only ever assigned by ranking.

from types import MappingProxyType

HEAT_LEVELS = ("HOT", "NOTABLE", "QUIET")
RUN_STATUSES = ("RUNNING", "SUCCESS", "PARTIAL", "FAILED")

SOURCE_TYPES = (
    "RSS",
    "GITHUB_RELEASES",
    "NPM_UPDATES",
    "PYPI_UPDATES",
    "REDDIT_RSS",
    "CUSTOM_RSS",
)

STREAM_DEFINITIONS = (
    ("HEADLINERS", "Headliners"),
    ("TOOLCHAIN", "Toolchain"),
    ("MODELS_METHODS", "Models & Methods"),
    ("OPS_RUNTIME", "Ops & Runtime"),
    ("WILDS", "The Wilds"),
)

STREAM_KEYS = tuple(key for key, _ in STREAM_DEFINITIONS)
STREAM_LABELS = MappingProxyType(dict(STREAM_DEFINITIONS))

TRACK_DEFINITIONS = (
    ("platform-apis", "Platform APIs"),
    ("sdks-tooling", "SDKs & Tooling"),
    ("agents-orchestration", "Agents & Orchestration"),
    ("models-training", "Models & Training"),
    ("inference-serving", "Inference & Serving"),
    ("rag-retrieval", "RAG & Retrieval"),
    ("on-device-edge", "On-device & Edge"),
    ("hardware-drivers", "Hardware & Drivers"),
    ("research-benchmarks", "Research & Benchmarks"),
    ("community-finds", "Community Finds"),
)

TRACK_KEYS = tuple(key for key, _ in TRACK_DEFINITIONS)
TRACK_LABELS = MappingProxyType(dict(TRACK_DEFINITIONS))

FALLBACK_TRACK = "community-finds"
FALLBACK_STREAM = "WILDS"

# Keyword/domain hints per track, in declaration order (order breaks ties).
TRACK_RULES = (
    MappingProxyType({
        "track_key": "platform-apis",
        "stream_key": "TOOLCHAIN",
        "keywords": ("api", "endpoint", "rate limit", "deprec", "auth", "webhook"),
        "domains": ("platform.openai.com", "developers", "docs"),
    }),
    MappingProxyType({
        "track_key": "sdks-tooling",
        "stream_key": "TOOLCHAIN",
        "keywords": ("sdk", "cli", "plugin", "release", "package", "typescript", "python"),
        "domains": ("npmjs.com", "pypi.org", "github.com"),
    }),
    MappingProxyType({
        "track_key": "agents-orchestration",
        "stream_key": "TOOLCHAIN",
        "keywords": ("agent", "workflow", "orchestr", "function calling", "tool use", "multi-step"),
        "domains": ("langchain", "crew", "autogen", "github.com"),
    }),
    MappingProxyType({
        "track_key": "models-training",
        "stream_key": "MODELS_METHODS",
        "keywords": ("model", "fine-tun", "checkpoint", "training", "alignment", "distill"),
        "domains": ("huggingface.co", "arxiv.org", "research"),
    }),
    MappingProxyType({
        "track_key": "inference-serving",
        "stream_key": "OPS_RUNTIME",
        "keywords": ("inference", "throughput", "latency", "serving", "runtime", "batch"),
        "domains": ("modal.com", "replicate.com", "cloud.google.com", "aws.amazon.com"),
    }),
    MappingProxyType({
        "track_key": "rag-retrieval",
        "stream_key": "MODELS_METHODS",
        "keywords": ("rag", "retrieval", "vector", "embedding", "rerank", "chunk"),
        "domains": ("pinecone.io", "weaviate.io", "qdrant.tech", "docs"),
    }),
    MappingProxyType({
        "track_key": "on-device-edge",
        "stream_key": "OPS_RUNTIME",
        "keywords": ("on-device", "edge", "mobile", "ios", "android", "wasm"),
        "domains": ("webkit.org", "developer.apple.com", "developer.android.com"),
    }),
    MappingProxyType({
        "track_key": "hardware-drivers",
        "stream_key": "OPS_RUNTIME",
        "keywords": ("cuda", "driver", "gpu", "npu", "kernel", "vram", "tensor"),
        "domains": ("nvidia.com", "amd.com", "intel.com"),
    }),
    MappingProxyType({
        "track_key": "research-benchmarks",
        "stream_key": "MODELS_METHODS",
        "keywords": ("benchmark", "eval", "leaderboard", "paper", "sota", "study"),
        "domains": ("arxiv.org", "paperswithcode.com", "openreview.net"),
    }),
    MappingProxyType({
        "track_key": "community-finds",
        "stream_key": "WILDS",
        "keywords": ("showcase", "demo", "community", "reddit", "thread", "tutorial"),
        "domains": ("reddit.com", "news.ycombinator.com", "dev.to"),
    }),
)

HOT_HINTS = (
    "breaking",
    "major",
    "ga",
    "general availability",
    "critical",
    "security",
    "v1",
    "launch",
    "open weights",
)

NOTABLE_HINTS = (
    "update",
    "release",
    "improve",
    "benchmark",
    "support",
    "new",
    "added",
    "feature",
    "beta",
)

HEAT_RATIONALES = MappingProxyType({
    "HOT": "Marked HOT because the item signals a high-impact release or policy change from a core provider.",
    "NOTABLE": "Marked NOTABLE because it introduces material capabilities or workflow changes relevant to daily builders.",
    "QUIET": "Marked QUIET because it is useful context with lower immediate operational impact.",
})


def stream_label(stream_key):
    return STREAM_LABELS.get(stream_key, STREAM_LABELS[FALLBACK_STREAM])


def track_label(track_key):
    return TRACK_LABELS.get(track_key, TRACK_LABELS[FALLBACK_TRACK])
