from __future__ import annotations

from prometheus_client import Counter, Histogram

# Answer pipeline metrics
answer_duration = Histogram(
    "answer_duration_seconds",
    "Total answer pipeline duration",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60),
)

answer_retrieval_duration = Histogram(
    "answer_retrieval_duration_seconds",
    "Search plus thread fetch duration",
    buckets=(0.01, 0.05, 0.1, 0.5, 1, 2, 5),
)

answer_generation_duration = Histogram(
    "answer_generation_duration_seconds",
    "Single LLM call duration (first attempt or retry)",
    buckets=(0.5, 1, 2, 5, 10, 30, 60),
)

answers_total = Counter(
    "answers_total",
    "Answers produced, by outcome",
    ["outcome"],
)

# Policy gate metrics
llm_policy_denials_total = Counter(
    "llm_policy_denials_total",
    "Requests denied the model path",
    ["reason"],
)

# Model output quality metrics
llm_invalid_json_total = Counter(
    "llm_invalid_json_total",
    "Model replies that failed JSON extraction or schema validation",
    ["attempt"],
)

citation_range_warnings_total = Counter(
    "citation_range_warnings_total",
    "Model citations pointing outside the retrieved evidence",
)
