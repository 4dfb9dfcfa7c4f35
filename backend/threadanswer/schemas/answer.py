from __future__ import annotations

from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt

AnswerMode = Literal["balanced", "strict"]
# 1-based evidence position; strict so JSON true/false or "1" never count as an index.
EvidenceIndex = Annotated[StrictInt, Field(ge=1)]

DEFAULT_TOP_K = 5
DEFAULT_MAX_CHARS = 1200
MIN_EVIDENCE_CHARS = 200
MAX_EVIDENCE_CHARS = 4000


class AnswerRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1, max_length=500)
    top_k: int = Field(default=DEFAULT_TOP_K, ge=1, le=10)
    include_evidence: bool = True
    mode: AnswerMode = "balanced"
    max_chars_per_evidence: int = Field(default=DEFAULT_MAX_CHARS, ge=MIN_EVIDENCE_CHARS, le=MAX_EVIDENCE_CHARS)


class RetrievedItem(BaseModel):
    id: str
    title: str
    url: str
    snippet: str


class AnswerCitation(BaseModel):
    id: str
    title: str
    url: str
    quote: str | None = None


class AnswerResponse(BaseModel):
    query: str
    answer_markdown: str
    citations: list[AnswerCitation]
    retrieved: list[RetrievedItem]
    warnings: list[str]


class ThreadReply(BaseModel):
    """A reply on a thread. Accepts both ``bodyMd`` and ``body_md`` spellings."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    body_md: str = Field(default="", validation_alias=AliasChoices("bodyMd", "body_md"))
    body_text: str | None = Field(default=None, validation_alias=AliasChoices("bodyText", "body_text"))


class Thread(BaseModel):
    """A question plus its ordered replies, the unit of retrieval."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    body_md: str = Field(default="", validation_alias=AliasChoices("bodyMd", "body_md"))
    body_text: str | None = Field(default=None, validation_alias=AliasChoices("bodyText", "body_text"))
    answers: list[ThreadReply] = Field(default_factory=list)
    created_at: str | None = Field(default=None, validation_alias=AliasChoices("createdAt", "created_at"))


class SearchResult(BaseModel):
    id: str
    title: str | None = None


class ModelQuote(BaseModel):
    index: EvidenceIndex
    quote: str


class ParsedModelOutput(BaseModel):
    """Structured answer a model must return; optional arrays default to empty."""

    answer_markdown: str
    used_indices: list[EvidenceIndex] = Field(default_factory=list)
    quotes: list[ModelQuote] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
