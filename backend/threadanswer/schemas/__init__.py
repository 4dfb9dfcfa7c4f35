from threadanswer.schemas.answer import (
    AnswerCitation,
    AnswerRequest,
    AnswerResponse,
    ModelQuote,
    ParsedModelOutput,
    RetrievedItem,
    SearchResult,
    Thread,
    ThreadReply,
)
from threadanswer.schemas.health import HealthResponse, ServiceStatus

__all__ = [
    "AnswerCitation",
    "AnswerRequest",
    "AnswerResponse",
    "HealthResponse",
    "ModelQuote",
    "ParsedModelOutput",
    "RetrievedItem",
    "SearchResult",
    "ServiceStatus",
    "Thread",
    "ThreadReply",
]
