from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from threadanswer.apikeys import KEY_PREFIX_LENGTH, ApiKeyStore, validate_api_key
from threadanswer.config import Settings
from threadanswer.metrics import llm_policy_denials_total
from threadanswer.quota import QuotaStore, utc_date_key

logger = structlog.get_logger()

DISABLED_MESSAGE = "LLM disabled; returning retrieved evidence only."
DISABLED_WARNING = "LLM disabled by policy."
AGENT_MESSAGE = "LLM disabled for this agent; returning retrieved evidence only."
AGENT_WARNING = "LLM disabled for this agent."
API_KEY_MESSAGE = "LLM requires a valid API key; returning retrieved evidence only."
API_KEY_WARNING = "LLM requires a valid API key."
QUOTA_MESSAGE = "LLM daily limit reached; returning retrieved evidence only."
QUOTA_WARNING = "LLM daily limit reached."
QUOTA_UNAVAILABLE_WARNING = "LLM daily limit could not be checked."


def normalize_agent_name(value: str | None) -> str:
    return (value or "").strip().lower()


@dataclass(frozen=True)
class CallerIdentity:
    """Who is asking: the raw bearer key, the declared agent name and the network address."""

    api_key: str | None = None
    agent_name: str | None = None
    client_ip: str | None = None

    def quota_key(self) -> str:
        """Stable identity for quota counting: key prefix, then agent name, then address."""
        if self.api_key:
            return f"key:{self.api_key[:KEY_PREFIX_LENGTH]}"
        agent = normalize_agent_name(self.agent_name)
        if agent:
            return f"agent:{agent}"
        return f"ip:{self.client_ip or 'unknown'}"


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    message: str = ""
    warnings: list[str] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LlmPolicy:
    """Decides per request whether the model-assisted answer path may run.

    Checks run in a fixed order and stop at the first denial: global switch
    and client presence, agent allowlist, API key, then the per-identity daily
    quota. A denial carries one warning and the message that heads the
    evidence-only answer. ``evaluate`` never raises.
    """

    def __init__(
        self,
        *,
        enabled: bool,
        client_configured: bool,
        require_api_key: bool,
        agent_allowlist: frozenset[str],
        daily_limit: int,
        api_key_store: ApiKeyStore,
        quota_store: QuotaStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.enabled = enabled
        self.client_configured = client_configured
        self.require_api_key = require_api_key
        self.agent_allowlist = agent_allowlist
        self.daily_limit = daily_limit
        self._api_key_store = api_key_store
        self._quota_store = quota_store
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        *,
        client_configured: bool,
        api_key_store: ApiKeyStore,
        quota_store: QuotaStore,
    ) -> LlmPolicy:
        return cls(
            enabled=config.LLM_ENABLED,
            client_configured=client_configured,
            require_api_key=config.LLM_REQUIRE_API_KEY,
            agent_allowlist=config.agent_allowlist,
            daily_limit=config.LLM_DAILY_LIMIT,
            api_key_store=api_key_store,
            quota_store=quota_store,
        )

    def _deny(self, reason: str, message: str, warning: str, identity: CallerIdentity) -> PolicyDecision:
        llm_policy_denials_total.labels(reason=reason).inc()
        logger.info("llm_policy_denied", reason=reason, identity=identity.quota_key())
        return PolicyDecision(allowed=False, message=message, warnings=[warning])

    async def evaluate(self, identity: CallerIdentity) -> PolicyDecision:
        """Run the gate for one request.

        Args:
            identity: The caller as seen by the transport layer.

        Returns:
            ``PolicyDecision`` with ``allowed`` set, or the denial message and warning.
        """
        if not self.enabled or not self.client_configured:
            return self._deny("disabled", DISABLED_MESSAGE, DISABLED_WARNING, identity)

        if self.agent_allowlist:
            agent = normalize_agent_name(identity.agent_name)
            if not agent or agent not in self.agent_allowlist:
                return self._deny("agent", AGENT_MESSAGE, AGENT_WARNING, identity)

        if self.require_api_key:
            try:
                check = await validate_api_key(identity.api_key, self._api_key_store)
            except Exception as exc:
                logger.warning("api_key_lookup_failed", error=str(exc))
                return self._deny("api_key", API_KEY_MESSAGE, API_KEY_WARNING, identity)
            if not check.ok:
                logger.debug("api_key_rejected", reason=check.reason)
                return self._deny("api_key", API_KEY_MESSAGE, API_KEY_WARNING, identity)

        if self.daily_limit > 0:
            date_key = utc_date_key(self._clock())
            try:
                within_quota = await self._quota_store.consume(identity.quota_key(), self.daily_limit, date_key)
            except Exception as exc:
                logger.warning("quota_check_failed", error=str(exc))
                return self._deny("quota_unavailable", QUOTA_MESSAGE, QUOTA_UNAVAILABLE_WARNING, identity)
            if not within_quota:
                return self._deny("quota", QUOTA_MESSAGE, QUOTA_WARNING, identity)

        return PolicyDecision(allowed=True)
