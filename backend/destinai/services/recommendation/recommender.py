"""Destination recommender: call, validate, repair once.

    generation prompt → LLM (one transient retry) → normalize → schema → business
        ok      → RecommendationResult
        failure → repair diagnostic → repair prompt → LLM (one transient retry)
                  → normalize → schema → business
                      ok      → RecommendationResult
                      failure → RecommendationError(llm_validation_failed)

Transport failures never reach validation: a provider HTTP error is terminal at
once, timeouts and other transport errors get one retry after a short pause.
Everything per request lives on the coroutine; one instance serves all requests.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from destinai.services.llm_client import (
    LLMClient,
    ProviderHTTPError,
    TransportError,
    TransportTimeoutError,
    llm_client,
)
from destinai.services.recommendation.business_validator import validate_business_rules
from destinai.services.recommendation.config import recommendation_config
from destinai.services.recommendation.models import (
    Destination,
    FailureReason,
    PreferenceProfile,
    RecommendationError,
    RecommendationPayload,
    RecommendationResult,
    TerminalKind,
    ValidationFailure,
)
from destinai.services.recommendation.normalizer import normalize_response
from destinai.services.recommendation.prompt_builder import PromptBuilder, prompt_builder
from destinai.services.recommendation.repair import build_repair_diagnostic
from destinai.services.recommendation.schema_validator import validate_schema

logger = logging.getLogger(__name__)

cfg = recommendation_config

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class ParsedResponse:
    """Outcome of one normalize + validate pass over a raw response."""
    raw: str
    result: RecommendationResult | None = None
    failure: ValidationFailure | None = None
    payload: RecommendationPayload | None = None


def extract_relaxed_constraints(tree: dict) -> list[list[str]]:
    """Per-destination relaxed constraints from the JSON tree, blanks dropped."""
    relaxations = []
    for destination in tree.get("destinations", []):
        values = destination.get("relaxed_constraints") if isinstance(destination, dict) else None
        if not isinstance(values, list):
            relaxations.append([])
            continue
        relaxations.append([v for v in values if isinstance(v, str) and v.strip()])
    return relaxations


class DestinationRecommender:
    """Turns a preference profile into five validated destinations."""

    def __init__(
        self,
        client: LLMClient,
        builder: PromptBuilder = prompt_builder,
        *,
        retry_delay: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.client = client
        self.builder = builder
        self.retry_delay = cfg.retry.delay_seconds if retry_delay is None else retry_delay
        self._sleep = sleep

    async def generate(self, profile: PreferenceProfile) -> RecommendationResult:
        prompt = self.builder.build_generation_prompt(profile)
        raw = await self._call_with_retry(prompt, stage="generation")

        parsed = self.parse(raw, profile)
        if parsed.result is not None:
            logger.info("Recommendation ready. outcome=success stage=generation")
            return parsed.result

        failure = parsed.failure
        logger.warning(f"LLM validation failed; attempting repair. reason={failure.reason.value}")
        diagnostic = build_repair_diagnostic(failure, parsed.payload, parsed.raw, profile)
        repair_prompt = self.builder.build_repair_prompt(failure.reason, diagnostic)
        repaired_raw = await self._call_with_retry(repair_prompt, stage="repair")

        repaired = self.parse(repaired_raw, profile)
        if repaired.result is not None:
            logger.info(f"Recommendation ready. outcome=success stage=repair repaired_reason={failure.reason.value}")
            return repaired.result

        second = repaired.failure
        logger.error(
            f"LLM repair failed. outcome={TerminalKind.LLM_VALIDATION_FAILED.value} "
            f"reason={second.reason.value} details={second.details!r}"
        )
        raise RecommendationError(
            TerminalKind.LLM_VALIDATION_FAILED,
            f"LLM response invalid after repair: {second.details}",
            reason=second.reason,
            details=second.details,
        )

    # ---- Normalize + validate ----

    def parse(self, raw: str, profile: PreferenceProfile) -> ParsedResponse:
        normalized = normalize_response(raw)
        if not normalized.ok:
            return ParsedResponse(raw=raw, failure=normalized.failure)

        tree = normalized.tree
        failure = validate_schema(tree)
        if failure:
            return ParsedResponse(raw=raw, failure=failure)

        try:
            payload = RecommendationPayload.model_validate(tree)
        except ValidationError as e:
            logger.info(f"Payload model rejected response. reason={FailureReason.SCHEMA_INVALID.value} error={e}")
            return ParsedResponse(
                raw=raw,
                failure=ValidationFailure(FailureReason.SCHEMA_INVALID, "Payload does not match the schema."),
            )

        failure = validate_business_rules(payload, profile)
        if failure:
            return ParsedResponse(raw=raw, failure=failure, payload=payload)

        relaxations = extract_relaxed_constraints(tree)
        destinations = [
            Destination.from_payload(destination, relaxations[index])
            for index, destination in enumerate(payload.destinations)
        ]
        return ParsedResponse(
            raw=raw,
            result=RecommendationResult(schema_version=payload.schema_version, destinations=destinations),
            payload=payload,
        )

    # ---- Transport with one transient retry ----

    async def _call_with_retry(self, prompt: str, stage: str) -> str:
        logger.info(f"LLM call started. stage={stage} attempt=1")
        try:
            return await self.client.complete(prompt)
        except ProviderHTTPError as e:
            logger.error(f"LLM provider error. stage={stage} status={e.status_code} reason=provider_error")
            raise self._provider_error(e) from e
        except TransportTimeoutError as e:
            logger.warning(f"LLM call failed (timeout/connection), retrying once. stage={stage} reason=timeout error={e}")
            path = TerminalKind.TIMEOUT
        except TransportError as e:
            logger.warning(f"LLM call failed, retrying once. stage={stage} reason=network_error error={e}")
            path = TerminalKind.NETWORK_ERROR

        await self._pause(path)

        logger.info(f"LLM call started. stage={stage} attempt=2")
        try:
            return await self.client.complete(prompt)
        except ProviderHTTPError as e:
            logger.error(f"LLM retry failed with HTTP error. stage={stage} status={e.status_code} reason=provider_error")
            raise self._provider_error(e) from e
        except TransportTimeoutError as e:
            logger.error(f"LLM retry failed (timeout/connection). stage={stage} reason={path.value}")
            message = "LLM request timed out after retry" if path == TerminalKind.TIMEOUT else "LLM service unavailable after retry"
            raise RecommendationError(path, message) from e
        except TransportError as e:
            logger.error(f"LLM retry failed. stage={stage} reason=network_error error={e}")
            raise RecommendationError(TerminalKind.NETWORK_ERROR, "LLM service unavailable after retry") from e

    async def _pause(self, path: TerminalKind) -> None:
        try:
            await self._sleep(self.retry_delay)
        except InterruptedError as e:
            logger.error(f"LLM retry pause interrupted. reason={path.value}")
            raise RecommendationError(path, "LLM request interrupted") from e

    @staticmethod
    def _provider_error(e: ProviderHTTPError) -> RecommendationError:
        return RecommendationError(
            TerminalKind.PROVIDER_ERROR,
            f"LLM provider returned error: {e.status_code}",
            status_code=e.status_code,
        )


# Singleton
destination_recommender = DestinationRecommender(llm_client)
