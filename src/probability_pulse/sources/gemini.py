"""Gemini ``generateContent`` log-probability source.

Sends the prefix to the Generative Language REST API with
``responseLogprobs`` enabled and reads the emitted token and its top-K
alternatives from ``logprobsResult``. The API key is an explicit
configuration value, sent in the ``x-goog-api-key`` header; there is no
process-wide client.

Transient failures (HTTP 429/5xx and transport errors) are retried with
exponential backoff. Every failure that survives the retries, and every
response without log-probability data, raises
:class:`~probability_pulse.exceptions.SourceUnavailableError`.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from probability_pulse.distribution.types import RawCandidate
from probability_pulse.exceptions import ConfigValidationError, SourceUnavailableError
from probability_pulse.sources.base import LogProbSource
from probability_pulse.sources.registry import register_logprob_source
from probability_pulse.sources.types import SourceRequest, SourceResponse

if TYPE_CHECKING:
    from probability_pulse.config import PulseConfig

logger = logging.getLogger("probability_pulse")

_TRANSIENT_STATUS = frozenset({429, 500, 502, 503, 504})


def build_request_body(request: SourceRequest, system_instruction: str) -> dict[str, Any]:
    """Build the JSON body of a ``generateContent`` call.

    Args:
        request: The next-token query.
        system_instruction: Instruction keeping the model in continuation
            mode (empty string omits it).

    Returns:
        JSON-serializable request body.
    """
    generation_config: dict[str, Any] = {
        "responseLogprobs": True,
        "maxOutputTokens": request.max_output_tokens,
    }
    if request.top_k is not None:
        generation_config["logprobs"] = request.top_k

    body: dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": request.prefix}]}],
        "generationConfig": generation_config,
    }
    if system_instruction:
        body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
    return body


def _candidate_fields(item: Any) -> tuple[str, float] | None:
    """Read ``(token, logProbability)`` from one JSON candidate.

    Protobuf JSON omits default values, so a missing token is ``""`` and a
    missing log-probability is ``0.0``.
    """
    if not isinstance(item, dict):
        return None
    token = item.get("token", "")
    lp = item.get("logProbability", item.get("log_probability", 0.0))
    try:
        return str(token), float(lp)
    except (TypeError, ValueError):
        return None


def parse_response(data: Any) -> SourceResponse:
    """Extract the emitted token and its alternatives from a response body.

    Args:
        data: Decoded JSON body of a ``generateContent`` response.

    Returns:
        SourceResponse for the first generated position.

    Raises:
        SourceUnavailableError: If the body has no candidate or no
            ``logprobsResult``.
    """
    if not isinstance(data, dict):
        raise SourceUnavailableError("Gemini response is not a JSON object")
    candidates = data.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        raise SourceUnavailableError("Gemini response has no candidates")
    first = candidates[0]

    logprobs = first.get("logprobsResult") or first.get("logprobs_result")
    if not isinstance(logprobs, dict):
        raise SourceUnavailableError("Gemini response has no log-probability data")

    chosen_text = ""
    chosen_lp: float | None = None
    chosen = logprobs.get("chosenCandidates") or []
    if chosen:
        fields = _candidate_fields(chosen[0])
        if fields is not None:
            chosen_text, chosen_lp = fields
    if not chosen_text:
        parts = (first.get("content") or {}).get("parts") or []
        chosen_text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))

    alternatives: list[RawCandidate] = []
    top = logprobs.get("topCandidates") or []
    if top and isinstance(top[0], dict):
        for item in top[0].get("candidates") or []:
            fields = _candidate_fields(item)
            if fields is not None:
                alternatives.append(RawCandidate(text=fields[0], log_probability=fields[1]))

    return SourceResponse(
        chosen_text=chosen_text,
        candidates=tuple(alternatives),
        chosen_log_probability=chosen_lp,
    )


@register_logprob_source("gemini")
class GeminiLogProbSource(LogProbSource):
    """Log-probability source backed by Gemini ``generateContent``.

    Args:
        config: Configuration with model, credentials, timeout and retries.
        client: Optional pre-built ``httpx.Client`` (tests pass one with a
            ``MockTransport``). The source owns and closes its client.

    Raises:
        ConfigValidationError: If no API key is configured.
    """

    def __init__(self, config: PulseConfig, client: httpx.Client | None = None) -> None:
        api_key = config.gemini_api_key.get_secret_value()
        if not api_key:
            raise ConfigValidationError(
                "gemini_api_key is not set (environment variable PP_GEMINI_API_KEY)"
            )
        base = config.gemini_base_url.rstrip("/")
        self._url = f"{base}/v1beta/models/{config.gemini_model}:generateContent"
        self._model = config.gemini_model
        self._retry_count = config.retry_count
        self._retry_backoff_s = config.retry_backoff_s
        self._system_instruction = config.system_instruction
        self._client = client or httpx.Client(timeout=config.request_timeout_s)
        self._headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}
        self._closed = False

    @property
    def name(self) -> str:
        """Return ``'gemini'``."""
        return "gemini"

    @property
    def is_available(self) -> bool:
        """``True`` until the source is closed."""
        return not self._closed

    @property
    def model(self) -> str:
        """Gemini model name queries are sent to."""
        return self._model

    def fetch(self, request: SourceRequest) -> SourceResponse:
        """Query Gemini for the next token after ``request.prefix``.

        Raises:
            SourceUnavailableError: If the source is closed, all attempts
                fail, the API rejects the request, or the response has no
                log-probability data.
        """
        if self._closed:
            raise SourceUnavailableError("Gemini source is closed")

        body = build_request_body(request, self._system_instruction)
        data = self._post_with_retry(body)
        response = parse_response(data)
        logger.debug(
            "Gemini returned %d alternatives for prefix of %d chars, chosen=%r",
            len(response.candidates),
            len(request.prefix),
            response.chosen_text,
        )
        return response

    def _post_with_retry(self, body: dict[str, Any]) -> Any:
        """POST *body*, retrying transient failures.

        Returns:
            Decoded JSON body of the first successful response.

        Raises:
            SourceUnavailableError: On a permanent HTTP error or when every
                attempt failed.
        """
        last_err: Exception | None = None
        attempts = self._retry_count + 1
        for attempt in range(attempts):
            try:
                resp = self._client.post(self._url, headers=self._headers, json=body)
            except httpx.HTTPError as exc:
                last_err = exc
                logger.warning("Gemini request failed (attempt %d/%d): %s", attempt + 1, attempts, exc)
            else:
                if resp.status_code in _TRANSIENT_STATUS:
                    last_err = SourceUnavailableError(
                        f"Gemini transient error {resp.status_code}: {resp.text}"
                    )
                    logger.warning(
                        "Gemini returned %d (attempt %d/%d)", resp.status_code, attempt + 1, attempts
                    )
                elif resp.status_code >= 400:
                    raise SourceUnavailableError(
                        f"Gemini API error {resp.status_code}: {resp.text}"
                    )
                else:
                    try:
                        return resp.json()
                    except ValueError as exc:
                        raise SourceUnavailableError("Gemini returned invalid JSON") from exc

            if attempt < attempts - 1 and self._retry_backoff_s > 0:
                time.sleep(self._retry_backoff_s * (2**attempt))

        raise SourceUnavailableError(
            f"Gemini request failed after {attempts} attempt(s): {last_err}"
        ) from last_err

    def close(self) -> None:
        """Close the HTTP client."""
        if not self._closed:
            self._client.close()
            self._closed = True

    def health_check(self) -> dict[str, Any]:
        """Return health status including the model name."""
        return {"source": self.name, "healthy": self.is_available, "model": self._model}
