"""
External call gateway: cache-key derivation and the replay policy.

Every external call a plugin makes goes through ``ExternalCallGateway.call``.
Depending on the replay policy the call is answered from the call log,
performed live, or refused; live outcomes (success and failure) are always
recorded so a later replay-only run reproduces them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .calllog import ApiCallLog, CallLog
from .errors import ExternalCallError, ReplayMissError, ReplayRecordedError, UnsupportedRequestError, serialize_error
from .hashing import DEFAULT_CACHE_SCHEMA, feature_call_key, identity_call_key
from .logging import ExternalCallLog, StructuredLogger, Timer, get_logger
from .models import CallSource, ReplayPolicy
from .plugins.base import ExternalCallRequest
from .rate_limit import TokenBucket
from .serialization import to_jsonable
from .transport import HttpFormRequest, HttpJsonRequest, Transport


@dataclass(frozen=True)
class CallResult:
    response: Any
    source: CallSource
    key: str


def derive_call_key(
    request: ExternalCallRequest,
    *,
    provider: str,
    feature_id: str,
    feature_options: dict[str, Any],
) -> str:
    """
    Cache key of one external call.

    A declared cache identity is keyed by provider, operation, schema and
    identity; otherwise the key binds feature id, operation, options and input.
    """
    identity = request.cache_identity
    if identity is not None:
        return identity_call_key(provider, request.operation, identity.value, identity.schema)
    return feature_call_key(feature_id, request.operation, feature_options, request.input)


class ExternalCallGateway:
    """
    Replay-aware wrapper around one transport and one call log.

    The gateway is owned by a single bank run; the call log is written only
    through it.
    """

    def __init__(
        self,
        call_log: CallLog,
        transport: Transport,
        *,
        replay_policy: ReplayPolicy = ReplayPolicy.REPLAY_THEN_LIVE,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.call_log = call_log
        self.transport = transport
        self.replay_policy = ReplayPolicy(replay_policy)
        self.logger = logger or get_logger()

    async def call(
        self,
        request: ExternalCallRequest,
        *,
        provider: str,
        feature_id: str,
        feature_options: dict[str, Any],
        rate_limit: TokenBucket | None = None,
    ) -> CallResult:
        key = derive_call_key(
            request,
            provider=provider,
            feature_id=feature_id,
            feature_options=feature_options,
        )

        if self.replay_policy != ReplayPolicy.LIVE:
            cached = await self.call_log.get(key)
            if cached is not None and cached.is_ok:
                self.logger.log_replay_hit(key, operation=request.operation)
                return CallResult(response=cached.response, source=CallSource.REPLAY, key=key)

            if self.replay_policy == ReplayPolicy.REPLAY_ONLY:
                if cached is None:
                    self.logger.log_replay_miss(key, operation=request.operation)
                    raise ReplayMissError(key)
                raise ReplayRecordedError(key)

            if cached is None:
                self.logger.log_replay_miss(key, operation=request.operation)
            else:
                self.logger.log_replay_retry(key, operation=request.operation)

        if rate_limit is not None:
            await rate_limit.consume(1)

        response = await self._call_live(request, key=key, provider=provider)
        return CallResult(response=response, source=CallSource.LIVE, key=key)

    async def _call_live(self, request: ExternalCallRequest, *, key: str, provider: str) -> Any:
        timer = Timer()
        identity = request.cache_identity
        record = ApiCallLog(
            key=key,
            ts="",
            input=request.input,
            status="ok",
            duration_ms=0,
            provider=provider,
            operation=request.operation,
            cache_schema=(identity.schema or DEFAULT_CACHE_SCHEMA) if identity is not None else None,
            cache_identity=to_jsonable(identity.value) if identity is not None else None,
            request=_describe_request(request.request),
        )

        try:
            if not isinstance(request.request, (HttpJsonRequest, HttpFormRequest)):
                raise UnsupportedRequestError()
            response = await self.transport.send(request.request)
        except Exception as exc:
            record.status = "error"
            record.error = serialize_error(exc)
            await self._persist(record, timer)
            self.logger.log_external_call(
                ExternalCallLog(
                    key=key,
                    provider=provider,
                    operation=request.operation,
                    success=False,
                    status_code=exc.http_status if isinstance(exc, ExternalCallError) else None,
                    error=str(exc),
                    duration_ms=record.duration_ms,
                )
            )
            raise

        record.response = response
        await self._persist(record, timer)
        self.logger.log_external_call(
            ExternalCallLog(
                key=key,
                provider=provider,
                operation=request.operation,
                duration_ms=record.duration_ms,
            )
        )
        return response

    async def _persist(self, record: ApiCallLog, timer: Timer) -> None:
        record.ts = _utc_timestamp()
        record.duration_ms = int(timer.stop())
        await self.call_log.put(record)


def _describe_request(request: Any) -> Any:
    if hasattr(request, "to_dict"):
        return request.to_dict()
    return to_jsonable(request)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = ["CallResult", "derive_call_key", "ExternalCallGateway"]
