"""
Executor: runs the features of one bank against registered plugins.

Features are grouped into fallback chains (same output kind and group).
Chains run concurrently; within a chain, items run concurrently and each item
walks the chain members in declaration order until one produces an output.
Every external call a plugin makes goes through the gateway, which owns the
replay behaviour.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .concurrency import map_limit
from .config.run import DEFAULT_FEATURE_CONCURRENCY
from .errors import ErrorContext, FeatureExecutionError, NoResultError, describe_error
from .gateway import ExternalCallGateway
from .logging import StructuredLogger, get_logger, truncate_for_log
from .models import CallSource, ErrorPolicy, FeatureKind, InputBank, ItemOutcome
from .plugins.base import ExternalCallRequest, PluginContext
from .plugins.registry import PluginRegistry
from .rate_limit import FeatureRateLimiter
from .resolver import FallbackChain, ResolvedFeature, group_features, resolve_features


@dataclass(frozen=True)
class ItemProgressEvent:
    """One member transition for one item; ``done`` counts per feature."""

    feature_id: str
    plugin_name: str
    total: int
    index: int
    done: int
    outcome: ItemOutcome


ProgressObserver = Callable[[ItemProgressEvent], None]


@dataclass
class ItemResult:
    input: str
    output: Any = None
    error: str | None = None

    @property
    def has_output(self) -> bool:
        return self.output is not None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"input": self.input}
        if self.output is not None:
            d["output"] = self.output
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass
class FeatureRunResult:
    feature_id: str
    provider: str
    kind: FeatureKind
    version: str
    group: str
    outputs: list[ItemResult] = field(default_factory=list)


@dataclass
class ExecuteBankResult:
    bank_title: str
    feature_results: list[FeatureRunResult] = field(default_factory=list)


class _FeatureState:
    """Pre-sized outputs and the progress counter of one feature."""

    def __init__(self, resolved: ResolvedFeature, inputs: Sequence[str]) -> None:
        self.resolved = resolved
        self.outputs: list[ItemResult | None] = [None] * len(inputs)
        self.done = 0


class _CallCounter:
    def __init__(self) -> None:
        self.replayed = 0
        self.live = 0

    def record(self, source: CallSource) -> None:
        if source == CallSource.REPLAY:
            self.replayed += 1
        else:
            self.live += 1

    @property
    def outcome(self) -> ItemOutcome:
        if self.replayed and not self.live:
            return ItemOutcome.REPLAYED
        if self.replayed and self.live:
            return ItemOutcome.PARTIAL_REPLAY
        return ItemOutcome.PASSED


class Executor:
    """
    Scheduler for one bank run.

    Example:
        ```python
        executor = Executor(registry, gateway, error_policy=ErrorPolicy.SKIP_ITEM)
        result = await executor.execute_bank(bank)
        ```
    """

    def __init__(
        self,
        registry: PluginRegistry,
        gateway: ExternalCallGateway,
        *,
        feature_parallelism: int | None = None,
        feature_concurrency: int = DEFAULT_FEATURE_CONCURRENCY,
        error_policy: ErrorPolicy = ErrorPolicy.FAIL,
        on_item_progress: ProgressObserver | None = None,
        rate_limiter: FeatureRateLimiter | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.registry = registry
        self.gateway = gateway
        self.feature_parallelism = feature_parallelism
        self.feature_concurrency = feature_concurrency
        self.error_policy = ErrorPolicy(error_policy)
        self.on_item_progress = on_item_progress
        self.rate_limiter = rate_limiter or FeatureRateLimiter()
        self.logger = logger or get_logger()

    async def execute_bank(self, bank: InputBank) -> ExecuteBankResult:
        resolved = resolve_features(bank.features, self.registry)
        chains = group_features(resolved)
        states = {feature.feature_id: _FeatureState(feature, bank.data) for feature in resolved}

        parallelism = max(1, self.feature_parallelism or len(chains) or 1)
        self.logger.debug(
            "Executing bank",
            features=len(resolved),
            chains=len(chains),
            items=len(bank.data),
            feature_parallelism=parallelism,
        )

        async def run_chain_entry(chain: FallbackChain, chain_index: int) -> None:
            await self._run_chain(chain, bank.data, states)

        await map_limit(chains, parallelism, run_chain_entry)

        feature_results = []
        for feature in resolved:
            state = states[feature.feature_id]
            feature_results.append(
                FeatureRunResult(
                    feature_id=feature.feature_id,
                    provider=feature.plugin.provider,
                    kind=feature.plugin.kind,
                    version=feature.plugin.version,
                    group=feature.group,
                    outputs=[
                        item if item is not None else ItemResult(input=bank.data[index])
                        for index, item in enumerate(state.outputs)
                    ],
                )
            )
        return ExecuteBankResult(bank_title=bank.title, feature_results=feature_results)

    def _item_concurrency(self, chain: FallbackChain) -> int:
        limits = [
            member.plugin.item_concurrency if member.plugin.item_concurrency is not None else self.feature_concurrency
            for member in chain
        ]
        return max(1, max(limits, default=1))

    async def _run_chain(
        self,
        chain: FallbackChain,
        inputs: Sequence[str],
        states: dict[str, _FeatureState],
    ) -> None:
        async def run_item(input: str, index: int) -> None:
            resolved = False
            errored = False
            for member in chain:
                state = states[member.feature_id]
                if resolved or errored:
                    state.outputs[index] = ItemResult(input=input)
                    self._emit(state, index, ItemOutcome.SKIPPED)
                    continue

                counter = _CallCounter()
                with self.logger.feature_context(member.feature_id, member.plugin.provider):
                    try:
                        output = await member.plugin.run(
                            input,
                            member.feature.options,
                            self._plugin_context(member, counter),
                        )
                    except NoResultError:
                        state.outputs[index] = ItemResult(input=input)
                        self._emit(state, index, ItemOutcome.SKIPPED)
                        continue
                    except Exception as exc:
                        reason = describe_error(exc)
                        self._emit(state, index, ItemOutcome.ERROR)
                        if self.error_policy == ErrorPolicy.FAIL:
                            raise FeatureExecutionError(
                                member.feature_id,
                                input,
                                reason,
                                context=ErrorContext(
                                    feature_id=member.feature_id, provider=member.plugin.provider, input=input
                                ),
                                cause=exc,
                            ) from exc
                        self.logger.warning(
                            "Item failed, skipping",
                            index=index,
                            input=truncate_for_log(input, 80),
                            error=reason,
                        )
                        state.outputs[index] = ItemResult(input=input, error=reason)
                        errored = True
                        continue

                state.outputs[index] = ItemResult(input=input, output=output)
                resolved = True
                self._emit(state, index, counter.outcome)

        await map_limit(inputs, self._item_concurrency(chain), run_item)

    def _plugin_context(self, member: ResolvedFeature, counter: _CallCounter) -> PluginContext:
        bucket = self.rate_limiter.bucket_for(member.feature_id, member.feature.max_rpm)

        async def call_external(request: ExternalCallRequest) -> Any:
            result = await self.gateway.call(
                request,
                provider=member.plugin.provider,
                feature_id=member.feature_id,
                feature_options=member.feature.options,
                rate_limit=bucket,
            )
            counter.record(result.source)
            return result.response

        return PluginContext(call_external=call_external)

    def _emit(self, state: _FeatureState, index: int, outcome: ItemOutcome) -> None:
        state.done += 1
        if self.on_item_progress is None:
            return
        self.on_item_progress(
            ItemProgressEvent(
                feature_id=state.resolved.feature_id,
                plugin_name=state.resolved.plugin.provider,
                total=len(state.outputs),
                index=index,
                done=state.done,
                outcome=outcome,
            )
        )


__all__ = [
    "ItemProgressEvent",
    "ProgressObserver",
    "ItemResult",
    "FeatureRunResult",
    "ExecuteBankResult",
    "Executor",
]
