"""Hook system for API calls.

Every API round trip runs through ``invoke_with_hooks``:

    pre_hooks -> call (retried per RetryConfig, retry_hooks before each retry)
    -> check (never retried)
    -> post_hooks (always) / error_hooks (on failure)

Retries are delegated to stamina, so ``stamina.set_active(False)`` disables
them globally (e.g. in tests).
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

import stamina


@dataclass(frozen=True)
class RetryConfig:
    """Retry settings passed to stamina (defaults are stamina's defaults)."""

    on: type[Exception] | tuple[type[Exception], ...]
    attempts: int | None = 10
    timeout: float | None = 45.0
    wait_initial: float = 0.1
    wait_max: float = 5.0
    wait_jitter: float = 1.0
    wait_exp_base: float = 2


NO_RETRY_CONFIG = RetryConfig(on=Exception, attempts=1)


@dataclass(frozen=True)
class Hooks[T]:
    pre_hooks: Sequence[Callable[[T], None]] = field(default_factory=tuple)
    post_hooks: Sequence[Callable[[T], None]] = field(default_factory=tuple)
    error_hooks: Sequence[Callable[[T], None]] = field(default_factory=tuple)
    retry_hooks: Sequence[Callable[[int], None]] = field(default_factory=tuple)
    retry_config: RetryConfig | None = None

    def merge(self, other: "Hooks[T] | None") -> "Hooks[T]":
        """Append the hooks of ``other``; its retry_config wins if set."""
        if other is None:
            return self
        return Hooks(
            pre_hooks=(*self.pre_hooks, *other.pre_hooks),
            post_hooks=(*self.post_hooks, *other.post_hooks),
            error_hooks=(*self.error_hooks, *other.error_hooks),
            retry_hooks=(*self.retry_hooks, *other.retry_hooks),
            retry_config=other.retry_config or self.retry_config,
        )


async def _call_with_retry[R](
    call: Callable[[], Awaitable[R]],
    retry_hooks: Sequence[Callable[[int], None]],
    config: RetryConfig,
) -> R:
    async for attempt in stamina.retry_context(
        on=config.on,
        attempts=config.attempts,
        timeout=config.timeout,
        wait_initial=config.wait_initial,
        wait_max=config.wait_max,
        wait_jitter=config.wait_jitter,
        wait_exp_base=config.wait_exp_base,
    ):
        with attempt:
            if attempt.num > 1:
                for retry_hook in retry_hooks:
                    retry_hook(attempt.num)
            return await call()
    raise RuntimeError("retry loop finished without a result")


async def invoke_with_hooks[T, R](
    context: T,
    call: Callable[[], Awaitable[R]],
    hooks: Hooks[T],
    retry_config: RetryConfig | None = None,
    check: Callable[[R], None] | None = None,
) -> R:
    """Await ``call()`` wrapped by the given hooks.

    Args:
        context: Passed to pre, post and error hooks
        call: Coroutine factory, invoked once per attempt
        hooks: Hooks to run
        retry_config: Overrides ``hooks.retry_config`` for this invocation
        check: Validates the result once retries are done, its exceptions
            are never retried but still reach the error hooks

    Returns:
        The result of the first successful attempt
    """
    config = retry_config or hooks.retry_config or NO_RETRY_CONFIG
    for hook in hooks.pre_hooks:
        hook(context)
    try:
        result = await _call_with_retry(call, hooks.retry_hooks, config)
        if check is not None:
            check(result)
        return result
    except Exception:
        for hook in hooks.error_hooks:
            hook(context)
        raise
    finally:
        for hook in hooks.post_hooks:
            hook(context)
