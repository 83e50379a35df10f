"""Tests for pagerduty_rest.hooks module."""

import pytest

from pagerduty_rest.hooks import NO_RETRY_CONFIG, Hooks, RetryConfig, invoke_with_hooks


def test_retry_config_defaults() -> None:
    """Test RetryConfig uses stamina defaults."""
    config = RetryConfig(on=RuntimeError)
    assert config.attempts == 10
    assert config.timeout == 45.0
    assert config.wait_initial == 0.1
    assert config.wait_max == 5.0
    assert config.wait_jitter == 1.0
    assert config.wait_exp_base == 2


def test_no_retry_config_constant() -> None:
    assert NO_RETRY_CONFIG.attempts == 1
    assert NO_RETRY_CONFIG.on is Exception


def test_hooks_merge() -> None:
    def first(_ctx: str) -> None: ...

    def second(_ctx: str) -> None: ...

    retry = RetryConfig(on=ValueError)
    merged = Hooks(pre_hooks=[first]).merge(
        Hooks(pre_hooks=[second], post_hooks=[second], retry_config=retry)
    )

    assert list(merged.pre_hooks) == [first, second]
    assert list(merged.post_hooks) == [second]
    assert merged.retry_config is retry


def test_hooks_merge_none() -> None:
    hooks: Hooks[str] = Hooks()
    assert hooks.merge(None) is hooks


@pytest.mark.asyncio
async def test_invoke_with_hooks_order() -> None:
    log: list[str] = []

    async def call() -> str:
        log.append("call")
        return "result"

    hooks: Hooks[str] = Hooks(
        pre_hooks=[lambda ctx: log.append(f"pre-{ctx}")],
        post_hooks=[lambda ctx: log.append(f"post-{ctx}")],
        error_hooks=[lambda ctx: log.append(f"error-{ctx}")],
    )

    assert await invoke_with_hooks("ctx", call, hooks) == "result"
    assert log == ["pre-ctx", "call", "post-ctx"]


@pytest.mark.asyncio
async def test_invoke_with_hooks_error() -> None:
    log: list[str] = []

    async def call() -> None:
        log.append("call")
        raise ValueError("boom")

    hooks: Hooks[str] = Hooks(
        pre_hooks=[lambda _ctx: log.append("pre")],
        post_hooks=[lambda _ctx: log.append("post")],
        error_hooks=[lambda _ctx: log.append("error")],
    )

    with pytest.raises(ValueError, match="boom"):
        await invoke_with_hooks("ctx", call, hooks)
    assert log == ["pre", "call", "error", "post"]


@pytest.mark.asyncio
async def test_invoke_with_hooks_retries(enable_retry: None) -> None:
    log: list[str] = []
    attempts = {"count": 0}

    async def call() -> int:
        attempts["count"] += 1
        log.append(f"call-{attempts['count']}")
        if attempts["count"] < 3:
            raise ValueError("retry")
        return attempts["count"]

    hooks: Hooks[str] = Hooks(
        pre_hooks=[lambda _ctx: log.append("pre")],
        post_hooks=[lambda _ctx: log.append("post")],
        retry_hooks=[lambda attempt: log.append(f"retry-{attempt}")],
        retry_config=RetryConfig(on=ValueError, wait_initial=0.001, wait_max=0.001),
    )

    assert await invoke_with_hooks("ctx", call, hooks) == 3
    assert log == ["pre", "call-1", "retry-2", "call-2", "retry-3", "call-3", "post"]


@pytest.mark.asyncio
async def test_invoke_with_hooks_does_not_retry_other_errors(
    enable_retry: None,
) -> None:
    attempts = {"count": 0}

    async def call() -> None:
        attempts["count"] += 1
        raise KeyError("nope")

    with pytest.raises(KeyError):
        await invoke_with_hooks(
            "ctx",
            call,
            Hooks(),
            retry_config=RetryConfig(on=ValueError),
        )
    assert attempts["count"] == 1


@pytest.mark.asyncio
async def test_invoke_with_hooks_check_is_not_retried(enable_retry: None) -> None:
    log: list[str] = []

    async def call() -> int:
        log.append("call")
        return 503

    def check(result: int) -> None:
        log.append("check")
        raise ValueError(f"status {result}")

    hooks: Hooks[str] = Hooks(
        post_hooks=[lambda _ctx: log.append("post")],
        error_hooks=[lambda _ctx: log.append("error")],
        retry_config=RetryConfig(on=Exception, wait_initial=0.001, wait_max=0.001),
    )

    with pytest.raises(ValueError, match="status 503"):
        await invoke_with_hooks("ctx", call, hooks, check=check)
    assert log == ["call", "check", "error", "post"]
