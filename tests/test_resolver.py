"""
Tests for plugin resolution and boot context teardown.
"""

import asyncio

import pytest

from plugbox import (
    CircularDependencyError,
    Lifecycle,
    PluginResolutionError,
    PluginResolver,
    Ref,
    UnresolvedDependency,
)


class Connection:
    def __init__(self, url: str):
        self.url = url
        self.open = True

    def close(self) -> None:
        self.open = False


@pytest.mark.asyncio
async def test_plain_values_are_kept_verbatim() -> None:
    def factory():
        return "made"

    context = await PluginResolver().resolve({"port": 80, "factory": factory, "none": None})

    assert dict(context) == {"port": 80, "factory": factory, "none": None}
    assert list(context) == ["port", "factory", "none"]


@pytest.mark.asyncio
async def test_empty_config() -> None:
    context = await PluginResolver().resolve({})

    assert len(context) == 0
    await context.destroy()


@pytest.mark.asyncio
async def test_refs_resolve_to_other_plugins() -> None:
    context = await PluginResolver().resolve({"url": "db://main", "primary": Ref("url")})

    assert context["primary"] == "db://main"


@pytest.mark.asyncio
async def test_lifecycle_gets_other_plugins_injected() -> None:
    def connect(url):
        return Connection(url)

    context = await PluginResolver().resolve(
        {"db": Lifecycle.make(connect, Connection.close), "url": "db://main"}
    )

    assert isinstance(context["db"], Connection)
    assert context["db"].url == "db://main"


@pytest.mark.asyncio
async def test_async_acquire_and_release() -> None:
    released = []

    async def acquire():
        await asyncio.sleep(0.01)
        return Connection("async://")

    async def release(conn: Connection) -> None:
        await asyncio.sleep(0.01)
        released.append(conn.url)

    context = await PluginResolver().resolve({"conn": Lifecycle.make(acquire, release)})
    assert context["conn"].url == "async://"

    await context.destroy()
    assert released == ["async://"]


@pytest.mark.asyncio
async def test_pure_and_from_factory() -> None:
    marker = object()

    def build(name):
        return f"built-{name}"

    context = await PluginResolver().resolve(
        {"marker": Lifecycle.pure(marker), "built": Lifecycle.fromFactory(build), "name": "x"}
    )

    assert context["marker"] is marker
    assert context["built"] == "built-x"
    await context.destroy()


@pytest.mark.asyncio
async def test_nested_literals_are_resolved() -> None:
    context = await PluginResolver().resolve(
        {
            "host": "localhost",
            "settings": {"hosts": [Ref("host"), "backup"], "pair": (Ref("host"), 1)},
        }
    )

    assert context["settings"] == {"hosts": ["localhost", "backup"], "pair": ("localhost", 1)}


@pytest.mark.asyncio
async def test_optional_acquire_parameters_use_defaults() -> None:
    def acquire(url, retries=3):
        return (url, retries)

    context = await PluginResolver().resolve({"url": "u", "conn": Lifecycle.fromFactory(acquire)})

    assert context["conn"] == ("u", 3)


@pytest.mark.asyncio
async def test_positional_only_acquire_defaults_keep_position() -> None:
    def acquire(host="localhost", port=5432, /):
        return (host, port)

    context = await PluginResolver().resolve({"port": 6543, "conn": Lifecycle.fromFactory(acquire)})

    assert context["conn"] == ("localhost", 6543)


@pytest.mark.asyncio
async def test_each_plugin_resolved_once() -> None:
    calls = []

    def acquire():
        calls.append(1)
        return object()

    context = await PluginResolver().resolve(
        {"shared": Lifecycle.fromFactory(acquire), "a": Ref("shared"), "b": Ref("shared")}
    )

    assert len(calls) == 1
    assert context["a"] is context["b"] is context["shared"]


@pytest.mark.asyncio
async def test_independent_plugins_initialize_concurrently() -> None:
    first_started = asyncio.Event()
    second_started = asyncio.Event()

    async def first():
        first_started.set()
        await asyncio.wait_for(second_started.wait(), 1)
        return 1

    async def second():
        second_started.set()
        await asyncio.wait_for(first_started.wait(), 1)
        return 2

    context = await PluginResolver().resolve(
        {"first": Lifecycle.fromFactory(first), "second": Lifecycle.fromFactory(second)}
    )

    assert dict(context) == {"first": 1, "second": 2}


@pytest.mark.asyncio
async def test_unknown_ref_fails() -> None:
    with pytest.raises(PluginResolutionError) as exc_info:
        await PluginResolver().resolve({"a": Ref("missing")})

    assert exc_info.value.plugin == "a"
    assert isinstance(exc_info.value.cause, UnresolvedDependency)
    assert exc_info.value.cause.name == "missing"


@pytest.mark.asyncio
async def test_cycle_fails_before_initializing_anything() -> None:
    calls = []

    def acquire_a(b):
        calls.append("a")
        return b

    context_config = {"a": Lifecycle.fromFactory(acquire_a), "b": Ref("a")}

    with pytest.raises(PluginResolutionError) as exc_info:
        await PluginResolver().resolve(context_config)

    assert isinstance(exc_info.value.cause, CircularDependencyError)
    assert exc_info.value.cause.cycle == ["a", "b", "a"]
    assert calls == []


@pytest.mark.asyncio
async def test_failure_names_plugin_and_keeps_cause() -> None:
    error = ConnectionRefusedError("no route")

    def acquire():
        raise error

    with pytest.raises(PluginResolutionError) as exc_info:
        await PluginResolver().resolve({"db": Lifecycle.fromFactory(acquire)})

    assert exc_info.value.plugin == "db"
    assert exc_info.value.cause is error
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_failure_releases_acquired_resources() -> None:
    released = []

    def acquire_cache():
        return "cache"

    async def acquire_db(cache):
        raise ConnectionRefusedError(cache)

    with pytest.raises(PluginResolutionError) as exc_info:
        await PluginResolver().resolve(
            {
                "cache": Lifecycle.make(acquire_cache, released.append),
                "db": Lifecycle.fromFactory(acquire_db),
            }
        )

    assert exc_info.value.plugin == "db"
    assert released == ["cache"]


@pytest.mark.asyncio
async def test_cancellation_releases_acquired_resources() -> None:
    released = []

    async def slow():
        await asyncio.sleep(10)

    with pytest.raises(TimeoutError):
        await asyncio.wait_for(
            PluginResolver().resolve(
                {
                    "fast": Lifecycle.make(lambda: "fast", released.append),
                    "slow": Lifecycle.fromFactory(slow),
                }
            ),
            0.05,
        )

    assert released == ["fast"]


@pytest.mark.asyncio
async def test_destroy_releases_in_reverse_order() -> None:
    events = []

    def acquire_config():
        events.append("acquire_config")
        return "config"

    def acquire_db(config):
        events.append("acquire_db")
        return f"db({config})"

    context = await PluginResolver().resolve(
        {
            "db": Lifecycle.make(acquire_db, lambda _: events.append("release_db")),
            "config": Lifecycle.make(acquire_config, lambda _: events.append("release_config")),
        }
    )
    await context.destroy()

    assert events == ["acquire_config", "acquire_db", "release_db", "release_config"]


@pytest.mark.asyncio
async def test_destroy_is_idempotent() -> None:
    released = []
    context = await PluginResolver().resolve({"a": Lifecycle.make(lambda: "a", released.append)})

    await context.destroy()
    await context.destroy()

    assert released == ["a"]
    assert context.destroyed


@pytest.mark.asyncio
async def test_destroy_continues_after_failed_release() -> None:
    released = []
    error = OSError("cannot close")

    def broken_release(_):
        raise error

    context = await PluginResolver().resolve(
        {
            "first": Lifecycle.make(lambda: "first", released.append),
            "broken": Lifecycle.make(lambda first: "broken", broken_release),
        }
    )

    with pytest.raises(OSError) as exc_info:
        await context.destroy()

    assert exc_info.value is error
    assert released == ["first"]
