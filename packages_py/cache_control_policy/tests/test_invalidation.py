"""Tests for token rotation."""
import pytest

from cache_control_policy import (
    CachePolicyEngine,
    CachePolicyEventType,
    ConfigurationError,
    ContentMutationEvent,
    InvalidationTrigger,
    MemoryTokenStore,
    TokenStoreUnavailable,
    create_invalidation_trigger,
    generate_token,
    is_qualifying_mutation,
    resolve_policy_configuration,
)


class TestQualifyingMutation:
    def test_canonical_save_qualifies(self):
        assert is_qualifying_mutation(ContentMutationEvent()) is True

    @pytest.mark.parametrize(
        "flag", ["is_draft", "is_revision", "propagating", "resaving"]
    )
    def test_non_canonical_saves_do_not_qualify(self, flag):
        assert is_qualifying_mutation(ContentMutationEvent(**{flag: True})) is False


class TestInvalidate:
    @pytest.mark.asyncio
    async def test_writes_fresh_token(self, store):
        trigger = InvalidationTrigger(store, "cache-control-etag", 3600)

        token = await trigger.invalidate()

        assert token is not None
        assert await store.get("cache-control-etag") == token

    @pytest.mark.asyncio
    async def test_successive_tokens_differ(self, store):
        trigger = InvalidationTrigger(store, "cache-control-etag", 3600)

        first = await trigger.invalidate()
        second = await trigger.invalidate()

        assert first != second
        assert await store.get("cache-control-etag") == second

    def test_generated_tokens_are_unique(self):
        assert len({generate_token() for _ in range(100)}) == 100

    @pytest.mark.asyncio
    async def test_custom_token_factory(self, store):
        trigger = InvalidationTrigger(store, "k", 60, token_factory=lambda: "fixed")
        assert await trigger.invalidate() == "fixed"

    @pytest.mark.asyncio
    async def test_empty_key_is_noop(self, store):
        trigger = InvalidationTrigger(store, None, 3600)

        assert trigger.enabled is False
        assert await trigger.invalidate() is None
        assert store.size() == 0

    @pytest.mark.asyncio
    async def test_zero_ttl_is_noop(self, store):
        trigger = InvalidationTrigger(store, "cache-control-etag", 0)

        assert await trigger.invalidate() is None
        assert store.size() == 0

    @pytest.mark.parametrize("ttl", [-1, "3600", None, True])
    def test_invalid_ttl_rejected(self, ttl):
        with pytest.raises(ConfigurationError):
            InvalidationTrigger(MemoryTokenStore(), "cache-control-etag", ttl)

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, failing_store):
        trigger = InvalidationTrigger(failing_store, "cache-control-etag", 3600)

        with pytest.raises(TokenStoreUnavailable):
            await trigger.invalidate()

    @pytest.mark.asyncio
    async def test_emits_invalidate_event(self, store):
        trigger = InvalidationTrigger(store, "cache-control-etag", 3600)
        events = []
        trigger.on(events.append)

        await trigger.invalidate()

        assert len(events) == 1
        assert events[0].type == CachePolicyEventType.INVALIDATE
        assert events[0].metadata == {"token_key": "cache-control-etag", "ttl": 3600}


class TestHandle:
    @pytest.mark.asyncio
    async def test_qualifying_save_rotates(self, store):
        trigger = InvalidationTrigger(store, "cache-control-etag", 3600)

        token = await trigger.handle(ContentMutationEvent(source="entry:42"))

        assert token == await store.get("cache-control-etag")

    @pytest.mark.asyncio
    async def test_draft_save_keeps_token(self, store):
        await store.set("cache-control-etag", "abc123", 3600)
        trigger = InvalidationTrigger(store, "cache-control-etag", 3600)

        assert await trigger.handle(ContentMutationEvent(is_draft=True)) is None
        assert await store.get("cache-control-etag") == "abc123"


class TestInvalidationWithEngine:
    @pytest.mark.asyncio
    async def test_rotation_invalidates_issued_tags(self, store, make_request):
        config = resolve_policy_configuration({"etagCacheKey": "site-etag", "etagTTL": 60})
        engine = CachePolicyEngine(config, store)
        trigger = create_invalidation_trigger(store, config)

        old_token = await trigger.invalidate()
        request = make_request(headers={"If-None-Match": old_token})
        assert (await engine.decide(request)).short_circuit is True

        new_token = await trigger.invalidate()
        outcome = await engine.decide(request)

        assert outcome.short_circuit is False
        assert outcome.headers["ETag"] == new_token

    def test_from_config(self):
        config = resolve_policy_configuration({"token_key": "k", "token_ttl": 10})
        trigger = InvalidationTrigger.from_config(config, MemoryTokenStore())
        assert trigger.enabled is True
