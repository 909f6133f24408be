import pytest

from conftest import FakeSynthesizer
from hostline.cache import MemoryCacheBackend, RedisCacheBackend
from hostline.config import CacheConfig, Settings
from hostline.events import InMemoryEventBus, WebhookEventBus
from hostline.runtime import create_orchestrator
from hostline.session_store import InMemorySessionStore

VALID = Settings(openai_api_key="sk-test", store_url="https://store.test")


class TestCreateOrchestrator:
    @pytest.mark.asyncio
    async def test_memory_caches_by_default(self):
        orchestrator = create_orchestrator(FakeSynthesizer(), settings=VALID)
        assert isinstance(orchestrator.synthesizer.cache.backend, MemoryCacheBackend)
        assert isinstance(orchestrator.pipeline.faq_cache.backend, MemoryCacheBackend)
        assert isinstance(orchestrator.publisher.bus, InMemoryEventBus)

    @pytest.mark.asyncio
    async def test_redis_url_shares_one_backend(self):
        settings = Settings(
            openai_api_key="sk-test",
            store_url="https://store.test",
            events_url="https://events.test/hook",
            cache=CacheConfig(redis_url="redis://localhost:6379/0"),
        )
        orchestrator = create_orchestrator(FakeSynthesizer(), settings=settings)
        backend = orchestrator.synthesizer.cache.backend
        assert isinstance(backend, RedisCacheBackend)
        assert orchestrator.pipeline.faq_cache.backend is backend
        assert isinstance(orchestrator.publisher.bus, WebhookEventBus)

    @pytest.mark.asyncio
    async def test_keeps_given_session_store(self):
        sessions = InMemorySessionStore()
        orchestrator = create_orchestrator(FakeSynthesizer(), settings=VALID, sessions=sessions)
        assert orchestrator.sessions is sessions

    def test_invalid_settings_stop_startup(self):
        with pytest.raises(SystemExit):
            create_orchestrator(FakeSynthesizer(), settings=Settings())
