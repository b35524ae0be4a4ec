"""Integration tests for the persistent cache gate."""

from bindwire import AbstractModule, CacheSession, EmptyModule, Injector, InjectorConfig
from bindwire.infrastructure import ArrayCache, PickleFileCache


class Settings:
    def __init__(self):
        self.loaded_from = "constructor"


class SettingsModule(AbstractModule):
    def configure(self):
        pass


class TestCacheGate:
    """Test which constructions read and write the persistent cache."""

    def test_top_level_first_load_is_saved(self):
        """Test that the first top-level construction is persisted."""
        cache = ArrayCache()
        injector = Injector(cache=cache)

        settings = injector.construct(Settings)

        assert len(cache) == 1
        key = next(iter(cache._entries))
        assert key.endswith(f"{Settings.__module__}.{Settings.__qualname__}")
        assert cache.fetch(key) is settings

    def test_other_injector_reuses_cached_instance(self):
        """Test that a later injector gets the cached instance."""
        cache = ArrayCache()
        first = Injector(cache=cache).construct(Settings)

        second = Injector(cache=cache).construct(Settings)

        assert second is first

    def test_second_load_in_same_injector_skips_cache(self):
        """Test that only the first load of a class uses the cache."""
        cache = ArrayCache()
        injector = Injector(cache=cache)

        first = injector.construct(Settings)
        second = injector.construct(Settings)

        assert second is not first
        assert len(cache) == 1

    def test_nested_constructions_are_not_saved(self):
        """Test that dependencies resolved inside a construction are not persisted."""

        class Repository:
            pass

        class Service:
            def __init__(self, repo: Repository):
                self.repo = repo

        cache = ArrayCache()
        Injector(cache=cache).construct(Service)

        assert len(cache) == 1
        assert all(key.endswith("Service") for key in cache._entries)

    def test_module_identity_separates_entries(self):
        """Test that different module configurations never share entries."""
        cache = ArrayCache()
        first = Injector(EmptyModule(), cache=cache).construct(Settings)

        second = Injector(SettingsModule(), cache=cache).construct(Settings)

        assert second is not first
        assert len(cache) == 2

    def test_cache_context_separates_entries(self):
        """Test that the process context is part of the key."""
        cache = ArrayCache()
        first = Injector(cache=cache, config=InjectorConfig(cache_context="worker-a")).construct(Settings)

        second = Injector(cache=cache, config=InjectorConfig(cache_context="worker-b")).construct(Settings)

        assert second is not first

    def test_set_cache(self):
        """Test attaching a cache after creation."""
        cache = ArrayCache()
        injector = Injector().set_cache(cache)

        injector.construct(Settings)

        assert len(cache) == 1


class TestCacheSession:
    """Test the configurable "already loaded" boundary."""

    def test_injector_session_is_per_injector(self):
        """Test that each injector has its own loaded set."""

        class Report:
            pass

        cache = ArrayCache()
        config = InjectorConfig(cache_session=CacheSession.INJECTOR)
        first = Injector(cache=cache, config=config).construct(Report)

        assert Injector(cache=cache, config=config).construct(Report) is first

    def test_process_session_is_shared(self):
        """Test that a process session loads each class once across injectors."""

        class Report:
            pass

        cache = ArrayCache()
        config = InjectorConfig(cache_session=CacheSession.PROCESS)
        first = Injector(cache=cache, config=config).construct(Report)

        second = Injector(cache=cache, config=config).construct(Report)

        assert second is not first
        assert len(cache) == 1


class TestPickleFileCacheIntegration:
    """Test the file cache across injectors."""

    def test_instances_survive_between_injectors(self, tmp_path):
        """Test that a new injector restores the pickled instance."""
        first = Injector(cache=PickleFileCache(str(tmp_path))).construct(Settings)
        first.loaded_from = "changed after save"

        restored = Injector(cache=PickleFileCache(str(tmp_path))).construct(Settings)

        assert restored is not first
        assert isinstance(restored, Settings)
        assert restored.loaded_from == "constructor"

    def test_unpicklable_instance_is_still_returned(self, tmp_path):
        """Test that a construction succeeds when its instance cannot be persisted."""

        class Handler:
            pass

        injector = Injector(cache=PickleFileCache(str(tmp_path)))

        assert isinstance(injector.construct(Handler), Handler)
        assert list(tmp_path.iterdir()) == []
