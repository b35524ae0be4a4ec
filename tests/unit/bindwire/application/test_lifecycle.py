"""Unit tests for LifecycleTracker."""

import pytest

from bindwire.application.lifecycle import LifecycleTracker
from bindwire.domain import Definition, InstantiationError, PreDestroyError


class TestPostConstruct:
    """Test cases for post-construct hooks."""

    def test_apply_runs_post_construct(self):
        """Test that the post-construct method is called."""

        class Service:
            def __init__(self):
                self.initialized = False

            def init(self):
                self.initialized = True

        tracker = LifecycleTracker()
        service = Service()
        tracker.apply(service, Definition(post_construct="init"))

        assert service.initialized is True

    def test_post_construct_failure_is_wrapped(self):
        """Test that a failing hook raises InstantiationError."""

        class Service:
            def init(self):
                raise ValueError("bad config")

        tracker = LifecycleTracker()

        with pytest.raises(InstantiationError, match="bad config") as exc_info:
            tracker.apply(Service(), Definition(post_construct="init"))

        assert isinstance(exc_info.value.__cause__, ValueError)


class TestPreDestroy:
    """Test cases for pre-destroy registration and teardown."""

    def test_apply_registers_pre_destroy(self):
        """Test that apply registers the pre-destroy hook."""

        class Pool:
            def close(self):
                pass

        tracker = LifecycleTracker()
        pool = Pool()
        tracker.apply(pool, Definition(pre_destroy="close"))

        assert list(tracker) == [(pool, "close")]

    def test_hooks_run_in_registration_order(self):
        """Test that teardown is FIFO."""
        order = []

        class Resource:
            def __init__(self, name):
                self.name = name

            def close(self):
                order.append(self.name)

        tracker = LifecycleTracker()
        for name in ("first", "second", "third"):
            tracker.register(Resource(name), "close")

        tracker.notify_pre_shutdown()

        assert order == ["first", "second", "third"]

    def test_hooks_run_once(self):
        """Test that a second teardown does nothing."""
        calls = []

        class Resource:
            def close(self):
                calls.append(1)

        tracker = LifecycleTracker()
        tracker.register(Resource(), "close")
        tracker.notify_pre_shutdown()
        tracker.notify_pre_shutdown()

        assert calls == [1]
        assert len(tracker) == 0

    def test_registering_same_instance_twice_keeps_one_entry(self):
        """Test that an instance is registered once."""

        class Resource:
            def close(self):
                pass

        tracker = LifecycleTracker()
        resource = Resource()
        tracker.register(resource, "close")
        tracker.register(resource, "close")

        assert len(tracker) == 1

    def test_registration_keeps_instance_alive(self):
        """Test that the tracker holds a strong reference."""
        closed = []

        class Resource:
            def close(self):
                closed.append(True)

        tracker = LifecycleTracker()
        tracker.register(Resource(), "close")
        tracker.notify_pre_shutdown()

        assert closed == [True]

    def test_failing_hook_does_not_stop_sweep(self):
        """Test that all hooks run and failures are reported afterwards."""
        order = []

        class Broken:
            def close(self):
                order.append("broken")
                raise RuntimeError("boom")

        class Healthy:
            def close(self):
                order.append("healthy")

        tracker = LifecycleTracker()
        broken = Broken()
        tracker.register(broken, "close")
        tracker.register(Healthy(), "close")

        with pytest.raises(PreDestroyError) as exc_info:
            tracker.notify_pre_shutdown()

        assert order == ["broken", "healthy"]
        instance, method_name, error = exc_info.value.errors[0]
        assert instance is broken
        assert method_name == "close"
        assert isinstance(error, RuntimeError)
