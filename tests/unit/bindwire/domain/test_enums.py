"""Unit tests for domain enums."""

from bindwire.domain import BindingKind, CacheSession, JitKind, Scope


class TestScope:
    """Test cases for the Scope enum."""

    def test_scope_values(self):
        """Test that scopes have their expected string values."""
        assert Scope.SINGLETON.value == "singleton"
        assert Scope.PROTOTYPE.value == "prototype"

    def test_scope_str_returns_value(self):
        """Test that str() returns the raw value."""
        assert str(Scope.SINGLETON) == "singleton"

    def test_scope_from_string(self):
        """Test that scopes can be created from their value."""
        assert Scope("prototype") is Scope.PROTOTYPE

    def test_scope_compares_to_string(self):
        """Test that Scope is a str enum."""
        assert Scope.SINGLETON == "singleton"


class TestBindingKind:
    """Test cases for the BindingKind enum."""

    def test_all_kinds_present(self):
        """Test that every construction strategy is defined."""
        assert {kind.value for kind in BindingKind} == {
            "instance",
            "class",
            "provider",
            "constructor",
            "callable",
        }

    def test_binding_kind_str(self):
        """Test string representation of binding kinds."""
        assert str(BindingKind.PROVIDER) == "provider"


class TestJitKind:
    """Test cases for the JitKind enum."""

    def test_jit_kind_values(self):
        """Test default-binding hint kinds."""
        assert JitKind.IMPLEMENTED_BY.value == "implemented_by"
        assert JitKind.PROVIDED_BY.value == "provided_by"


class TestCacheSession:
    """Test cases for the CacheSession enum."""

    def test_cache_session_values(self):
        """Test cache session boundaries."""
        assert str(CacheSession.INJECTOR) == "injector"
        assert str(CacheSession.PROCESS) == "process"
