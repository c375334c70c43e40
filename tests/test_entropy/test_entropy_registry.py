"""Tests for EntropySourceRegistry."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from probability_pulse.entropy.base import EntropySource
from probability_pulse.entropy.mock import MockUniformSource
from probability_pulse.entropy.registry import EntropySourceRegistry
from probability_pulse.entropy.system import SystemEntropySource


class _DummySource(EntropySource):
    """Minimal concrete source for registry tests."""

    @property
    def name(self) -> str:
        return "dummy"

    @property
    def is_available(self) -> bool:
        return True

    def get_random_bytes(self, n: int) -> bytes:
        return b"\x00" * n

    def close(self) -> None:
        pass


class TestEntropySourceRegistry:
    """Tests for the decorator-based registry with entry-point discovery."""

    def setup_method(self) -> None:
        """Save registry state before each test."""
        self._saved_registry = dict(EntropySourceRegistry._registry)
        self._saved_loaded = EntropySourceRegistry._entry_points_loaded

    def teardown_method(self) -> None:
        """Restore registry state after each test."""
        EntropySourceRegistry._registry = self._saved_registry
        EntropySourceRegistry._entry_points_loaded = self._saved_loaded

    def test_builtins_registered(self) -> None:
        assert EntropySourceRegistry.get("system") is SystemEntropySource
        assert EntropySourceRegistry.get("mock_uniform") is MockUniformSource

    def test_register_and_get(self) -> None:
        @EntropySourceRegistry.register("test_source")
        class TestSource(_DummySource):
            pass

        assert EntropySourceRegistry.get("test_source") is TestSource

    def test_get_unknown_raises_key_error(self) -> None:
        EntropySourceRegistry._entry_points_loaded = True
        with pytest.raises(KeyError, match="no_such_source"):
            EntropySourceRegistry.get("no_such_source")

    def test_list_available_is_sorted(self) -> None:
        EntropySourceRegistry.register("zzz_source")(_DummySource)
        EntropySourceRegistry.register("aaa_source")(_DummySource)
        available = EntropySourceRegistry.list_available()
        assert available == sorted(available)

    def test_entry_point_discovery(self) -> None:
        """Entry points should be loaded lazily on first get()."""
        EntropySourceRegistry._entry_points_loaded = False
        EntropySourceRegistry._registry.pop("ep_source", None)

        mock_ep = MagicMock()
        mock_ep.name = "ep_source"
        mock_ep.value = "some.module:SomeClass"
        mock_ep.load.return_value = _DummySource

        with patch("importlib.metadata.entry_points", return_value=[mock_ep]):
            cls = EntropySourceRegistry.get("ep_source")

        assert cls is _DummySource
        mock_ep.load.assert_called_once()

    def test_builtin_takes_precedence_over_entry_point(self) -> None:
        """A decorator registration is not overridden by an entry point."""
        EntropySourceRegistry._entry_points_loaded = False
        mock_ep = MagicMock()
        mock_ep.name = "system"
        mock_ep.value = "other.module:OtherClass"

        with patch("importlib.metadata.entry_points", return_value=[mock_ep]):
            EntropySourceRegistry.list_available()

        assert EntropySourceRegistry.get("system") is SystemEntropySource
        mock_ep.load.assert_not_called()

    def test_broken_entry_point_does_not_crash(self) -> None:
        """A broken entry point should be logged and skipped."""
        EntropySourceRegistry._entry_points_loaded = False
        mock_ep = MagicMock()
        mock_ep.name = "broken_source"
        mock_ep.value = "broken.module:BrokenClass"
        mock_ep.load.side_effect = ImportError("module not found")

        with patch("importlib.metadata.entry_points", return_value=[mock_ep]):
            available = EntropySourceRegistry.list_available()

        assert "broken_source" not in available
