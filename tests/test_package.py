"""Tests for prowl package exports and metadata."""

import prowl


class TestPackageMetadata:
    """Package-level exports and metadata."""

    def test_version_string(self) -> None:
        assert isinstance(prowl.__version__, str)
        assert "0.1.0" in prowl.__version__

    def test_free_threading_declaration(self) -> None:
        assert prowl._Py_mod_gil == 0

    def test_all_exports_resolvable(self) -> None:
        for name in prowl.__all__:
            getattr(prowl, name)

    def test_lazy_exports_are_the_real_objects(self) -> None:
        from prowl.middleware import LiveReload

        assert prowl.LiveReload is LiveReload

    def test_invalid_attribute_raises(self) -> None:
        import pytest

        with pytest.raises(AttributeError, match="no attribute"):
            prowl.nonexistent_thing  # type: ignore[attr-defined]  # noqa: B018
