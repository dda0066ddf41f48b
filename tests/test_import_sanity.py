"""Import sanity tests.

These lightweight tests verify that the CLI entrypoint and core modules
can be imported without errors and without credentials.
"""

import pytest


def test_cli_module_imports():
    """The CLI module must import without errors."""
    import location_analyzer  # noqa: F401


def test_console_script_entrypoint():
    """pyproject's 'location_analyzer:main' entrypoint must be callable."""
    from location_analyzer import main
    assert callable(main)


def test_engine_imports():
    """Core symbols used by location_analyzer.py must be importable."""
    from analysis_engine import compute_analysis, result_from_state, run_engine
    assert compute_analysis is not None
    assert run_engine is not None
    assert result_from_state is not None


def test_scoring_model_loads():
    """Weight validation runs at import; a bad table would crash here."""
    from scoring_config import SCORING_MODEL, get_scoring_model
    assert get_scoring_model() is SCORING_MODEL


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
