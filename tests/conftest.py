import pytest

from server_setup.logger import setup_logging


# ========
# FIXTURES
# ========
@pytest.fixture(autouse=True)
def configure_logging():
    setup_logging()
    yield   # allow test to run


@pytest.fixture(autouse=True)
def no_operator_prompts(monkeypatch):
    """Any stray input() call fails loudly instead of hanging the test run"""
    def _no_input(prompt=""):
        raise AssertionError(f"Unexpected operator prompt: {prompt!r}")

    monkeypatch.setattr("builtins.input", _no_input)
