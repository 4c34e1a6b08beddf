import os, sys
import warnings
from pathlib import Path

import pytest

# Add src/ to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# Ensure required environment variables for echo_ai.config
os.environ.setdefault("DISCORD_API_TOKEN", "test-token")
os.environ.setdefault("OPENAI_API_KEY", "test-openai")
os.environ.setdefault("MSG_MODEL_ID", "model")
os.environ.setdefault("SQLITE_PATH", ":memory:")
# Point at a file that does not exist so a developer's config.toml is ignored
os.environ.setdefault("ECHO_CONFIG", str(Path(__file__).resolve().parent / "no-config.toml"))

# Silence deprecation warnings surfaced from third-party dependencies during tests
warnings.filterwarnings(
    "ignore", category=DeprecationWarning, module=r"^discord\\.player$"
)
warnings.filterwarnings("ignore", "'audioop' is deprecated", DeprecationWarning)


def pytest_configure(config):
    warnings.filterwarnings(
        "ignore", category=DeprecationWarning, module=r"^discord\\.player$"
    )
    warnings.filterwarnings("ignore", "'audioop' is deprecated", DeprecationWarning)


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
