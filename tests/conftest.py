from __future__ import annotations

from collections.abc import Callable, Generator, Sequence

import numpy as np
from PIL import Image
import pytest

from linespace.config import get_settings
from linespace.utils.log_utils import logger


_ENV_KEYS = ("LINESPACE_CONFIG", "LINESPACE_LOG_LEVEL", "LINESPACE_LOG_FILE")

PageFactory = Callable[..., Image.Image]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep LINESPACE_* variables from leaking between tests."""
    for key in _ENV_KEYS:
        # setenv first so the variable is removed again at teardown even when
        # a test loads it from a .env file.
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    get_settings(reload=True)


@pytest.fixture
def log_messages() -> Generator[list[str], None, None]:
    """Collect the text of every log record emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


def build_page(bands: Sequence[tuple[int, bool]], width: int = 100) -> Image.Image:
    """Stack white (background) and black (content) bands of the given heights."""
    rows = [
        np.full((height, width, 3), 0 if is_content else 255, dtype=np.uint8)
        for height, is_content in bands
    ]
    return Image.fromarray(np.concatenate(rows, axis=0))


@pytest.fixture
def make_page() -> PageFactory:
    return build_page
