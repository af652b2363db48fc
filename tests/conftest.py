"""
Pytest configuration and common fixtures for BBCode renderer tests.

All fixtures follow camelCase naming convention.
"""

import logging
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def restoreLogging() -> Generator[None, None, None]:
    """
    Restore root and library logger state after each test.

    initLogging() replaces handlers and levels globally, so every test
    gets back the logging setup it started with.
    """
    rootLogger = logging.getLogger()
    handlers = rootLogger.handlers[:]
    level = rootLogger.level
    resolverLogger = logging.getLogger("lib.bbcode.resolver")
    resolverLevel = resolverLogger.level

    yield

    for handler in rootLogger.handlers[:]:
        if handler not in handlers:
            rootLogger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in rootLogger.handlers:
            rootLogger.addHandler(handler)
    rootLogger.setLevel(level)
    resolverLogger.setLevel(resolverLevel)


# ============================================================================
# Filesystem Fixtures
# ============================================================================


@pytest.fixture
def tempDir(monkeypatch) -> Generator[Path, None, None]:
    """
    Create a temporary working directory for test files.

    Yields:
        Path: Directory that is also the current working directory
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.chdir(tmpdir)
        yield Path(tmpdir)


@pytest.fixture
def sampleConfigToml() -> str:
    """
    Provide a configuration with a small tag set.

    Returns:
        str: TOML text
    """
    return """
[renderer]
strict-mode = false

[tags]
b = "<b>{content}</b>"
i = "<i>{content}</i>"
url = '<a href="{option}">{content}</a>'

[tags.hr]
body = "<hr>"
selfclosing = true

[tags.code]
body = "<pre>{content}</pre>"
nocode = true
"""


@pytest.fixture
def configFile(tempDir: Path, sampleConfigToml: str) -> Path:
    """
    Write the sample configuration to config.toml.

    Returns:
        Path: Path to the written file
    """
    configPath = tempDir / "config.toml"
    configPath.write_text(sampleConfigToml)
    return configPath
