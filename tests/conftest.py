import pytest

import platformdirs

from bundlefs import config
from bundlefs.constants import (
    BASE_DIR_ENV_VAR,
    LOG_DIR_ENV_VAR,
    LOG_LEVEL_ENV_VAR,
    NAME_PREFIX_ENV_VAR,
)


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point every user directory at an isolated temp layout and clear bundlefs settings.

    Sets XDG_* environment variables, patches platformdirs user_* functions to
    return the temp paths, removes BUNDLEFS_* environment overrides and drops
    any cached settings before and after the test.
    """
    base = tmp_path_factory.mktemp("bundlefs-env")
    config_dir = base / "config"
    cache_dir = base / "cache"
    log_dir = base / "log"

    for path in (config_dir, cache_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))

    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )

    for env_var in (
        BASE_DIR_ENV_VAR,
        LOG_DIR_ENV_VAR,
        LOG_LEVEL_ENV_VAR,
        NAME_PREFIX_ENV_VAR,
    ):
        monkeypatch.delenv(env_var, raising=False)

    config.reset_settings()
    yield
    config.reset_settings()


@pytest.fixture
def sample_files():
    """Source contents used by most extraction tests."""
    return {
        "root/a.txt": b"A",
        "root/sub/b.js": b"B",
        "root/sub/deeper/c.bin": bytes(range(256)),
        "other/ignored.txt": b"not under root",
    }


@pytest.fixture
def dest_dir(tmp_path):
    """Base directory for temporary destinations."""
    path = tmp_path / "dest"
    path.mkdir()
    return path
