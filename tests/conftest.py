import pytest

from qrdelta import config


@pytest.fixture(autouse=True)
def logs_in_tmp(tmp_path, monkeypatch):
    """Keep app.log out of the working tree."""
    monkeypatch.setattr(config, "LOGS_DIR", tmp_path / "logs")
    return tmp_path / "logs"
