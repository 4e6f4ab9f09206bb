"""Tests for core/config.py."""

import sys

import pytest

from core.config import AppSettings, get_default_state_file, write_user_env_vars
from core.polling import PollingPolicy


@pytest.mark.skipif(sys.platform in ("win32", "darwin"), reason="XDG layout only")
def test_write_user_env_vars_merges_and_skips_blank(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    write_user_env_vars({"BASTION_SESSION_BASTION_ID": "b1", "BASTION_SESSION_OCI_PROFILE": "CI"})
    path = write_user_env_vars({"BASTION_SESSION_BASTION_ID": "b2", "BASTION_SESSION_OCI_CONFIG_FILE": ""})

    assert path == tmp_path / "bastion-session" / ".env"
    assert path.read_text(encoding="utf-8").splitlines() == [
        "# bastion-session user config (.env)",
        "BASTION_SESSION_BASTION_ID=b2",
        "BASTION_SESSION_OCI_PROFILE=CI",
    ]
    assert get_default_state_file() == tmp_path / "bastion-session" / "state.json"


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("BASTION_SESSION_BASTION_ID", "ocid1.bastion.oc1..x")
    monkeypatch.setenv("BASTION_SESSION_SESSION_POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("BASTION_SESSION_SESSION_POLL_MAX_ATTEMPTS", "4")

    settings = AppSettings(_env_file=None)

    assert settings.bastion_id == "ocid1.bastion.oc1..x"
    assert settings.session_polling == PollingPolicy(interval_seconds=0.5, max_attempts=4)
    assert settings.plugin_polling == PollingPolicy(interval_seconds=5.0, max_attempts=120)
    assert settings.session_ttl_seconds == 10_800


def test_output_file_defaults_to_github_output(monkeypatch, tmp_path):
    monkeypatch.setenv("GITHUB_OUTPUT", str(tmp_path / "out"))

    assert AppSettings(_env_file=None).output_file == tmp_path / "out"
