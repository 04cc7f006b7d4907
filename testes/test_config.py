import json

import pytest
import requests

from page_migrator.config import load_config
from page_migrator.utils import pre_flight_checks
from page_migrator.utils.errors import ConfigurationError
from page_migrator.utils.pre_flight_checks import check_configuration, run_wordpress_pre_flight_checks


def test_credentials_fall_back_to_environment(monkeypatch):
    monkeypatch.setenv("STAGING_URL", "https://staging.example.com")
    monkeypatch.setenv("STAGING_USER", "editor")
    monkeypatch.setenv("STAGING_PASS", "app-password")

    config = load_config({"wordpress": {"username": ""}})
    assert config.wordpress.base_url == "https://staging.example.com"
    assert config.wordpress.username == "editor"
    assert config.wordpress.api_root == "https://staging.example.com/wp-json/wp/v2"
    check_configuration(config)


def test_file_values_and_overrides(tmp_path, monkeypatch):
    monkeypatch.delenv("STAGING_URL", raising=False)
    path = tmp_path / "migration_config.json"
    path.write_text(
        json.dumps(
            {
                "wordpress": {"base_url": "https://s.example.com", "username": "u", "password": "p",
                              "retry": {"max_attempts": 5, "initial_delay": 0.25}},
                "test_mode": True,
                "upload_new_images": False,
            }
        ),
        encoding="utf-8",
    )
    config = load_config(config_file=str(path), test_mode=False, upload_new_images=None)
    assert config.test_mode is False
    assert config.upload_new_images is False
    assert config.clear_interlinks is True
    assert config.wordpress.retry.max_attempts == 5
    assert config.wordpress.retry.initial_delay == 0.25


def test_missing_credentials_are_fatal(monkeypatch):
    for name in ("STAGING_URL", "STAGING_USER", "STAGING_PASS"):
        monkeypatch.delenv(name, raising=False)
    config = load_config({"wordpress": {"base_url": "https://s.example.com"}})
    with pytest.raises(ConfigurationError, match="STAGING_USER, STAGING_PASS"):
        check_configuration(config)


class _StatusResponse:
    def __init__(self, status_code):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


def _site_config():
    return load_config({"wordpress": {"base_url": "https://s.example.com", "username": "u", "password": "p"}})


def test_pre_flight_checks_call_users_me(monkeypatch):
    seen = {}

    def fake_get(url, **kwargs):
        seen.update(kwargs, url=url)
        return _StatusResponse(200)

    monkeypatch.setattr(pre_flight_checks.requests, "get", fake_get)
    run_wordpress_pre_flight_checks(_site_config())
    assert seen["url"] == "https://s.example.com/wp-json/wp/v2/users/me"
    assert seen["auth"] == ("u", "p")


@pytest.mark.parametrize(
    "outcome, message",
    [
        (_StatusResponse(401), "credentials were rejected"),
        (_StatusResponse(500), "Unexpected error"),
        (requests.ConnectionError("refused"), "Network error"),
    ],
)
def test_pre_flight_checks_failures_are_configuration_errors(monkeypatch, outcome, message):
    def fake_get(url, **kwargs):
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(pre_flight_checks.requests, "get", fake_get)
    with pytest.raises(ConfigurationError, match=message):
        run_wordpress_pre_flight_checks(_site_config())


def test_load_config_leaves_caller_dict_untouched(monkeypatch):
    monkeypatch.setenv("STAGING_USER", "editor")
    raw = {"wordpress": {"base_url": "https://s.example.com"}, "test_mode": True}

    config = load_config(raw, test_mode=False)

    assert config.test_mode is False
    assert config.wordpress.username == "editor"
    assert raw == {"wordpress": {"base_url": "https://s.example.com"}, "test_mode": True}
