"""Tests for command line handling."""
from unittest.mock import AsyncMock, patch

import pytest

import main
from weather_provider import InvalidCredentials, NotFound, UpstreamError


def test_parse_args_defaults():
    args = main.parse_args([])
    assert args.city is None
    assert args.units is None
    assert args.cache_ttl == 3600
    assert args.location_timeout == 10.0


def test_parse_args_city():
    args = main.parse_args(["--city", "Huế", "--country", "VN", "--units", "imperial", "--recent"])
    assert args.city == "Huế"
    assert args.country == "VN"
    assert args.units == "imperial"
    assert args.recent is True


def test_load_config_requires_api_key(monkeypatch):
    monkeypatch.delenv("WEATHER_API_KEY", raising=False)
    with patch("main.load_dotenv"):
        with pytest.raises(SystemExit):
            main.load_config()


def test_load_config(monkeypatch):
    monkeypatch.setenv("WEATHER_API_KEY", "secret")
    monkeypatch.setenv("WEATHER_LANG", "en")
    monkeypatch.setenv("WEATHER_CACHE_FILE", "/tmp/weather.json")
    with patch("main.load_dotenv"):
        assert main.load_config() == ("secret", "en", "/tmp/weather.json")


@pytest.mark.parametrize("error", [NotFound("Atlantis"), InvalidCredentials("401"), UpstreamError("503")])
def test_main_exits_on_provider_error(monkeypatch, tmp_path, error):
    monkeypatch.setenv("WEATHER_API_KEY", "secret")
    with patch("main.load_dotenv"), patch("main.run_dashboard", new=AsyncMock(side_effect=error)):
        with pytest.raises(SystemExit) as exc_info:
            main.main(["--city", "Atlantis", "--cache-file", str(tmp_path / "cache.json")])
    assert exc_info.value.code == 1


def test_main_toggles_units(monkeypatch, tmp_path):
    monkeypatch.setenv("WEATHER_API_KEY", "secret")
    run = AsyncMock()
    with patch("main.load_dotenv"), patch("main.run_dashboard", new=run):
        main.main(["--toggle-units", "--cache-file", str(tmp_path / "cache.json")])
    # run_dashboard(service, args, unit, lang)
    assert run.call_args[0][2] == "imperial"
