"""Tests for configuration loading."""

import pytest

from prezi2pdf.config import Settings, apply_overrides, load_config
from prezi2pdf.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("PREZI2PDF_HEADLESS", "PREZI2PDF_BROWSER_PATH", "PREZI2PDF_SETTLE_SECONDS",
                 "PREZI2PDF_MAX_WAIT", "PREZI2PDF_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    def test_defaults(self):
        settings = load_config()
        assert settings.window.width == 1024
        assert settings.window.height == 768
        assert settings.window.border_y == 130
        assert settings.timing.settle_seconds == 3.0
        assert settings.timing.poll_interval_seconds == 3.0
        assert settings.timing.next_lookup_retries == 0
        assert settings.output.image_format == "png"
        assert settings.output.dpi == 300.0
        assert settings.viewer.overlay_selector == "div.viewer-common-info-overlay-center-block"

    def test_viewport_subtracts_window_chrome(self):
        assert Settings().window.viewport == {"width": 1024, "height": 638}


class TestFileAndEnv:
    def test_yaml_in_working_directory(self, tmp_path):
        (tmp_path / "prezi2pdf.yaml").write_text("window:\n  width: 1280\ntiming:\n  settle_seconds: 1.5\n")
        settings = load_config()
        assert settings.window.width == 1280
        assert settings.timing.settle_seconds == 1.5

    def test_env_beats_file(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("browser:\n  headless: true\n")
        monkeypatch.setenv("PREZI2PDF_HEADLESS", "false")
        monkeypatch.setenv("PREZI2PDF_MAX_WAIT", "30")
        settings = load_config(str(path))
        assert settings.browser.headless is False
        assert settings.timing.readiness_timeout_seconds == 30.0

    def test_missing_explicit_file(self):
        with pytest.raises(ConfigError):
            load_config("nope.yaml")

    def test_invalid_value(self, tmp_path):
        (tmp_path / "prezi2pdf.yaml").write_text("window:\n  width: -5\n")
        with pytest.raises(ConfigError):
            load_config()

    def test_malformed_yaml(self, tmp_path):
        (tmp_path / "prezi2pdf.yaml").write_text("window: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config()

    def test_bad_env_number(self, monkeypatch):
        monkeypatch.setenv("PREZI2PDF_SETTLE_SECONDS", "soon")
        with pytest.raises(ConfigError):
            load_config()


class TestApplyOverrides:
    def test_merges_into_sections(self):
        settings = apply_overrides(Settings(), {"timing": {"element_timeout_ms": 5000}, "browser": {"headless": False}})
        assert settings.timing.element_timeout_ms == 5000
        assert settings.timing.settle_seconds == 3.0
        assert settings.browser.headless is False

    def test_invalid_override(self):
        with pytest.raises(ConfigError):
            apply_overrides(Settings(), {"timing": {"element_timeout_ms": -5}})
