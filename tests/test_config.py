"""Tests for SummarizerConfig and environment settings."""

import pytest

from chat_summarizer import settings
from chat_summarizer.summarization import InvalidConfigError, SummarizerConfig
from chat_summarizer.summarization.config import DEFAULT_PROMPT_TEMPLATE


@pytest.fixture
def clean_env(monkeypatch):
    """Clear summarizer env vars and the prompt cache."""
    for name in (
        "SUMMARIZER_ENABLED",
        "SUMMARIZER_AUTO",
        "SUMMARIZER_INTERVAL",
        "SUMMARIZER_BATCH_SIZE",
        "SUMMARIZER_MESSAGE_LIMIT",
        "SUMMARIZER_COOLDOWN_SECONDS",
        "SUMMARIZER_API",
        "SUMMARIZER_MODEL",
        "SUMMARIZER_DB_PATH",
        "SUMMARY_PROMPT_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "_PROMPT_CACHE", None)
    monkeypatch.setattr(settings, "_PROMPT_MTIME", None)
    monkeypatch.setattr(settings, "_PROMPT_PATH", None)
    monkeypatch.setattr(settings, "_project_root", lambda: settings.Path("/nonexistent-root"))
    return monkeypatch


class TestSummarizerConfig:
    """Test defaults and validation."""

    def test_defaults(self):
        config = SummarizerConfig()

        assert config.enabled is True
        assert config.auto_summarize is False
        assert config.interval == 20
        assert config.batch_size == 50
        assert config.message_limit is None
        assert config.cooldown_seconds == 10.0
        assert "{{messages}}" in config.prompt_template

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"interval": 0},
            {"batch_size": -1},
            {"message_limit": 0},
            {"cooldown_seconds": -0.5},
            {"prompt_template": "no placeholder here"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidConfigError):
            SummarizerConfig(**kwargs)

    def test_invalid_config_is_value_error(self):
        with pytest.raises(ValueError):
            SummarizerConfig(interval=0)

    def test_dict_round_trip(self):
        config = SummarizerConfig(auto_summarize=True, interval=7, message_limit=30)

        assert SummarizerConfig.from_dict(config.to_dict()) == config

    def test_from_dict_ignores_unknown_keys_and_keeps_base(self):
        base = SummarizerConfig(batch_size=10)

        config = SummarizerConfig.from_dict({"interval": 5, "legacy_key": 1}, base=base)

        assert config.interval == 5
        assert config.batch_size == 10


class TestWithValue:
    """Test parsing settings from strings."""

    def test_bool(self):
        config = SummarizerConfig()

        assert config.with_value("auto_summarize", "yes").auto_summarize is True
        assert config.with_value("enabled", "off").enabled is False

    def test_int(self):
        assert SummarizerConfig().with_value("interval", "35").interval == 35

    def test_float(self):
        assert SummarizerConfig().with_value("cooldown_seconds", "2.5").cooldown_seconds == 2.5

    @pytest.mark.parametrize("raw", ["", "none", "0"])
    def test_message_limit_cleared(self, raw):
        config = SummarizerConfig(message_limit=10)

        assert config.with_value("message_limit", raw).message_limit is None

    def test_message_limit_set(self):
        assert SummarizerConfig().with_value("message_limit", "100").message_limit == 100

    def test_template(self):
        config = SummarizerConfig().with_value("prompt_template", "Short: {{messages}}")

        assert config.prompt_template == "Short: {{messages}}"

    def test_unknown_key(self):
        with pytest.raises(InvalidConfigError, match="Unknown config key"):
            SummarizerConfig().with_value("colour", "blue")

    def test_unparseable(self):
        with pytest.raises(InvalidConfigError):
            SummarizerConfig().with_value("interval", "lots")

    def test_parsed_but_invalid(self):
        with pytest.raises(InvalidConfigError):
            SummarizerConfig().with_value("batch_size", "0")


class TestSettings:
    """Test environment-driven defaults."""

    def test_env_defaults(self, clean_env):
        config = settings.load_config_from_env()

        assert config == SummarizerConfig()

    def test_env_overrides(self, clean_env):
        clean_env.setenv("SUMMARIZER_AUTO", "true")
        clean_env.setenv("SUMMARIZER_INTERVAL", "5")
        clean_env.setenv("SUMMARIZER_BATCH_SIZE", "25")
        clean_env.setenv("SUMMARIZER_MESSAGE_LIMIT", "200")
        clean_env.setenv("SUMMARIZER_COOLDOWN_SECONDS", "1.5")

        config = settings.load_config_from_env()

        assert config.auto_summarize is True
        assert config.interval == 5
        assert config.batch_size == 25
        assert config.message_limit == 200
        assert config.cooldown_seconds == 1.5

    def test_bad_number_falls_back(self, clean_env):
        clean_env.setenv("SUMMARIZER_INTERVAL", "often")

        assert settings.load_config_from_env().interval == 20

    def test_prompt_file(self, clean_env, tmp_path):
        prompt = tmp_path / "prompt.txt"
        prompt.write_text("Custom prompt:\n{{messages}}", encoding="utf-8")
        clean_env.setenv("SUMMARY_PROMPT_FILE", str(prompt))

        assert settings.get_default_summary_prompt() == "Custom prompt:\n{{messages}}"
        assert settings.load_config_from_env().prompt_template.startswith("Custom prompt:")

    def test_prompt_file_without_placeholder_ignored(self, clean_env, tmp_path):
        prompt = tmp_path / "prompt.txt"
        prompt.write_text("Forgot the transcript", encoding="utf-8")
        clean_env.setenv("SUMMARY_PROMPT_FILE", str(prompt))

        assert settings.get_default_summary_prompt() == DEFAULT_PROMPT_TEMPLATE

    def test_missing_prompt_file(self, clean_env, tmp_path):
        clean_env.setenv("SUMMARY_PROMPT_FILE", str(tmp_path / "missing.txt"))

        assert settings.get_default_summary_prompt() == DEFAULT_PROMPT_TEMPLATE

    def test_default_db_path_is_outside_the_package(self, clean_env):
        path = settings.get_db_path()

        assert path == settings.Path("data") / "summaries.db"
        assert not path.is_absolute()

    def test_generator_settings(self, clean_env, tmp_path):
        assert settings.get_generator_api() == "anthropic"
        assert settings.get_generator_model() == "claude-haiku-4-5"

        clean_env.setenv("SUMMARIZER_API", " OpenRouter ")
        clean_env.setenv("SUMMARIZER_DB_PATH", str(tmp_path / "x.db"))

        assert settings.get_generator_api() == "openrouter"
        assert settings.get_db_path() == tmp_path / "x.db"
