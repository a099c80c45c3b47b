from pathlib import Path

from explain_files.utils.config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_PROMPT,
    DEFAULT_TEMPERATURE,
    Settings,
    config_path,
    load_api_key,
    reset_api_key,
    save_api_key,
)


class TestCredentialStore:
    def test_config_path_override(self, isolated_config):
        assert config_path() == isolated_config

    def test_default_location(self, monkeypatch):
        monkeypatch.delenv("EXPLAIN_CONFIG")
        assert config_path() == Path.home() / ".explain-config"

    def test_save_then_load(self, isolated_config):
        save_api_key("  sk-abc123  ")

        assert isolated_config.read_text().strip() == "OPENAI_API_KEY=sk-abc123"
        assert load_api_key() == "sk-abc123"

    def test_save_overwrites(self, isolated_config):
        save_api_key("sk-old")
        save_api_key("sk-new")
        assert load_api_key() == "sk-new"
        assert isolated_config.read_text().count("OPENAI_API_KEY") == 1

    def test_missing_file_falls_back_to_env(self, monkeypatch):
        assert load_api_key() is None
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        assert load_api_key() == "sk-env"

    def test_file_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        save_api_key("sk-file")
        assert load_api_key() == "sk-file"

    def test_reset(self, isolated_config):
        save_api_key("sk-abc")
        assert reset_api_key() is True
        assert not isolated_config.exists()

    def test_reset_missing_is_noop(self, isolated_config):
        assert reset_api_key() is False


class TestSettings:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = Settings.from_options()

        assert settings.cwd == Path.cwd()
        assert settings.model is None
        assert settings.temperature == DEFAULT_TEMPERATURE == 0.8
        assert settings.max_tokens == DEFAULT_MAX_TOKENS == 400
        assert settings.prompt == DEFAULT_PROMPT.strip()
        assert settings.extensions == ()
        assert settings.base_url == "https://api.openai.com/v1"

    def test_explicit_max_tokens_kept(self):
        assert Settings.from_options(max_tokens=1).max_tokens == 1
        assert Settings.from_options(max_tokens=0).max_tokens == 0

    def test_explicit_values(self, tmp_path):
        settings = Settings.from_options(
            cwd=str(tmp_path),
            model="gpt-4",
            temperature=0.0,
            prompt="  Summarize.\n",
            max_tokens=800,
            extensions=[".py"],
            substrings=["src"],
        )
        assert settings.cwd == tmp_path.resolve()
        assert settings.temperature == 0.0
        assert settings.prompt == "Summarize."
        assert settings.max_tokens == 800
        assert settings.extensions == (".py",)
        assert settings.substrings == ("src",)

    def test_base_url_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:8000/v1/")
        assert Settings.from_options().base_url == "http://localhost:8000/v1"

    def test_flag_beats_interactive_answer(self):
        settings = Settings(model="gpt-4").with_answers(model="gpt-3.5-turbo")
        assert settings.model == "gpt-4"

    def test_answer_fills_unset_model(self):
        original = Settings()
        merged = original.with_answers(model="gpt-3.5-turbo", prompt="  Be brief. ")
        assert merged.model == "gpt-3.5-turbo"
        assert merged.prompt == "Be brief."
        assert original.model is None

    def test_blank_prompt_answer_keeps_default(self):
        assert Settings().with_answers(prompt="   ").prompt == DEFAULT_PROMPT.strip()
