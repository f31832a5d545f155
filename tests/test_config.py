"""Tests for loading smexplorer.toml."""

from pathlib import Path

import pytest

from smexplorer.config import CONFIG_ENV_VAR, ExplorerConfig, load_config
from smexplorer.errors import ExplorerError
from smexplorer.models import PathRule


@pytest.fixture(autouse=True)
def no_env_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestLoadConfig:
    def test_defaults_without_file(self, in_tmp_path: Path) -> None:
        config = load_config()
        assert config == ExplorerConfig()
        assert config.output_format == "html"
        assert config.log_level == "WARNING"
        assert config.replace == []

    def test_reads_working_directory_file(self, in_tmp_path: Path) -> None:
        (in_tmp_path / "smexplorer.toml").write_text('only_mapped = true\noutput_format = "json"\n', encoding="utf-8")
        config = load_config()
        assert config.only_mapped is True
        assert config.output_format == "json"

    def test_env_var_beats_working_directory(self, in_tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (in_tmp_path / "smexplorer.toml").write_text('output_format = "json"\n', encoding="utf-8")
        env_file = in_tmp_path / "env.toml"
        env_file.write_text('output_format = "tsv"\n', encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env_file))

        assert load_config().output_format == "tsv"

    def test_explicit_path_beats_env_var(self, in_tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        env_file = in_tmp_path / "env.toml"
        env_file.write_text('output_format = "tsv"\n', encoding="utf-8")
        explicit = in_tmp_path / "explicit.toml"
        explicit.write_text("no_root = true\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env_file))

        config = load_config(explicit)
        assert config.no_root is True
        assert config.output_format == "html"

    def test_replace_rules(self, in_tmp_path: Path) -> None:
        (in_tmp_path / "smexplorer.toml").write_text(
            '[[replace]]\npattern = "^webpack:///"\nreplacement = ""\n\n'
            '[[replace]]\npattern = "node_modules"\nreplacement = "deps"\nregex = false\nreplace_all = true\n',
            encoding="utf-8",
        )
        assert load_config().replace == [
            PathRule(pattern="^webpack:///", replacement=""),
            PathRule(pattern="node_modules", replacement="deps", regex=False, replace_all=True),
        ]

    def test_missing_explicit_file(self, in_tmp_path: Path) -> None:
        with pytest.raises(ExplorerError, match="config file not found"):
            load_config(in_tmp_path / "nope.toml")

    def test_invalid_toml(self, in_tmp_path: Path) -> None:
        (in_tmp_path / "smexplorer.toml").write_text("only_mapped = \n", encoding="utf-8")
        with pytest.raises(ExplorerError, match="invalid config file"):
            load_config()

    @pytest.mark.parametrize("body", ["colour = 'blue'\n", "output_format = 'xml'\n"])
    def test_invalid_values(self, in_tmp_path: Path, body: str) -> None:
        (in_tmp_path / "smexplorer.toml").write_text(body, encoding="utf-8")
        with pytest.raises(ExplorerError, match="invalid config file"):
            load_config()
