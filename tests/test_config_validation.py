from pathlib import Path

import pytest
from pydantic import ValidationError

from quillcheck.config import load_config
from quillcheck.utils.errors import ConfigError


def test_user_yaml_is_merged(tmp_path: Path) -> None:
    cfg_file = tmp_path / "cfg.yml"
    cfg_file.write_text(
        "locale: de-DE\nproviders:\n  rules:\n    long_sentence_words: 20\n", encoding="utf-8"
    )
    cfg = load_config(cfg_file, env={})
    assert cfg.locale == "de-DE"
    assert cfg.providers.rules.long_sentence_words == 20
    assert cfg.providers.rules.passive_voice is True


def test_invalid_debounce(tmp_path: Path) -> None:
    cfg_file = tmp_path / "bad.yml"
    cfg_file.write_text("scheduler:\n  debounce_ms: 0\n")
    with pytest.raises(ValidationError):
        load_config(cfg_file)


def test_unknown_key(tmp_path: Path) -> None:
    cfg_file = tmp_path / "bad.yml"
    cfg_file.write_text("unknown:\n  foo: 1\n")
    with pytest.raises(ValidationError):
        load_config(cfg_file)


def test_unknown_provider_and_duplicates(tmp_path: Path) -> None:
    cfg_file = tmp_path / "bad.yml"
    cfg_file.write_text("providers:\n  order: [typos, spellcheck]\n")
    with pytest.raises(ValidationError):
        load_config(cfg_file)
    cfg_file.write_text("providers:\n  order: [typos, typos]\n")
    with pytest.raises(ValidationError):
        load_config(cfg_file)


def test_invalid_log_level(tmp_path: Path) -> None:
    cfg_file = tmp_path / "bad.yml"
    cfg_file.write_text("logging:\n  level: chatty\n")
    with pytest.raises(ValidationError):
        load_config(cfg_file)


def test_unreadable_and_non_mapping_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yml")
    cfg_file = tmp_path / "list.yml"
    cfg_file.write_text("- a\n- b\n")
    with pytest.raises(ConfigError):
        load_config(cfg_file)
