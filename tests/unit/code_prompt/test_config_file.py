from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from code_prompt.config import RenderOptions
from code_prompt.exceptions import ConfigFileError
from code_prompt.settings import Settings, load_config_file


@pytest.mark.unit
def test_settings_are_immutable() -> None:
    settings = Settings()

    with pytest.raises(ValidationError):
        settings.line_number = True  # type: ignore[misc]


@pytest.mark.unit
def test_settings_reject_unknown_keys_and_bad_jobs() -> None:
    with pytest.raises(ValidationError):
        Settings(line_numbers=True)  # type: ignore[call-arg]
    with pytest.raises(ValidationError):
        Settings(jobs=0)


@pytest.mark.unit
def test_render_options_follow_settings() -> None:
    settings = Settings(line_number=True, ignore_comments=True)

    assert settings.render_options() == RenderOptions(line_number=True, ignore_comments=True)


@pytest.mark.unit
def test_load_config_file_reads_mapping(tmp_path: Path) -> None:
    config = tmp_path / "code_prompt.yaml"
    config.write_text("exclude: '*.png,*.ico'\nline_number: true\njobs: 4\n", encoding="utf-8")

    values = load_config_file(config)

    assert values == {"exclude": "*.png,*.ico", "line_number": True, "jobs": 4}
    assert Settings(**values).jobs == 4


@pytest.mark.unit
def test_load_config_file_empty_is_no_values(tmp_path: Path) -> None:
    config = tmp_path / "empty.yaml"
    config.write_text("", encoding="utf-8")

    assert load_config_file(config) == {}


@pytest.mark.unit
def test_load_config_file_rejects_non_mapping(tmp_path: Path) -> None:
    config = tmp_path / "list.yaml"
    config.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigFileError):
        load_config_file(config)


@pytest.mark.unit
def test_load_config_file_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileError) as exc_info:
        load_config_file(tmp_path / "missing.yaml")

    assert exc_info.value.path == tmp_path / "missing.yaml"
