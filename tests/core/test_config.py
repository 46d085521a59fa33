from __future__ import annotations

import pytest

from precision_quiz.core import config as core_config


def test_load_toml_reads_tables(tmp_path):
    path = tmp_path / "conf.toml"
    path.write_text('[generation]\ncount = 7\n', encoding="utf-8")

    assert core_config.load_toml(path) == {"generation": {"count": 7}}


def test_load_toml_missing_and_invalid(tmp_path):
    with pytest.raises(core_config.TomlConfigError, match="not found"):
        core_config.load_toml(tmp_path / "missing.toml")

    broken = tmp_path / "broken.toml"
    broken.write_text("[generation\n", encoding="utf-8")
    with pytest.raises(core_config.TomlConfigError, match="parse"):
        core_config.load_toml(broken)


def test_merge_defaults_overrides_nested_values():
    base = {"generation": {"count": 5, "model": "m"}, "logging": {"level": "INFO"}}

    core_config.merge_defaults(base, {"generation": {"count": 9}})

    assert base == {
        "generation": {"count": 9, "model": "m"},
        "logging": {"level": "INFO"},
    }


def test_merge_defaults_rejects_unknown_keys_with_dotted_name():
    base = {"generation": {"count": 5}}

    with pytest.raises(core_config.TomlConfigError, match="generation.cuont"):
        core_config.merge_defaults(base, {"generation": {"cuont": 1}})


def test_merge_defaults_requires_tables_for_tables():
    with pytest.raises(core_config.TomlConfigError, match="Expected table"):
        core_config.merge_defaults({"generation": {"count": 5}}, {"generation": 3})


def test_write_toml_template_refuses_to_clobber(tmp_path):
    target = tmp_path / "nested" / "conf.toml"

    written = core_config.write_toml_template(target, template="a = 1\n")
    assert written.read_text(encoding="utf-8") == "a = 1\n"
    assert (written.stat().st_mode & 0o777) == 0o600

    with pytest.raises(core_config.TomlConfigError, match="already exists"):
        core_config.write_toml_template(target, template="a = 2\n")

    core_config.write_toml_template(target, template="a = 2\n", overwrite=True)
    assert target.read_text(encoding="utf-8") == "a = 2\n"


def test_layered_table_copies_defaults(tmp_path):
    defaults = {"generation": {"count": 5}, "logging": {"level": "INFO"}}
    path = tmp_path / "conf.toml"
    path.write_text('[logging]\nlevel = "DEBUG"\n', encoding="utf-8")

    layered = core_config.layered_table(defaults, path)

    assert layered["logging"]["level"] == "DEBUG"
    assert defaults["logging"]["level"] == "INFO"
    assert core_config.layered_table(defaults, None) == defaults


def test_merge_defaults_reports_all_unknown_keys():
    with pytest.raises(core_config.TomlConfigError, match="alpha, beta"):
        core_config.merge_defaults({"known": 1}, {"beta": 1, "alpha": 2})
