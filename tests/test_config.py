import pytest

from text_refinery.config.load_config import (
    DEFAULT_MAX_TOKENS,
    MAX_STAGES,
    build_config,
    load_config,
)
from text_refinery.errors import ConfigError


def stage(**kw):
    return {"name": "S", "prompt": "Fix it.", **kw}


def test_bundled_default():
    config = load_config()
    assert [s.name for s in config.stages] == ["Copyedit", "Consistency pass"]
    assert config.chunk_size == 3500
    assert config.overlap_chars == 250
    assert config.split_method == "heading"
    assert config.memory_mode == "persistent-local"
    assert config.memory_key == "default-book"


def test_overrides_win_and_none_is_ignored():
    config = load_config(chunk_size=1200, overlap_chars=None, memory_mode="transient")
    assert config.chunk_size == 1200
    assert config.overlap_chars == 250
    assert config.memory_mode == "transient"


def test_yaml_file_with_camel_case_keys(tmp_path):
    path = tmp_path / "pipeline.yml"
    path.write_text(
        "chunkSize: 2000\n"
        "overlap: 100\n"
        "splitMethod: smart\n"
        "memoryMode: transient\n"
        "stages:\n"
        "  stageValues:\n"
        "    - name: Tighten\n"
        "      promptTemplate: Tighten the prose.\n"
        "      modelOverride: claude-3-5-haiku-latest\n"
        "      maxTokens: 1500\n",
        encoding="utf-8",
    )
    config = load_config(str(path))
    assert config.chunk_size == 2000
    assert config.overlap_chars == 100
    assert config.split_method == "smart"
    (only,) = config.stages
    assert only.prompt_template == "Tighten the prose."
    assert only.model_override == "claude-3-5-haiku-latest"
    assert only.max_tokens == 1500


def test_stage_defaults():
    config = build_config({"default_temperature": 0.3, "stages": [{}]})
    (s,) = config.stages
    assert s.name == "Stage"
    assert s.enabled is True
    assert s.prompt_template == ""
    assert s.model_override == ""
    assert s.temperature == 0.3
    assert s.max_tokens == DEFAULT_MAX_TOKENS
    assert s.output_format == "text"


def test_disabled_stage_is_kept():
    config = build_config({"stages": [stage(enabled=False), stage()]})
    assert [s.enabled for s in config.stages] == [False, True]


@pytest.mark.parametrize("raw", [
    {"stages": []},
    {"stages": [stage()] * (MAX_STAGES + 1)},
    {"stages": [stage()], "chunk_size": 500, "overlap_chars": 500},
    {"stages": [stage()], "chunk_size": 0},
    {"stages": [stage()], "split_method": "words"},
    {"stages": [stage()], "memory_mode": "cloud"},
    {"stages": [stage()], "memory_mode": "persistent-remote"},
    {"stages": [stage()], "max_concurrent": 0},
    {"stages": [stage()], "colour": "blue"},
    {"stages": [stage(colour="blue")]},
    {"stages": [stage(format="xml")]},
    {"stages": [stage()], "chunk_size": "big"},
])
def test_invalid_configs(raw):
    with pytest.raises(ConfigError):
        build_config(raw)


def test_max_stages_allowed():
    assert len(build_config({"stages": [stage()] * MAX_STAGES}).stages) == MAX_STAGES


def test_remote_memory_with_credentials():
    config = build_config({
        "stages": [stage()],
        "memoryMode": "persistent-remote",
        "googleCredentials": "/tmp/creds.json",
    })
    assert config.google_credentials == "/tmp/creds.json"
    assert config.google_folder_id is None


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        build_config({"stages": []})


def test_string_flags_are_parsed(tmp_path):
    path = tmp_path / "pipeline.yml"
    path.write_text(
        "stages:\n"
        "  - name: Off\n"
        "    enabled: 'false'\n"
        "    saveOutput: 'false'\n"
        "  - name: On\n"
        "    enabled: 'true'\n"
        "    saveOutput: 'yes'\n",
        encoding="utf-8",
    )
    off, on = load_config(str(path)).stages
    assert (off.enabled, off.save_output) == (False, False)
    assert (on.enabled, on.save_output) == (True, True)
