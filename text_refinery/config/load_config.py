from __future__ import annotations
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional
import yaml

from text_refinery.errors import ConfigError
from text_refinery.refinery.chunker import SPLIT_METHODS, SplitMethod

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default_pipeline.yml"

MemoryMode = Literal["transient", "persistent-local", "persistent-remote"]
MEMORY_MODES = ("transient", "persistent-local", "persistent-remote")
OUTPUT_FORMATS = ("txt", "json")
STAGE_OUTPUT_FORMATS = ("text", "json")
MAX_STAGES = 10

DEFAULT_MAX_TOKENS = 800

# camelCase keys accepted in YAML files, mapped to field names
_CONFIG_ALIASES = {
    "inputField": "input_field",
    "defaultModel": "default_model",
    "defaultTemperature": "default_temperature",
    "chunkSize": "chunk_size",
    "overlap": "overlap_chars",
    "overlapChars": "overlap_chars",
    "splitMethod": "split_method",
    "memoryMode": "memory_mode",
    "memoryKey": "memory_key",
    "outputFormat": "output_format",
    "memoryDir": "memory_dir",
    "googleCredentials": "google_credentials",
    "googleFolderId": "google_folder_id",
    "maxConcurrent": "max_concurrent",
    "previewChars": "preview_chars",
}

_STAGE_ALIASES = {
    "prompt": "prompt_template",
    "promptTemplate": "prompt_template",
    "model": "model_override",
    "modelOverride": "model_override",
    "maxTokens": "max_tokens",
    "format": "output_format",
    "outputFormat": "output_format",
    "saveOutput": "save_output",
}


@dataclass(frozen=True)
class StageConfig:
    name: str = "Stage"
    enabled: bool = True
    prompt_template: str = ""
    model_override: str = ""
    temperature: float = 0.05
    max_tokens: int = DEFAULT_MAX_TOKENS
    output_format: str = "text"
    condition: str = ""       # reserved; never evaluated
    save_output: bool = False


@dataclass(frozen=True)
class RefineryConfig:
    """Validated pipeline configuration, built once before a run."""
    stages: List[StageConfig]
    input_field: str = "text"
    default_model: str = "claude-sonnet-4-20250514"
    default_temperature: float = 0.05
    chunk_size: int = 3500
    overlap_chars: int = 250
    split_method: SplitMethod = "heading"
    memory_mode: MemoryMode = "persistent-local"
    memory_key: str = "default-book"
    verbose: bool = False
    output_format: str = "txt"

    # Memory backends
    memory_dir: str = ".text_refinery_memory"
    google_credentials: Optional[str] = None
    google_folder_id: Optional[str] = None

    # Batch processing
    max_concurrent: int = 1
    preview_chars: int = 2000


def _normalize_keys(raw: Dict[str, Any], aliases: Dict[str, str]) -> Dict[str, Any]:
    return {aliases.get(k, k): v for k, v in raw.items()}


def _coerce(name: str, value: Any, kind: type) -> Any:
    try:
        if kind is bool and isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be {kind.__name__}, got {value!r}")


def load_stage(raw: Dict[str, Any], default_temperature: float) -> StageConfig:
    """Build a StageConfig from a raw mapping, filling the original defaults."""
    if not isinstance(raw, dict):
        raise ConfigError(f"Stage entries must be mappings, got {type(raw).__name__}")
    r = _normalize_keys(raw, _STAGE_ALIASES)
    unknown = set(r) - {f.name for f in fields(StageConfig)}
    if unknown:
        raise ConfigError(f"Unknown stage keys: {', '.join(sorted(unknown))}")

    temperature = r.get("temperature")
    max_tokens = r.get("max_tokens")
    enabled = r.get("enabled")
    save_output = r.get("save_output")
    stage = StageConfig(
        name=str(r.get("name") or "Stage"),
        enabled=True if enabled is None else _coerce("enabled", enabled, bool),
        prompt_template=str(r.get("prompt_template") or ""),
        model_override=str(r.get("model_override") or ""),
        temperature=default_temperature if temperature is None else _coerce("temperature", temperature, float),
        max_tokens=DEFAULT_MAX_TOKENS if not max_tokens else _coerce("max_tokens", max_tokens, int),
        output_format=str(r.get("output_format") or "text"),
        condition=str(r.get("condition") or ""),
        save_output=False if save_output is None else _coerce("save_output", save_output, bool),
    )
    if stage.output_format not in STAGE_OUTPUT_FORMATS:
        raise ConfigError(f"Stage '{stage.name}': unknown output format {stage.output_format!r}")
    if stage.max_tokens <= 0:
        raise ConfigError(f"Stage '{stage.name}': max_tokens must be positive")
    return stage


def validate_config(config: RefineryConfig) -> RefineryConfig:
    if not 1 <= len(config.stages) <= MAX_STAGES:
        raise ConfigError(f"Expected 1-{MAX_STAGES} stages, got {len(config.stages)}")
    if config.chunk_size <= 0:
        raise ConfigError(f"chunk_size must be positive, got {config.chunk_size}")
    if not 0 <= config.overlap_chars < config.chunk_size:
        raise ConfigError(
            f"overlap_chars must be in [0, chunk_size), got {config.overlap_chars} "
            f"with chunk_size {config.chunk_size}"
        )
    if config.split_method not in SPLIT_METHODS:
        raise ConfigError(f"Unknown split method: {config.split_method}")
    if config.memory_mode not in MEMORY_MODES:
        raise ConfigError(f"Unknown memory mode: {config.memory_mode}")
    if config.output_format not in OUTPUT_FORMATS:
        raise ConfigError(f"Unknown output format: {config.output_format}")
    # Stored range is 0-2; ClaudeClient clamps anything above 1.0
    if not 0 <= config.default_temperature <= 2:
        raise ConfigError(f"default_temperature must be in [0, 2], got {config.default_temperature}")
    if not config.memory_key:
        raise ConfigError("memory_key must not be empty")
    if not config.input_field:
        raise ConfigError("input_field must not be empty")
    if config.memory_mode == "persistent-remote" and not config.google_credentials:
        raise ConfigError("memory_mode persistent-remote requires google_credentials")
    if config.max_concurrent < 1:
        raise ConfigError(f"max_concurrent must be at least 1, got {config.max_concurrent}")
    return config


def build_config(raw: Dict[str, Any], **overrides: Any) -> RefineryConfig:
    """
    Build and validate a RefineryConfig from a raw mapping.

    Keyword overrides (None values ignored) take precedence over `raw`.
    """
    data = _normalize_keys(raw or {}, _CONFIG_ALIASES)
    data.update({k: v for k, v in overrides.items() if v is not None})

    unknown = set(data) - {f.name for f in fields(RefineryConfig)}
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    scalars: Dict[str, Any] = {}
    if "default_temperature" in data:
        scalars["default_temperature"] = _coerce("default_temperature", data["default_temperature"], float)
    for name in ("chunk_size", "overlap_chars", "max_concurrent", "preview_chars"):
        if name in data:
            scalars[name] = _coerce(name, data[name], int)
    if "verbose" in data:
        scalars["verbose"] = _coerce("verbose", data["verbose"], bool)
    for name in ("input_field", "default_model", "split_method", "memory_mode",
                 "memory_key", "output_format", "memory_dir"):
        if name in data:
            scalars[name] = str(data[name])
    for name in ("google_credentials", "google_folder_id"):
        if data.get(name):
            scalars[name] = str(data[name])

    default_temperature = scalars.get("default_temperature", RefineryConfig.default_temperature)
    raw_stages = data.get("stages") or []
    if isinstance(raw_stages, dict):
        # Nested {"stageValues": [...]} form
        raw_stages = raw_stages.get("stageValues") or []
    stages = [s if isinstance(s, StageConfig) else load_stage(s, default_temperature) for s in raw_stages]

    return validate_config(RefineryConfig(stages=stages, **scalars))


def load_config_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def load_config(path: Optional[str] = None, **overrides: Any) -> RefineryConfig:
    """Load a pipeline config from YAML (bundled default when path is None)."""
    return build_config(load_config_file(path or str(DEFAULT_CONFIG_PATH)), **overrides)
