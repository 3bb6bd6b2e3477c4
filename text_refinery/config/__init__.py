from text_refinery.config.load_config import (
    DEFAULT_CONFIG_PATH,
    RefineryConfig,
    StageConfig,
    build_config,
    load_config,
    load_stage,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "RefineryConfig",
    "StageConfig",
    "build_config",
    "load_config",
    "load_stage",
]
