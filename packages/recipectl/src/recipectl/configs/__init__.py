"""Project configuration loading."""
from .loader import CONFIG_KEYS, RecipeConfig, load_config, normalize_config_key, parse_assignments

__all__ = ["CONFIG_KEYS", "RecipeConfig", "load_config", "normalize_config_key", "parse_assignments"]
