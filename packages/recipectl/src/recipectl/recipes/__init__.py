"""Language recipes expressed as build graph targets."""
from __future__ import annotations

from pathlib import Path

from ..configs.loader import RecipeConfig
from ..core.errors import ConfigError
from .base import Recipe
from .go import GoRecipe
from .php import PhpRecipe

RECIPES: dict[str, type[Recipe]] = {"go": GoRecipe, "php": PhpRecipe}


def load_recipe(config: RecipeConfig, project_root: Path, **options: object) -> Recipe:
    recipe_cls = RECIPES.get(config.recipe)
    if recipe_cls is None:
        raise ConfigError(f"unsupported recipe: {config.recipe}")
    return recipe_cls(config, project_root, **options)  # type: ignore[arg-type]


__all__ = ["GoRecipe", "PhpRecipe", "RECIPES", "Recipe", "load_recipe"]
