from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from entity_stats.effects import factory
from entity_stats.effects.base import Effect


@dataclass(frozen=True, slots=True)
class EffectRecipe:
    """Named recipe for building a factory effect.

    ``builder`` is called as ``builder(effect_id, name, **params)`` where the
    params are ``default_params`` overlaid with the caller's overrides.
    """

    slug: str
    display_name: str
    builder: Callable[..., Effect]
    description: str = ""
    default_params: Mapping[str, object] = field(default_factory=dict)

    def build(self, effect_id: str, name: str | None = None, **overrides: Any) -> Effect:
        params: dict[str, Any] = dict(self.default_params)
        params.update(overrides)
        return self.builder(effect_id, name or self.display_name, **params)


class EffectRegistry:
    """In-memory collection of effect recipes."""

    def __init__(self) -> None:
        self._recipes: dict[str, EffectRecipe] = {}

    def register(self, recipe: EffectRecipe) -> None:
        if recipe.slug in self._recipes:
            raise ValueError(f"Effect recipe '{recipe.slug}' already registered")
        self._recipes[recipe.slug] = recipe

    def get(self, slug: str) -> EffectRecipe:
        try:
            return self._recipes[slug]
        except KeyError as exc:
            raise KeyError(f"Effect recipe '{slug}' is not registered") from exc

    def has(self, slug: str) -> bool:
        return slug in self._recipes

    def all(self) -> Iterable[EffectRecipe]:
        return tuple(self._recipes.values())


default_effect_registry = EffectRegistry()


def register_recipe(recipe: EffectRecipe) -> None:
    default_effect_registry.register(recipe)


def ensure_default_recipes_registered() -> None:
    """Register the standard factory recipes if they are not already present."""

    def _register(recipe: EffectRecipe) -> None:
        if default_effect_registry.has(recipe.slug):
            return
        register_recipe(recipe)

    _register(
        EffectRecipe(
            slug="additive",
            display_name="Additive Modifier",
            description="Adds a flat amount to one stat.",
            builder=factory.create_additive_effect,
            default_params={"stat_type": "", "value": 0.0, "stackable": True, "priority": 0},
        )
    )
    _register(
        EffectRecipe(
            slug="multiplicative",
            display_name="Multiplier",
            description="Scales one stat by a factor.",
            builder=factory.create_multiplicative_effect,
            default_params={"stat_type": "", "factor": 1.0, "stackable": True, "priority": 0},
        )
    )
    _register(
        EffectRecipe(
            slug="percentage",
            display_name="Percentage Modifier",
            description="Adds a fraction of the current value to one stat.",
            builder=factory.create_percentage_effect,
            default_params={"stat_type": "", "percentage": 0.0, "stackable": True, "priority": 0},
        )
    )
    _register(
        EffectRecipe(
            slug="set_value",
            display_name="Set Value",
            description="Pins one stat to a fixed value.",
            builder=factory.create_set_value_effect,
            default_params={"stat_type": "", "value": 0.0, "priority": 0},
        )
    )
    _register(
        EffectRecipe(
            slug="random",
            display_name="Random Modifier",
            description="Adds a uniformly drawn amount to one stat.",
            builder=factory.create_random_effect,
            default_params={"stat_type": "", "min_value": 0.0, "max_value": 0.0, "stackable": True, "priority": 0},
        )
    )
    _register(
        EffectRecipe(
            slug="gaussian_random",
            display_name="Gaussian Modifier",
            description="Adds a normally drawn amount, clamped to a range, to one stat.",
            builder=factory.create_gaussian_random_effect,
            default_params={
                "stat_type": "",
                "min_value": 0.0,
                "max_value": 0.0,
                "mean": 0.0,
                "standard_deviation": 1.0,
                "stackable": True,
                "priority": 0,
            },
        )
    )
    _register(
        EffectRecipe(
            slug="weighted_random",
            display_name="Weighted Modifier",
            description="Adds one weighted pick per listed stat.",
            builder=factory.create_weighted_random_effect,
            default_params={"choices": (), "stackable": True, "priority": 0},
        )
    )


def build_effect(slug: str, effect_id: str, name: str | None = None, **params: Any) -> Effect:
    """Build an effect from a registered recipe, falling back to the defaults."""

    ensure_default_recipes_registered()
    return default_effect_registry.get(slug).build(effect_id, name, **params)
