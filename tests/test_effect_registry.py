import random

import pytest

from entity_stats.effects.base import EffectContext
from entity_stats.effects.factory import create_additive_effect
from entity_stats.effects.registry import (
    EffectRecipe,
    EffectRegistry,
    build_effect,
    default_effect_registry,
    ensure_default_recipes_registered,
)


def test_default_recipes_registered_once():
    ensure_default_recipes_registered()
    ensure_default_recipes_registered()

    slugs = {recipe.slug for recipe in default_effect_registry.all()}
    assert {
        "additive",
        "multiplicative",
        "percentage",
        "set_value",
        "random",
        "gaussian_random",
        "weighted_random",
    } <= slugs


def test_build_effect_merges_defaults_with_overrides():
    effect = build_effect("additive", "bless", stat_type="strength", value=3)
    stats = {"strength": 10.0}
    effect.apply(EffectContext("e1", (effect,), stats, dict(stats)), stats)

    assert effect.id == "bless"
    assert effect.name == "Additive Modifier"
    assert stats["strength"] == 13.0


def test_build_effect_accepts_explicit_name():
    effect = build_effect("set_value", "pin", "Pinned Speed", stat_type="speed", value=1)
    assert effect.name == "Pinned Speed"


def test_registry_rejects_duplicates_and_unknown_slugs():
    registry = EffectRegistry()
    recipe = EffectRecipe(slug="buff", display_name="Buff", builder=create_additive_effect)
    registry.register(recipe)

    assert registry.has("buff")
    assert registry.get("buff") is recipe
    with pytest.raises(ValueError):
        registry.register(recipe)
    with pytest.raises(KeyError):
        registry.get("missing")


def test_build_weighted_random_effect_from_recipe():
    effect = build_effect(
        "weighted_random", "loot", choices=[("gold", 5, 1), ("gems", 1, 1)], rng=random.Random(3)
    )
    stats = {"gold": 0.0, "gems": 0.0}
    effect.apply(EffectContext("e1", (effect,), stats, dict(stats)), stats)

    assert list(effect.stat_types) == ["gold", "gems"]
    assert stats == {"gold": 5.0, "gems": 1.0}
