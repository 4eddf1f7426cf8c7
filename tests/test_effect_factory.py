import random

import pytest

from entity_stats.bounds.calculator import simple_bound_config
from entity_stats.effects.base import EffectContext
from entity_stats.effects.factory import (
    create_additive_effect,
    create_bound_based_effect,
    create_bound_conditional_effect,
    create_bound_state_effect,
    create_chance_effect,
    create_complex_effect,
    create_conditional_effect,
    create_conditional_probability_effect,
    create_gaussian_random_effect,
    create_multiplicative_effect,
    create_percentage_effect,
    create_random_effect,
    create_set_value_effect,
    create_stat_threshold_effect,
    create_weighted_random_effect,
)


def _apply(effect, stats):
    effect.apply(EffectContext("e1", (effect,), stats, dict(stats)), stats)
    return stats


def test_simple_recipes():
    assert _apply(create_additive_effect("a", "A", "x", 5), {"x": 10.0}) == {"x": 15.0}
    assert _apply(create_multiplicative_effect("m", "M", "x", 2.0), {"x": 10.0})["x"] == pytest.approx(20.0)
    assert _apply(create_set_value_effect("s", "S", "x", 50), {"x": 10.0}) == {"x": 50.0}


def test_percentage_recipe_scales_impact_by_current_value():
    # impact = 4 * 0.5 = 2, applied as current + current * impact
    assert _apply(create_percentage_effect("p", "P", "x", 0.5), {"x": 4.0})["x"] == pytest.approx(12.0)


def test_set_value_effect_is_never_stackable():
    effect = create_set_value_effect("s", "S", "x", 50)
    rule = effect.stackability_rules[0]

    assert rule.stat_type == "x"
    assert rule.stackable is False


def test_conditional_effect_reuses_wrapped_metadata():
    inner = create_additive_effect("inner", "Inner", "x", 5, stackable=False)
    wrapper = create_conditional_effect("wrap", "Wrap", lambda ctx: ctx.current_stats["x"] > 0, inner)

    assert tuple(wrapper.stat_types) == ("x",)
    assert tuple(wrapper.stackability_rules) == tuple(inner.stackability_rules)
    assert _apply(wrapper, {"x": 1.0}) == {"x": 6.0}
    assert _apply(wrapper, {"x": 0.0}) == {"x": 0.0}


def test_wrapping_multi_stat_effect_applies_it_once():
    inner = create_complex_effect(
        "both",
        "Both",
        lambda ctx, stats: stats.update(x=stats["x"] + 1, y=stats["y"] + 1),
        lambda ctx, stats: stats.update(x=stats["x"] - 1, y=stats["y"] - 1),
        stat_types=["x", "y"],
    )
    wrapper = create_conditional_effect("wrap", "Wrap", lambda ctx: True, inner)

    assert _apply(wrapper, {"x": 0.0, "y": 0.0}) == {"x": 1.0, "y": 1.0}


def test_bound_based_effect():
    effect = create_bound_based_effect(
        "rage", "Rage", "rage", simple_bound_config(0, 10), lambda ratio, result: ratio * 10
    )
    assert _apply(effect, {"rage": 4.0})["rage"] == pytest.approx(8.0)


def test_bound_conditional_effect():
    inner = create_additive_effect("def", "Defense", "defense", 10)
    effect = create_bound_conditional_effect(
        "last_stand",
        "Last Stand",
        "health",
        simple_bound_config(0, 100),
        lambda ratio, result: ratio <= 0.25,
        inner,
    )

    assert _apply(effect, {"health": 20.0, "defense": 5.0})["defense"] == 15.0
    assert _apply(effect, {"health": 60.0, "defense": 5.0})["defense"] == 5.0


def test_stat_threshold_effect():
    inner = create_additive_effect("crit", "Crit", "crit", 0.2)
    effect = create_stat_threshold_effect("focus", "Focus", "focus", ">=", 50, inner)

    assert _apply(effect, {"focus": 50.0, "crit": 0.0})["crit"] == pytest.approx(0.2)
    assert _apply(effect, {"focus": 49.0, "crit": 0.0})["crit"] == 0.0


def test_bound_state_effect_dispatches_on_state():
    effect = create_bound_state_effect(
        "stance",
        "Stance",
        "health",
        simple_bound_config(0, 100),
        {
            "Critical": create_additive_effect("desperate", "Desperate", "attack", 10),
            "High": create_additive_effect("steady", "Steady", "defense", 3),
        },
    )

    assert set(effect.stat_types) == {"attack", "defense"}
    assert _apply(effect, {"health": 10.0, "attack": 1.0, "defense": 1.0}) == {
        "health": 10.0,
        "attack": 11.0,
        "defense": 1.0,
    }
    assert _apply(effect, {"health": 80.0, "attack": 1.0, "defense": 1.0}) == {
        "health": 80.0,
        "attack": 1.0,
        "defense": 4.0,
    }
    # No mapping for "Normal" leaves stats untouched.
    assert _apply(effect, {"health": 60.0, "attack": 1.0, "defense": 1.0}) == {
        "health": 60.0,
        "attack": 1.0,
        "defense": 1.0,
    }


def test_bound_state_effect_reverse_dispatches_too():
    effect = create_bound_state_effect(
        "stance",
        "Stance",
        "health",
        simple_bound_config(0, 100),
        {"Critical": create_additive_effect("desperate", "Desperate", "attack", 10)},
    )
    stats = {"health": 10.0, "attack": 11.0}

    effect.reverse(EffectContext("e1", (effect,), stats, dict(stats)), stats)
    assert stats["attack"] == 1.0


def test_complex_effect_condition():
    effect = create_complex_effect(
        "double",
        "Double",
        lambda ctx, stats: stats.update(x=stats["x"] * 2),
        lambda ctx, stats: stats.update(x=stats["x"] / 2),
        condition_fn=lambda ctx: ctx.current_stats["x"] < 100,
        stat_types=["x"],
    )

    assert _apply(effect, {"x": 10.0}) == {"x": 20.0}
    assert _apply(effect, {"x": 200.0}) == {"x": 200.0}


def test_random_effect_uses_injected_rng():
    first = _apply(create_random_effect("r", "R", "x", 1, 5, rng=random.Random(42)), {"x": 0.0})
    second = _apply(create_random_effect("r", "R", "x", 1, 5, rng=random.Random(42)), {"x": 0.0})

    assert first == second
    assert 1 <= first["x"] <= 5


def test_chance_effect_replaces_value_when_roll_succeeds():
    always = create_chance_effect("c", "C", "x", 1.0, lambda value: value * 3, rng=random.Random(0))
    never = create_chance_effect("c", "C", "x", 0.0, lambda value: value * 3, rng=random.Random(0))

    assert _apply(always, {"x": 4.0})["x"] == pytest.approx(12.0)
    assert _apply(never, {"x": 4.0})["x"] == 4.0


def test_conditional_probability_effect():
    inner = create_additive_effect("inner", "Inner", "x", 1)

    certain = create_conditional_probability_effect("p", "P", inner, 1.0, rng=random.Random(0))
    impossible = create_conditional_probability_effect("p", "P", inner, 0.0, rng=random.Random(0))

    assert _apply(certain, {"x": 0.0}) == {"x": 1.0}
    assert _apply(impossible, {"x": 0.0}) == {"x": 0.0}


def test_gaussian_random_effect_is_clamped_and_seeded():
    pinned = create_gaussian_random_effect("g", "G", "x", 0, 10, mean=50, standard_deviation=0, rng=random.Random(1))
    assert _apply(pinned, {"x": 1.0})["x"] == 11.0

    first = create_gaussian_random_effect("g", "G", "x", -3, 3, mean=0, standard_deviation=5, rng=random.Random(7))
    second = create_gaussian_random_effect("g", "G", "x", -3, 3, mean=0, standard_deviation=5, rng=random.Random(7))
    drawn = [_apply(first, {"x": 0.0})["x"] for _ in range(50)]

    assert drawn == [_apply(second, {"x": 0.0})["x"] for _ in range(50)]
    assert all(-3 <= value <= 3 for value in drawn)


def test_weighted_random_effect_draws_per_stat():
    effect = create_weighted_random_effect(
        "w",
        "W",
        [("x", 1, 0), ("x", 5, 1), ("y", 2, 1)],
        rng=random.Random(0),
    )

    assert list(effect.stat_types) == ["x", "y"]
    assert _apply(effect, {"x": 0.0, "y": 0.0}) == {"x": 5.0, "y": 2.0}


def test_weighted_random_effect_follows_weights():
    effect = create_weighted_random_effect("w", "W", [("x", 1, 9), ("x", 100, 1)], rng=random.Random(11))
    picks = [_apply(effect, {"x": 0.0})["x"] for _ in range(500)]

    assert set(picks) <= {1.0, 100.0}
    assert picks.count(1.0) > picks.count(100.0)


def test_weighted_random_effect_rejects_negative_weights():
    with pytest.raises(ValueError):
        create_weighted_random_effect("w", "W", [("x", 1, -1)])


def test_complex_effect_without_stat_types_touches_only_what_it_writes():
    seen = []
    effect = create_complex_effect(
        "aura",
        "Aura",
        lambda ctx, stats: seen.append(sorted(stats)) or stats.update(x=stats["x"] + 1),
        lambda ctx, stats: stats.update(x=stats["x"] - 1),
    )

    stats = _apply(effect, {"x": 0.0})

    assert stats == {"x": 1.0}
    assert seen == [["x"]]
