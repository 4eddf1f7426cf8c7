from __future__ import annotations

from typing import Iterable, Sequence

from entity_stats.effects.base import (
    Applicability,
    Application,
    Effect,
    EffectContext,
    Impact,
    StatMap,
    StatStackability,
    Target,
    rules_allow_stacking,
)


class ComposedEffect:
    """An effect assembled from one policy per role.

    ``apply`` asks the applicability policy first, then for every target
    computes an impact and hands the mutation to the application policy.
    ``reverse`` recomputes the impact the same way; nothing is remembered
    between the two calls.
    """

    def __init__(
        self,
        effect_id: str,
        name: str,
        applicability: Applicability,
        impact: Impact,
        target: Target,
        application: Application,
        *,
        priority: int = 0,
        stat_types: Iterable[str] = (),
        stackability_rules: Iterable[StatStackability] = (),
        description: str = "",
    ) -> None:
        self.id = effect_id
        self.name = name
        self.description = description
        self.priority = priority
        self.stat_types: Sequence[str] = tuple(stat_types)
        self.stackability_rules: Sequence[StatStackability] = tuple(stackability_rules)
        self.applicability = applicability
        self.impact = impact
        self.target = target
        self.application = application

    def apply(self, ctx: EffectContext, stats: StatMap) -> None:
        if not self.applicability.is_applicable(ctx):
            return
        for stat_type in self.target.get_targets(ctx):
            impact = self.impact.calculate_impact(ctx, stat_type)
            self.application.apply_impact(ctx, stats, stat_type, impact)

    def reverse(self, ctx: EffectContext, stats: StatMap) -> None:
        if not self.applicability.is_applicable(ctx):
            return
        for stat_type in self.target.get_targets(ctx):
            impact = self.impact.calculate_impact(ctx, stat_type)
            self.application.reverse_impact(ctx, stats, stat_type, impact)

    def is_active(self, ctx: EffectContext) -> bool:
        return self.applicability.is_applicable(ctx)

    def can_stack_with(self, other: Effect, stat_type: str) -> bool:
        return rules_allow_stacking(self, other, stat_type)

    def __repr__(self) -> str:
        return f"ComposedEffect(id={self.id!r}, name={self.name!r}, priority={self.priority})"


class ComposedEffectBuilder:
    def __init__(self, effect_id: str, name: str) -> None:
        self._effect_id = effect_id
        self._name = name
        self._description = ""
        self._priority = 0
        self._stat_types: list[str] = []
        self._stackability_rules: list[StatStackability] = []
        self._applicability: Applicability | None = None
        self._impact: Impact | None = None
        self._target: Target | None = None
        self._application: Application | None = None

    def with_description(self, description: str) -> "ComposedEffectBuilder":
        self._description = description
        return self

    def with_priority(self, priority: int) -> "ComposedEffectBuilder":
        self._priority = priority
        return self

    def with_stat_types(self, stat_types: Iterable[str]) -> "ComposedEffectBuilder":
        self._stat_types = list(stat_types)
        return self

    def with_stackability_rules(self, rules: Iterable[StatStackability]) -> "ComposedEffectBuilder":
        self._stackability_rules = list(rules)
        return self

    def with_applicability(self, applicability: Applicability) -> "ComposedEffectBuilder":
        self._applicability = applicability
        return self

    def with_impact(self, impact: Impact) -> "ComposedEffectBuilder":
        self._impact = impact
        return self

    def with_target(self, target: Target) -> "ComposedEffectBuilder":
        self._target = target
        return self

    def with_application(self, application: Application) -> "ComposedEffectBuilder":
        self._application = application
        return self

    def build(self) -> ComposedEffect:
        missing = [
            role
            for role, value in (
                ("applicability", self._applicability),
                ("impact", self._impact),
                ("target", self._target),
                ("application", self._application),
            )
            if value is None
        ]
        if missing:
            raise ValueError(f"Effect '{self._effect_id}' is missing strategy components: {', '.join(missing)}")
        return ComposedEffect(
            self._effect_id,
            self._name,
            self._applicability,
            self._impact,
            self._target,
            self._application,
            priority=self._priority,
            stat_types=self._stat_types,
            stackability_rules=self._stackability_rules,
            description=self._description,
        )
