from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            # blinker iterates over a copy of its receivers, so handlers may
            # subscribe or unsubscribe while an emission is in flight.
            sig.send(self, **payload)

    def subscriber_count(self, name: str) -> int:
        sig = self._signals.get(name)
        if not sig:
            return 0
        return len(sig.receivers)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                    # payload: now=float (ms)


# ============================================================================
# EFFECTS
# ============================================================================
EVENT_EFFECT_APPLY_REQUEST = "effect_apply_request"    # payload: entity=int, effect=Effect, duration=float|None
EVENT_EFFECT_REMOVE_REQUEST = "effect_remove_request"  # payload: entity=int, effect_id=str
EVENT_EFFECT_ADDED = "effect_added"                    # payload: entity=int, entity_id=str, effect=Effect, duration=float|None, timestamp=float
EVENT_EFFECT_REMOVED = "effect_removed"                # payload: entity=int, entity_id=str, effect_id=str, reason=str, timestamp=float
EVENT_EFFECT_REJECTED = "effect_rejected"              # payload: entity=int, entity_id=str, effect=Effect, stat_type=str, reason=str, timestamp=float


# ============================================================================
# STATS
# ============================================================================
EVENT_STAT_CHANGED = "stat_changed"                    # payload: entity=int, entity_id=str, stat_type=str, value=float, previous_value=float, timestamp=float


# ============================================================================
# GEAR & VALUE PROVIDERS
# ============================================================================
EVENT_GEAR_EQUIPPED = "gear_equipped"                  # payload: entity=int, entity_id=str, gear_id=str, gear_name=str, slot=str, passive_effects_applied=int, timestamp=float
EVENT_GEAR_UNEQUIPPED = "gear_unequipped"              # payload: entity=int, entity_id=str, gear_id=str, gear_name=str, slot=str, passive_effects_removed=int, timestamp=float
EVENT_VALUE_PROVIDER_REGISTERED = "value_provider_registered"      # payload: entity=int, entity_id=str, provider_id=str, provider_name=str, timestamp=float
EVENT_VALUE_PROVIDER_UNREGISTERED = "value_provider_unregistered"  # payload: entity=int, entity_id=str, provider_id=str, timestamp=float


# ============================================================================
# BOUNDS
# ============================================================================
EVENT_BOUND_STATE_CHANGED = "bound_state_changed"          # payload: entity=int, entity_id=str, data=BoundEventData, timestamp=float
EVENT_BOUND_RATIO_CHANGED = "bound_ratio_changed"          # payload: entity=int, entity_id=str, data=BoundEventData, timestamp=float
EVENT_BOUND_THRESHOLD_CROSSED = "bound_threshold_crossed"  # payload: entity=int, entity_id=str, data=BoundEventData, timestamp=float
