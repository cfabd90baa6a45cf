"""
Tier Engine.

Maps a cumulative metric (points balance or spend in cents) onto one of four
ordered tier levels using a tenant's threshold boundaries, and renders the
display data the dashboard needs: tier name, progress toward the next tier
and the amount still to go.

Threshold model:
    (b1, b2, b3) are the inclusive upper bounds of tiers 1-3. Anything above
    the last present boundary is tier 4. A missing boundary gives its band
    zero width, so the next present boundary is tested instead. No boundaries
    at all means there is no tier program: everyone is tier 1.

Naming presets:
    LOYALTY: Bronze, Silver, Gold, Platinum
    OFFICE:  Member, Staff, Admin, Executive
    GYM:     Weekday, 7-Day, 24/7, Family
    CUSTOM:  Tier 1 .. Tier 4 (meant to be overridden per tenant)
    NONE:    no progression, a single member label

Everything here is pure. Bad input is clamped (negative values become 0,
malformed boundaries become "absent") instead of raising.
"""
import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union


class TierLevel(str, Enum):
    """The four ordered tier bands."""

    TIER_1 = 'TIER_1'
    TIER_2 = 'TIER_2'
    TIER_3 = 'TIER_3'
    TIER_4 = 'TIER_4'

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self) + 1

    @property
    def next(self) -> Optional['TierLevel']:
        if self is TierLevel.TIER_4:
            return None
        return TIER_ORDER[self.rank]


TIER_ORDER = [TierLevel.TIER_1, TierLevel.TIER_2, TierLevel.TIER_3, TierLevel.TIER_4]

# Older programs stored metal names instead of positions
LEGACY_LEVELS = {
    'BRONZE': TierLevel.TIER_1,
    'SILVER': TierLevel.TIER_2,
    'GOLD': TierLevel.TIER_3,
    'PLATINUM': TierLevel.TIER_4,
}


class TierSystemType(str, Enum):
    """Preset naming scheme selected by a tenant."""

    LOYALTY = 'LOYALTY'
    OFFICE = 'OFFICE'
    GYM = 'GYM'
    CUSTOM = 'CUSTOM'
    NONE = 'NONE'


DEFAULT_MEMBER_LABEL = 'Member'


@dataclass(frozen=True)
class TierNames:
    """Display names for the four tiers plus the label used without tiers."""

    tier_1: Optional[str] = None
    tier_2: Optional[str] = None
    tier_3: Optional[str] = None
    tier_4: Optional[str] = None
    default_member_label: Optional[str] = None

    def for_level(self, level: TierLevel) -> Optional[str]:
        return getattr(self, f'tier_{level.rank}')

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'tier_1': self.tier_1,
            'tier_2': self.tier_2,
            'tier_3': self.tier_3,
            'tier_4': self.tier_4,
            'default_member_label': self.default_member_label,
        }


TIER_PRESETS: Dict[TierSystemType, TierNames] = {
    TierSystemType.LOYALTY: TierNames('Bronze', 'Silver', 'Gold', 'Platinum', 'Member'),
    TierSystemType.OFFICE: TierNames('Member', 'Staff', 'Admin', 'Executive', 'Member'),
    TierSystemType.GYM: TierNames('Weekday', '7-Day', '24/7', 'Family', 'Member'),
    TierSystemType.CUSTOM: TierNames('Tier 1', 'Tier 2', 'Tier 3', 'Tier 4', 'Member'),
    TierSystemType.NONE: TierNames('Member', 'Member', 'Member', 'Member', 'Member'),
}


# ==================== Input coercion ====================

def _to_number(value: Any) -> Optional[float]:
    """Best-effort numeric conversion; None for anything unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _clamp_value(value: Any) -> float:
    number = _to_number(value)
    if number is None or number < 0:
        return 0
    return number


def _normalize_number(number: float) -> Union[int, float]:
    return int(number) if float(number).is_integer() else number


@dataclass(frozen=True)
class TierThresholds:
    """
    Upper bounds for tiers 1-3.

    Use TierThresholds.of(...) to build one from untrusted values: negative,
    non-numeric and non-increasing boundaries are dropped (treated as absent).
    """

    tier_1_max: Optional[Union[int, float]] = None
    tier_2_max: Optional[Union[int, float]] = None
    tier_3_max: Optional[Union[int, float]] = None

    @classmethod
    def of(cls, *values: Any) -> 'TierThresholds':
        cleaned: List[Optional[Union[int, float]]] = []
        last_present = None
        for raw in list(values)[:3]:
            number = _to_number(raw)
            if number is None or number < 0:
                cleaned.append(None)
                continue
            if last_present is not None and number <= last_present:
                cleaned.append(None)
                continue
            last_present = number
            cleaned.append(_normalize_number(number))
        cleaned.extend([None] * (3 - len(cleaned)))
        return cls(*cleaned)

    @property
    def is_empty(self) -> bool:
        return self.tier_1_max is None and self.tier_2_max is None and self.tier_3_max is None

    def bands(self) -> List[Tuple[TierLevel, Optional[Union[int, float]]]]:
        return [
            (TierLevel.TIER_1, self.tier_1_max),
            (TierLevel.TIER_2, self.tier_2_max),
            (TierLevel.TIER_3, self.tier_3_max),
        ]

    def upper_bound(self, level: TierLevel) -> Optional[Union[int, float]]:
        for band_level, boundary in self.bands():
            if band_level is level:
                return boundary
        return None

    def lower_bound(self, level: TierLevel) -> Union[int, float]:
        """Closest present boundary below the band, 0 when there is none."""
        lower = 0
        for band_level, boundary in self.bands():
            if band_level is level:
                break
            if boundary is not None:
                lower = boundary
        return lower

    def to_dict(self) -> Dict[str, Optional[Union[int, float]]]:
        return {
            'tier_1_max': self.tier_1_max,
            'tier_2_max': self.tier_2_max,
            'tier_3_max': self.tier_3_max,
        }


ThresholdsLike = Union[TierThresholds, Iterable[Any], None]


def _as_thresholds(thresholds: ThresholdsLike) -> TierThresholds:
    if isinstance(thresholds, TierThresholds):
        # Re-run validation; dataclass construction does not enforce ordering
        return TierThresholds.of(thresholds.tier_1_max, thresholds.tier_2_max, thresholds.tier_3_max)
    if thresholds is None:
        return TierThresholds()
    if isinstance(thresholds, dict):
        return TierThresholds.of(
            thresholds.get('tier_1_max'),
            thresholds.get('tier_2_max'),
            thresholds.get('tier_3_max'),
        )
    try:
        return TierThresholds.of(*thresholds)
    except TypeError:
        return TierThresholds()


def parse_level(value: Any) -> Optional[TierLevel]:
    """Accept TierLevel, 'TIER_n', legacy metal names or 1-4."""
    if isinstance(value, TierLevel):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        if 1 <= value <= 4:
            return TIER_ORDER[value - 1]
        return None
    if isinstance(value, str):
        key = value.strip().upper()
        if key in LEGACY_LEVELS:
            return LEGACY_LEVELS[key]
        try:
            return TierLevel(key)
        except ValueError:
            return None
    return None


def parse_system_type(value: Any) -> TierSystemType:
    """Unknown or empty values fall back to the LOYALTY preset."""
    if isinstance(value, TierSystemType):
        return value
    if isinstance(value, str):
        try:
            return TierSystemType(value.strip().upper())
        except ValueError:
            pass
    return TierSystemType.LOYALTY


# ==================== Classification ====================

def classify(value: Any, thresholds: ThresholdsLike) -> TierLevel:
    """
    Place a value in one of the four tiers.

    Args:
        value: Points balance or cumulative spend; negatives count as 0
        thresholds: TierThresholds, a (b1, b2, b3) sequence or a dict

    Returns:
        The TierLevel. Boundaries are inclusive: value == b1 is still tier 1.
    """
    v = _clamp_value(value)
    bounds = _as_thresholds(thresholds)

    if bounds.is_empty:
        return TierLevel.TIER_1

    for level, boundary in bounds.bands():
        if boundary is not None and v <= boundary:
            return level

    return TierLevel.TIER_4


@dataclass(frozen=True)
class TierProgress:
    """Progress of a value inside its tier band."""

    level: TierLevel
    percent: float
    next_threshold: Optional[Union[int, float]] = None
    amount_to_next: Optional[Union[int, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'level': self.level.value,
            'percent': self.percent,
            'next_threshold': self.next_threshold,
            'amount_to_next': self.amount_to_next,
        }


def progress(value: Any, thresholds: ThresholdsLike) -> TierProgress:
    """
    Compute how far a value has moved through its current tier band.

    percent is (v - lower) / (upper - lower) * 100 clamped to [0, 100], where
    lower is the previous present boundary (or 0) and upper is the band's own
    boundary. amount_to_next is what is left inside the band (upper - v) and
    is None once nothing is left. The top tier and programs without
    thresholds always report 100%.
    """
    v = _clamp_value(value)
    bounds = _as_thresholds(thresholds)
    level = classify(v, bounds)

    if bounds.is_empty or level is TierLevel.TIER_4:
        return TierProgress(level=level, percent=100.0)

    upper = bounds.upper_bound(level)
    lower = bounds.lower_bound(level)

    if upper <= lower:
        percent = 100.0
    else:
        percent = (v - lower) / (upper - lower) * 100
        percent = min(max(percent, 0.0), 100.0)

    remaining = _normalize_number(upper - v)
    return TierProgress(
        level=level,
        percent=percent,
        next_threshold=upper,
        amount_to_next=remaining if remaining > 0 else None,
    )


# ==================== Naming ====================

def resolve_name(
    level: Any,
    names: Union[TierNames, TierSystemType, str, None] = None,
    system_type: Union[TierSystemType, str, None] = None,
) -> str:
    """
    Display name for a tier level.

    Resolution order: explicit tenant names, then the preset for the system
    type, then the generic "Member" label. The NONE system type always shows
    the default member label.

    The second argument may be either a TierNames override or a system type
    tag, so resolve_name(level, 'GYM') works as well as
    resolve_name(level, tenant_names, 'GYM').
    """
    if isinstance(names, (TierSystemType, str)):
        system_type, names = names, None

    system = parse_system_type(system_type)
    preset = TIER_PRESETS[system]

    if system is TierSystemType.NONE:
        if names and names.default_member_label:
            return names.default_member_label
        return preset.default_member_label or DEFAULT_MEMBER_LABEL

    tier_level = parse_level(level)
    if tier_level is None:
        if names and names.default_member_label:
            return names.default_member_label
        return DEFAULT_MEMBER_LABEL

    if names and names.for_level(tier_level):
        return names.for_level(tier_level)

    return preset.for_level(tier_level) or DEFAULT_MEMBER_LABEL


# ==================== Tenant configuration ====================

@dataclass(frozen=True)
class TierConfig:
    """Everything a tenant configures about its points tiers."""

    system_type: TierSystemType = TierSystemType.LOYALTY
    thresholds: TierThresholds = field(default_factory=TierThresholds)
    names: TierNames = field(default_factory=TierNames)
    wallet_tier_ids: Dict[TierLevel, Optional[str]] = field(default_factory=dict)
    base_wallet_tier_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'system_type': self.system_type.value,
            'thresholds': self.thresholds.to_dict(),
            'names': {
                level.value: resolve_name(level, self.names, self.system_type)
                for level in TIER_ORDER
            },
            'default_member_label': self.names.default_member_label or DEFAULT_MEMBER_LABEL,
        }


def _field(source: Any, name: str) -> Any:
    if isinstance(source, dict):
        return source.get(name)
    return getattr(source, name, None)


def build_tier_config(program: Any) -> TierConfig:
    """
    Build a TierConfig from a tenant row (model instance or dict).

    Tenant-specific names win; blank names fall back to the preset of the
    tenant's tier system type.
    """
    system = parse_system_type(_field(program, 'tier_system_type'))
    preset = TIER_PRESETS[system]

    def pick(column: str, fallback: Optional[str]) -> Optional[str]:
        value = _field(program, column)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return fallback

    names = TierNames(
        tier_1=pick('tier_1_name', preset.tier_1),
        tier_2=pick('tier_2_name', preset.tier_2),
        tier_3=pick('tier_3_name', preset.tier_3),
        tier_4=pick('tier_4_name', preset.tier_4),
        default_member_label=pick('default_member_label', preset.default_member_label),
    )

    return TierConfig(
        system_type=system,
        thresholds=TierThresholds.of(
            _field(program, 'tier_1_max'),
            _field(program, 'tier_2_max'),
            _field(program, 'tier_3_max'),
        ),
        names=names,
        wallet_tier_ids={
            level: _field(program, f'wallet_tier_{level.rank}_id')
            for level in TIER_ORDER
        },
        base_wallet_tier_id=_field(program, 'wallet_tier_id'),
    )


def wallet_tier_id(level: TierLevel, config: TierConfig) -> str:
    """Wallet provider template for a level: per-level id, then base id, then 'base'."""
    return config.wallet_tier_ids.get(level) or config.base_wallet_tier_id or 'base'


def tier_info(value: Any, config: TierConfig) -> Dict[str, Any]:
    """
    Badge and progress data for one member.

    Returns:
        Dict with level, name, wallet_tier_id, next_level, next_name,
        points_to_next and progress (the TierProgress as a dict). Programs on
        the NONE system type never report a next tier.
    """
    tier_progress = progress(value, config.thresholds)
    level = tier_progress.level

    next_level = None
    next_name = None
    points_to_next = None

    if config.system_type is not TierSystemType.NONE and tier_progress.next_threshold is not None:
        next_level = level.next
        next_name = resolve_name(next_level, config.names, config.system_type)
        points_to_next = tier_progress.amount_to_next

    return {
        'level': level.value,
        'name': resolve_name(level, config.names, config.system_type),
        'wallet_tier_id': wallet_tier_id(level, config),
        'next_level': next_level.value if next_level else None,
        'next_name': next_name,
        'points_to_next': points_to_next,
        'progress': tier_progress.to_dict(),
    }


def check_tier_upgrade(old_value: Any, new_value: Any, config: TierConfig) -> Dict[str, Any]:
    """Compare the tiers before and after a balance change."""
    old_level = classify(old_value, config.thresholds)
    new_level = classify(new_value, config.thresholds)
    return {
        'upgraded': new_level.rank > old_level.rank,
        'old_level': old_level.value,
        'new_level': new_level.value,
        'old_name': resolve_name(old_level, config.names, config.system_type),
        'new_name': resolve_name(new_level, config.names, config.system_type),
    }


# ==================== Spend tiers ====================

DEFAULT_SPEND_THRESHOLDS_CENTS = (30000, 100000, 250000)
DEFAULT_TIER_DISCOUNTS = (0, 5, 10, 15)


@dataclass(frozen=True)
class SpendTierConfig:
    """
    Spend-based tiers for POS integrations.

    Thresholds are the minimum cumulative spend (in cents) to reach tiers
    2, 3 and 4. Discounts are percentages per tier.
    """

    tier_2_min_cents: Optional[int] = DEFAULT_SPEND_THRESHOLDS_CENTS[0]
    tier_3_min_cents: Optional[int] = DEFAULT_SPEND_THRESHOLDS_CENTS[1]
    tier_4_min_cents: Optional[int] = DEFAULT_SPEND_THRESHOLDS_CENTS[2]
    discounts: Tuple[float, float, float, float] = DEFAULT_TIER_DISCOUNTS

    def as_thresholds(self) -> TierThresholds:
        # Whole cents: "at least N" is the same band as "at most N - 1" below it
        def band_max(minimum):
            number = _to_number(minimum)
            if number is None:
                return None
            return math.ceil(number) - 1

        return TierThresholds.of(
            band_max(self.tier_2_min_cents),
            band_max(self.tier_3_min_cents),
            band_max(self.tier_4_min_cents),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tier_2_min_cents': self.tier_2_min_cents,
            'tier_3_min_cents': self.tier_3_min_cents,
            'tier_4_min_cents': self.tier_4_min_cents,
            'discounts': {
                level.value: self.discounts[level.rank - 1] for level in TIER_ORDER
            },
        }


def build_spend_config(program: Any) -> SpendTierConfig:
    def discount(rank: int) -> float:
        number = _to_number(_field(program, f'tier_{rank}_discount_percent'))
        if number is None:
            return DEFAULT_TIER_DISCOUNTS[rank - 1]
        return min(max(number, 0.0), 100.0)

    def minimum(rank: int, default: int) -> Optional[int]:
        value = _field(program, f'spend_tier_{rank}_min_cents')
        return default if value is None else value

    return SpendTierConfig(
        tier_2_min_cents=minimum(2, DEFAULT_SPEND_THRESHOLDS_CENTS[0]),
        tier_3_min_cents=minimum(3, DEFAULT_SPEND_THRESHOLDS_CENTS[1]),
        tier_4_min_cents=minimum(4, DEFAULT_SPEND_THRESHOLDS_CENTS[2]),
        discounts=tuple(discount(rank) for rank in range(1, 5)),
    )


def classify_spend(spend_cents: Any, config: SpendTierConfig) -> TierLevel:
    return classify(spend_cents, config.as_thresholds())


def discount_for_tier(level: Any, config: SpendTierConfig) -> float:
    tier_level = parse_level(level) or TierLevel.TIER_1
    return config.discounts[tier_level.rank - 1]
