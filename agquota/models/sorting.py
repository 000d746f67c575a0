"""Sort orders for quota lists."""

from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from agquota.models.quota import ModelQuota


# Stand-in for a missing reset time so those entries sort last ascending.
DISTANT_FUTURE = datetime.max.replace(tzinfo=UTC)


class SortType(str, Enum):
    """Sort key without a direction."""

    NAME = "name"
    USAGE = "usage"
    RESET_TIME = "resetTime"


class QuotaSortOrder(str, Enum):
    """Sort order for the quota list, a key plus a direction."""

    NAME_ASC = "nameAsc"
    NAME_DESC = "nameDesc"
    USAGE_ASC = "usageAsc"
    USAGE_DESC = "usageDesc"
    RESET_TIME_ASC = "resetTimeAsc"
    RESET_TIME_DESC = "resetTimeDesc"

    @property
    def sort_type(self) -> SortType:
        return _SORT_TYPES[self]

    @property
    def is_ascending(self) -> bool:
        return self.value.endswith("Asc")

    def toggled(self) -> "QuotaSortOrder":
        """Same key, opposite direction."""
        return _TOGGLED[self]

    @classmethod
    def ascending_for(cls, sort_type: SortType) -> "QuotaSortOrder":
        return cls(f"{sort_type.value}Asc")


_SORT_TYPES = {
    QuotaSortOrder.NAME_ASC: SortType.NAME,
    QuotaSortOrder.NAME_DESC: SortType.NAME,
    QuotaSortOrder.USAGE_ASC: SortType.USAGE,
    QuotaSortOrder.USAGE_DESC: SortType.USAGE,
    QuotaSortOrder.RESET_TIME_ASC: SortType.RESET_TIME,
    QuotaSortOrder.RESET_TIME_DESC: SortType.RESET_TIME,
}

_TOGGLED = {
    QuotaSortOrder.NAME_ASC: QuotaSortOrder.NAME_DESC,
    QuotaSortOrder.NAME_DESC: QuotaSortOrder.NAME_ASC,
    QuotaSortOrder.USAGE_ASC: QuotaSortOrder.USAGE_DESC,
    QuotaSortOrder.USAGE_DESC: QuotaSortOrder.USAGE_ASC,
    QuotaSortOrder.RESET_TIME_ASC: QuotaSortOrder.RESET_TIME_DESC,
    QuotaSortOrder.RESET_TIME_DESC: QuotaSortOrder.RESET_TIME_ASC,
}


def sort_quotas(
    quotas: Iterable["ModelQuota"], order: QuotaSortOrder
) -> list["ModelQuota"]:
    """Return ``quotas`` sorted by ``order``.

    Equal keys keep their input order in both directions.
    """
    items = list(quotas)
    sort_type = order.sort_type

    if sort_type is SortType.NAME:
        return sorted(
            items, key=lambda q: q.display_label, reverse=not order.is_ascending
        )
    if sort_type is SortType.USAGE:
        return sorted(
            items, key=lambda q: q.remaining_fraction, reverse=not order.is_ascending
        )
    return sorted(
        items,
        key=lambda q: q.reset_time or DISTANT_FUTURE,
        reverse=not order.is_ascending,
    )


def first_sorted_model(
    quotas: Iterable["ModelQuota"], order: QuotaSortOrder
) -> "ModelQuota | None":
    """The primary model for ``order``, or None for an empty list."""
    ordered = sort_quotas(quotas, order)
    return ordered[0] if ordered else None
