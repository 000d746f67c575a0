"""Data models exposed to consumers of the quota core."""

from agquota.models.menu_bar import AVAILABLE_ICONS, MenuBarItem, MenuBarLayout
from agquota.models.quota import (
    AccountInfo,
    ModelQuota,
    QuotaSnapshot,
    RefreshState,
    StatusLevel,
)
from agquota.models.sorting import (
    QuotaSortOrder,
    SortType,
    first_sorted_model,
    sort_quotas,
)


__all__ = [
    "AVAILABLE_ICONS",
    "AccountInfo",
    "MenuBarItem",
    "MenuBarLayout",
    "ModelQuota",
    "QuotaSnapshot",
    "QuotaSortOrder",
    "RefreshState",
    "SortType",
    "StatusLevel",
    "first_sorted_model",
    "sort_quotas",
]
