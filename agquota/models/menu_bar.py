"""Menu bar item configuration records.

The core only encodes and decodes these; storing them is up to the
presentation layer.
"""

from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


AVAILABLE_ICONS = (
    "bolt.fill",
    "sparkles",
    "brain",
    "cpu",
    "wand.and.stars",
    "cloud.fill",
    "terminal.fill",
    "circle.grid.3x3.fill",
    "star.fill",
    "flame.fill",
    "leaf.fill",
    "moon.fill",
    "sun.max.fill",
    "burst.fill",
    "atom",
    "testtube.2",
)
DEFAULT_ICON = "bolt.fill"


class MenuBarItem(BaseModel):
    """One status bar entry. ``model_key=None`` shows the lowest quota."""

    id: UUID = Field(default_factory=uuid4)
    model_key: str | None = Field(default=None, alias="modelKey")
    icon: str = DEFAULT_ICON

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("icon")
    @classmethod
    def validate_icon(cls, v: str) -> str:
        if v not in AVAILABLE_ICONS:
            raise ValueError(f"Unknown icon: {v}")
        return v

    @property
    def is_overall(self) -> bool:
        return self.model_key is None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> "MenuBarItem":
        return cls.model_validate_json(data)


_items_adapter = TypeAdapter(list[MenuBarItem])


class MenuBarLayout:
    """Ordered list of menu bar items that is never empty."""

    def __init__(self, items: list[MenuBarItem] | None = None) -> None:
        self._items = list(items) if items else [MenuBarItem()]

    @property
    def items(self) -> list[MenuBarItem]:
        return list(self._items)

    def add(self, model_key: str | None) -> MenuBarItem:
        item = MenuBarItem(model_key=model_key)
        self._items.append(item)
        return item

    def remove(self, item_id: UUID) -> None:
        self._items = [item for item in self._items if item.id != item_id]
        if not self._items:
            self._items = [MenuBarItem()]

    def update_icon(self, item_id: UUID, icon: str) -> bool:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                self._items[index] = MenuBarItem(
                    id=item.id, model_key=item.model_key, icon=icon
                )
                return True
        return False

    def to_json(self) -> bytes:
        return _items_adapter.dump_json(self._items, by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> "MenuBarLayout":
        return cls(_items_adapter.validate_json(data))
