"""Tests for menu bar item records."""

import json
from uuid import uuid4

import pytest
from pydantic import ValidationError

from agquota.models import AVAILABLE_ICONS, MenuBarItem, MenuBarLayout


class TestMenuBarItem:
    def test_json_round_trip(self) -> None:
        item = MenuBarItem(model_key="MODEL_PLACEHOLDER_M7", icon="brain")
        assert MenuBarItem.from_json(item.to_json()) == item

    def test_json_uses_camel_case_key(self) -> None:
        item = MenuBarItem(model_key="MODEL_X")
        data = json.loads(item.to_json())
        assert data["modelKey"] == "MODEL_X"
        assert data["id"] == str(item.id)

    def test_overall_item(self) -> None:
        item = MenuBarItem()
        assert item.is_overall
        assert item.icon == AVAILABLE_ICONS[0]
        assert MenuBarItem.from_json(item.to_json()).model_key is None

    def test_unknown_icon_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MenuBarItem(icon="not-an-icon")


class TestMenuBarLayout:
    """Test the ordered item list."""

    def test_starts_with_overall_item(self) -> None:
        layout = MenuBarLayout()
        assert len(layout.items) == 1
        assert layout.items[0].is_overall

    def test_removing_last_item_keeps_one(self) -> None:
        layout = MenuBarLayout()
        only = layout.items[0]
        layout.remove(only.id)
        assert len(layout.items) == 1
        assert layout.items[0].id != only.id
        assert layout.items[0].is_overall

    def test_add_and_remove(self) -> None:
        layout = MenuBarLayout()
        added = layout.add("MODEL_X")
        assert [i.model_key for i in layout.items] == [None, "MODEL_X"]
        layout.remove(added.id)
        assert [i.model_key for i in layout.items] == [None]

    def test_update_icon(self) -> None:
        layout = MenuBarLayout()
        item = layout.items[0]
        assert layout.update_icon(item.id, "flame.fill")
        assert layout.items[0].icon == "flame.fill"
        assert not layout.update_icon(uuid4(), "flame.fill")

    def test_update_icon_validates(self) -> None:
        layout = MenuBarLayout()
        with pytest.raises(ValidationError):
            layout.update_icon(layout.items[0].id, "bogus")

    def test_layout_json_round_trip(self) -> None:
        layout = MenuBarLayout()
        layout.add("MODEL_X")
        restored = MenuBarLayout.from_json(layout.to_json())
        assert restored.items == layout.items
