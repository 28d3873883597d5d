"""Required-field checks for menu items."""

from typing import List

from menu_tree_editor.model.errors import ValidationFailed
from menu_tree_editor.model.nodes import MenuItem


def validate_item(item: MenuItem, require_root_icon: bool = True) -> List[ValidationFailed]:
    """Return the required fields missing on an item.

    A label is always required. Items without children navigate somewhere and need a route.
    Root items are shown in the top bar and need an icon unless ``require_root_icon`` is False.
    """
    problems = []
    if not (item.label or "").strip():
        problems.append(ValidationFailed(item.id, "label", "is required"))
    if not item.has_children and not (item.route or "").strip():
        problems.append(ValidationFailed(item.id, "route", "is required for items without children"))
    if require_root_icon and item.level == 0 and not (item.icon or "").strip():
        problems.append(ValidationFailed(item.id, "icon", "is required for root items"))
    return problems
