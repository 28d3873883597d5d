"""Tests for the sync payload builder."""

from menu_tree_editor.model.differ import compute_modified_set
from menu_tree_editor.model.mutations import add_submenu_item, insert_root_item, update_item_fields
from menu_tree_editor.model.nodes import PersistedId as P
from menu_tree_editor.model.payload import build_sync_payload, collect_pending_problems


def entry_ids(entry):
    """Collect the ids of an entry and everything below it."""
    found = {entry.get("id")}
    for child in entry.get("submenu", []):
        found |= entry_ids(child)
    for column in entry.get("columns", []):
        for child in column["items"]:
            found |= entry_ids(child)
    return found


class TestBuildSyncPayload:
    """build_sync_payload."""

    def test_fresh_load_has_nothing_to_send(self, sample_tree):
        """An unchanged working copy produces an empty forest."""
        working = sample_tree.copy()

        modified = compute_modified_set(working, sample_tree)

        assert modified == {}
        assert build_sync_payload(working, modified) == []

    def test_deep_rename_is_wrapped_by_its_ancestors(self, sample_tree):
        """Ancestors are sent as wrappers, the renamed item with its full substructure."""
        working = update_item_fields(sample_tree, P("5"), label="Moves").tree

        payload = build_sync_payload(working, compute_modified_set(working, sample_tree))

        assert payload == [
            {
                "id": "2",
                "label": "Catalog",
                "order": 1,
                "columns": [
                    {
                        "title": "Stock",
                        "order": 0,
                        "items": [
                            {
                                "id": "4",
                                "label": "Inventory",
                                "order": 0,
                                "columns": [
                                    {
                                        "title": "Movements",
                                        "order": 0,
                                        "items": [
                                            {
                                                "id": "5",
                                                "label": "Moves",
                                                "order": 0,
                                                "route": "/inventory/transfers",
                                                "isPublic": False,
                                                "status": 1,
                                                "submenu": [
                                                    {
                                                        "id": "6",
                                                        "label": "History",
                                                        "order": 0,
                                                        "route": "/inventory/transfers/history",
                                                        "isPublic": False,
                                                        "status": 1,
                                                    }
                                                ],
                                            }
                                        ],
                                    }
                                ],
                            }
                        ],
                    }
                ],
            }
        ]

    def test_dirty_item_carries_every_child(self, sample_tree):
        """A modified item is sent with its complete substructure."""
        working = update_item_fields(sample_tree, P("2"), label="Shop").tree

        payload = build_sync_payload(working, compute_modified_set(working, sample_tree))

        assert len(payload) == 1
        assert entry_ids(payload[0]) == {"2", "3", "4", "5", "6", "7"}

    def test_new_items_have_no_id(self, sample_tree):
        """Items with a temporary id are sent without one."""
        working = add_submenu_item(sample_tree, P("1"), label="Sub", route="/sub").tree

        payload = build_sync_payload(working, compute_modified_set(working, sample_tree))

        assert payload == [
            {
                "id": "1",
                "label": "Home",
                "order": 0,
                "submenu": [{"label": "Sub", "order": 0, "route": "/sub", "isPublic": False, "status": 2}],
            }
        ]


class TestPendingProblems:
    """collect_pending_problems."""

    def test_new_root_item_needs_route_and_icon(self, sample_tree):
        """Pending root items without route and icon are reported."""
        result = insert_root_item(sample_tree, label="Draft")

        problems = collect_pending_problems(result.tree, compute_modified_set(result.tree, sample_tree))

        assert {problem.field for problem in problems} == {"route", "icon"}
        assert all(problem.node_id == result.node_id for problem in problems)

    def test_root_icon_can_be_optional(self, sample_tree):
        """The root icon rule can be switched off."""
        result = insert_root_item(sample_tree, label="Draft", route="/draft")
        modified = compute_modified_set(result.tree, sample_tree)

        assert collect_pending_problems(result.tree, modified, require_root_icon=False) == []

    def test_persisted_items_are_not_checked(self, sample_tree):
        """Only new or pending items are validated before a sync."""
        working = update_item_fields(sample_tree, P("3"), route="").tree

        assert collect_pending_problems(working, compute_modified_set(working, sample_tree)) == []
