"""Tests for the editor model (baseline and working tree lifecycle)."""

import pytest

from menu_tree_editor.model.drag_session import DragSession
from menu_tree_editor.model.errors import BaselineIntegrityError, StructuralErrorKind, ValidationError
from menu_tree_editor.model.model import Model
from menu_tree_editor.model.mutations import DropIntent
from menu_tree_editor.model.nodes import PersistedId as P
from menu_tree_editor.model.query import find_item
from menu_tree_editor.model.tree import MenuTree


@pytest.fixture
def model(config, logger, sample_tree):
    model = Model(config, logger)
    model.load_tree(sample_tree)
    return model


class TestLifecycle:
    """Load, commit and rollback."""

    def test_edits_need_a_loaded_tree(self, config, logger):
        """Editing before a load is a programming error."""
        with pytest.raises(RuntimeError):
            Model(config, logger).add_root_item(label="X")

    def test_load_starts_clean(self, model, sample_tree):
        """The working tree is a copy of the freshly loaded baseline."""
        assert model.is_loaded
        assert model.baseline is sample_tree
        assert model.working_tree is not sample_tree
        assert model.modified_count == 0
        assert model.scope == "main"

    def test_invalid_baseline_keeps_the_current_state(self, model, sample_data):
        """A tree violating an invariant is refused."""
        broken = MenuTree.from_dicts(sample_data, scope="other")
        broken.items[0].order = 9
        working = model.working_tree

        with pytest.raises(BaselineIntegrityError):
            model.load_tree(broken)

        assert model.working_tree is working
        assert model.scope == "main"

    def test_rollback_discards_changes(self, model):
        """Cancel restores the baseline."""
        model.update_item(P("1"), label="Start")
        assert model.modified_count == 1

        model.rollback()

        assert model.modified_count == 0
        assert find_item(model.working_tree, P("1")).label == "Home"

    def test_commit_makes_the_working_tree_the_baseline(self, model):
        """After a commit nothing is modified."""
        model.update_item(P("1"), label="Start")

        model.commit()

        assert model.modified_count == 0
        assert find_item(model.baseline, P("1")).label == "Start"


    def test_commit_keeps_rejected_edits(self, model, sample_data):
        """Fields of rejected persisted items are applied again on top of the new baseline."""
        model.update_item(P("3"), label="")
        model.update_item(P("1"), label="Start")
        sample_data[0]["label"] = "Start"
        reloaded = MenuTree.from_dicts(sample_data, scope="main")

        model.commit(reloaded, rejected_refs=["3", "999"])

        assert model.baseline is reloaded
        assert find_item(model.working_tree, P("3")).label == ""
        assert set(model.modified_set) == {P("3")}


class TestEdits:
    """Edits through the model."""

    def test_successful_edit_replaces_the_working_tree(self, model):
        """Accepted edits are kept and tracked as modified."""
        result = model.add_submenu_item(P("1"), label="Sub", route="/sub")

        assert result.ok
        assert model.working_tree is result.tree
        assert model.is_modified(result.node_id)

    def test_rejected_edit_keeps_the_working_tree(self, model):
        """Rejected edits leave the working tree object in place."""
        working = model.working_tree

        result = model.move(P("2"), P("6"), DropIntent.NEST)

        assert result.error.kind == StructuralErrorKind.INVALID_TARGET
        assert model.working_tree is working

    def test_modified_set_is_cached(self, model):
        """The modified set is recomputed only when a tree changes."""
        model.update_item(P("3"), label="Goods")

        assert model.modified_set is model.modified_set

    def test_end_drag(self, model):
        """A drag session drop is applied to the working tree."""
        session = DragSession()
        session.begin(P("8"))
        session.hover(P("1"), DropIntent.REORDER)

        result = model.end_drag(session)

        assert result.ok
        assert [item.id for item in model.working_tree.items] == [P("8"), P("1"), P("2")]

    def test_end_drag_without_target(self, model):
        """A drag without a target changes nothing."""
        session = DragSession()
        session.begin(P("8"))

        assert model.end_drag(session) is None
        assert model.modified_count == 0

    def test_filtered_tree(self, model):
        """The display filter never replaces the working tree."""
        filtered = model.filtered_tree("reports")

        assert [item.id for item in filtered.items] == [P("8")]
        assert model.filtered_tree("") is model.working_tree


class TestPrepareSync:
    """Payload preparation."""

    def test_nothing_to_sync(self, model):
        """No changes, no payload."""
        assert model.prepare_sync() == []

    def test_incomplete_new_item_blocks_the_sync(self, model):
        """New items missing required fields raise ValidationError."""
        model.add_root_item(label="Draft")

        with pytest.raises(ValidationError) as excinfo:
            model.prepare_sync()

        assert {problem.field for problem in excinfo.value.problems} == {"route", "icon"}
        assert model.pending_problems() == excinfo.value.problems

    def test_root_icon_rule_follows_the_config(self, model, config):
        """require_root_icon=false lifts the icon requirement."""
        config.set_param("require_root_icon", "false")
        model.add_root_item(label="Draft", route="/draft")

        payload = model.prepare_sync()

        assert payload[-1]["label"] == "Draft"
        assert "id" not in payload[-1]
