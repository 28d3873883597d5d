"""Drag-and-drop interaction session."""

from typing import NamedTuple, Optional

from menu_tree_editor.model.mutations import DropIntent, DropPosition, MutationResult, move
from menu_tree_editor.model.nodes import NodeId
from menu_tree_editor.model.tree import MenuTree


class HoverTarget(NamedTuple):
    """Current drop candidate of a drag session."""

    target_id: NodeId
    intent: DropIntent
    position: DropPosition = DropPosition.BEFORE
    index: Optional[int] = None


class DragSession:
    """Track one drag from begin to end.

    Hover updates only record the candidate target; the tree is touched once, by ``end()``,
    which applies a single ``move`` with the last hover target.
    """

    def __init__(self) -> None:
        """Initialize an idle session."""
        self.dragged_id: Optional[NodeId] = None
        self.hover_target: Optional[HoverTarget] = None

    @property
    def active(self) -> bool:
        """Return True while an item is being dragged."""
        return self.dragged_id is not None

    def begin(self, dragged_id: NodeId) -> None:
        """Start dragging ``dragged_id``, discarding any previous session."""
        self.dragged_id = dragged_id
        self.hover_target = None

    def hover(
        self,
        target_id: Optional[NodeId],
        intent: DropIntent = DropIntent.REORDER,
        position: DropPosition = DropPosition.BEFORE,
        index: Optional[int] = None,
    ) -> None:
        """Record the node currently under the pointer; None or the dragged item clears it."""
        if not self.active:
            return
        if target_id is None or target_id == self.dragged_id:
            self.hover_target = None
        else:
            self.hover_target = HoverTarget(target_id, intent, position, index)

    def end(self, tree: MenuTree) -> Optional[MutationResult]:
        """Finish the drag and apply the drop, or return None if there was no valid target."""
        dragged_id, target = self.dragged_id, self.hover_target
        self.cancel()
        if dragged_id is None or target is None:
            return None
        return move(tree, dragged_id, target.target_id, target.intent, target.position, target.index)

    def cancel(self) -> None:
        """Abort the drag without touching the tree."""
        self.dragged_id = None
        self.hover_target = None
