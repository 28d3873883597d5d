"""Main entry point for the Menu Tree Editor application."""

import argparse
import sys

from PySide6.QtCore import QCoreApplication

from menu_tree_editor.controller.app_controller import MenuEditorController


def main(argv=None):
    """Start the Menu Tree Editor.

    Load the configured menu scope through the controller and log the tree. Rendering is left
    to the presentation layer, so a core application runs the event loop until the load ends.

    Returns:
        int: 0 once the tree is loaded, 1 if it could not be loaded.

    """
    parser = argparse.ArgumentParser(prog="menu-tree-editor", description="Inspect a stored menu tree.")
    parser.add_argument("--scope", help="menu scope to load (default: the configured default_scope)")
    args = parser.parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication([])

    controller = MenuEditorController()

    def on_tree_changed(_treeview_model):
        tree = controller.model.working_tree
        controller.logger.info(f"Menu scope {tree.scope!r}:\n{tree.render()}")
        app.exit(0)

    def on_error(error):
        controller.logger.error(f"Cannot load menu: {error}")
        app.exit(1)

    controller.tree_changed.connect(on_tree_changed)
    controller.error_reported.connect(on_error)
    controller.load(args.scope)
    exit_code = app.exec()
    controller.deleteLater()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
