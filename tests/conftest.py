"""Shared fixtures for the menu tree editor tests."""

import copy
import logging
import os

import pytest

from menu_tree_editor.model.nodes import MenuColumn
from menu_tree_editor.model.tree import MenuTree

# Qt tests run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Levels: 1, 2, 8 at root; 3, 4, 7 at level 1; 5 at level 2; 6 at level 3
SAMPLE_MENU = [
    {"id": "1", "label": "Home", "route": "/home", "icon": "home", "status": 1},
    {
        "id": "2",
        "label": "Catalog",
        "icon": "box",
        "status": 1,
        "submenu": [{"id": "3", "label": "Products", "route": "/products"}],
        "columns": [
            {
                "id": "c1",
                "title": "Stock",
                "items": [
                    {
                        "id": "4",
                        "label": "Inventory",
                        "route": "/inventory",
                        "columns": [
                            {
                                "id": "c2",
                                "title": "Movements",
                                "items": [
                                    {
                                        "id": "5",
                                        "label": "Transfers",
                                        "route": "/inventory/transfers",
                                        "submenu": [
                                            {"id": "6", "label": "History", "route": "/inventory/transfers/history"}
                                        ],
                                    }
                                ],
                            }
                        ],
                    },
                    {"id": "7", "label": "Suppliers", "route": "/suppliers"},
                ],
            }
        ],
    },
    {"id": "8", "label": "Reports", "route": "/reports", "icon": "chart", "isPublic": True, "status": 0},
]


class FakeConfig:
    """In-memory stand-in for ``dcmspec.config.Config``."""

    def __init__(self, params=None, config_file=None):
        self._params = dict(params or {})
        self.config_file = config_file
        self.cache_dir = None

    def get_param(self, key):
        return self._params.get(key)

    def set_param(self, key, value):
        self._params[key] = value


@pytest.fixture
def sample_data():
    return copy.deepcopy(SAMPLE_MENU)


@pytest.fixture
def sample_tree(sample_data):
    return MenuTree.from_dicts(sample_data, scope="main")


@pytest.fixture
def logger():
    return logging.getLogger("menu_tree_editor.tests")


@pytest.fixture
def config(tmp_path):
    return FakeConfig(
        {
            "log_level": "DEBUG",
            "menu_store_dir": str(tmp_path / "store"),
            "default_scope": "main",
            "require_root_icon": True,
        }
    )


@pytest.fixture
def check_invariants():
    """Return a checker asserting that a tree satisfies every structural invariant."""

    def check(tree):
        assert tree.validate() == []
        ids = [node.id for node in tree.iter_nodes()]
        assert len(ids) == len(set(ids))
        for item in tree.iter_items():
            owner = item.parent.parent if isinstance(item.parent, MenuColumn) else item.parent
            expected_level = getattr(owner, "level", -1) + 1
            assert item.level == expected_level

    return check


@pytest.fixture
def make_config():
    """Return the in-memory config class, for tests that need custom parameters."""
    return FakeConfig
