"""Menu Tree Editor: edit a hierarchical navigation menu and sync the changes to a backend."""

__version__ = "0.1.0"
