"""Custom Qt roles for storing extra data in QStandardItem objects.

These roles are used to associate menu node data with treeview items
without interfering with Qt's built-in roles.

Roles:
    NODE_ID_ROLE: The NodeId (TemporaryId or PersistedId) of the item or column.
    NODE_KIND_ROLE: The NodeKind of the row, item or column.
    COLUMN_ID_ROLE: For column rows, the id of the column; for items held by a column, the id of that column.
    IS_MODIFIED_ROLE: True if the item changed since the last sync.
"""

from PySide6.QtCore import Qt

NODE_ID_ROLE = Qt.UserRole
NODE_KIND_ROLE = Qt.UserRole + 1
COLUMN_ID_ROLE = Qt.UserRole + 2
IS_MODIFIED_ROLE = Qt.UserRole + 3
