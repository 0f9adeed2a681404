"""
Typed CRUD access to store containers.

Usage:
    from copilot_store.boundary.db.CRUD import BaseCRUD

    sessions = BaseCRUD(store, "chat", Session)
    session = await sessions.get_by_id(scope, session_id)
"""

from copilot_store.boundary.db.CRUD.base_crud import BaseCRUD

__all__ = ["BaseCRUD"]
