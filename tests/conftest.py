"""Common utilities for tests."""

from __future__ import annotations

import unittest.mock
from typing import Any, Callable, Optional

from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference

SERVER_TIMESTAMP = "2023-01-01"

# Every module that does ``from firebase_admin import firestore``.
FIRESTORE_MODULES = (
    "nextdink.firestore",
    "nextdink.auth.routes.firestore",
    "nextdink.user.services.firestore",
    "nextdink.user.routes.firestore",
    "nextdink.lists.services.firestore",
    "nextdink.lists.routes.firestore",
    "nextdink.notifications.services.firestore",
    "nextdink.notifications.routes.firestore",
    "nextdink.event.store.firestore",
    "nextdink.event.routes.firestore",
)


class MockFieldFilter:
    def __init__(self, field_path: str, op_string: str, value: Any) -> None:
        self.field_path = field_path
        self.op_string = op_string
        self.value = value


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter and transactions."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = collection_where

    if not hasattr(DocumentReference, "_nextdink_hash"):
        DocumentReference._nextdink_hash = True
        DocumentReference.__hash__ = lambda self: hash(tuple(self._path))

    # Patch DocumentReference.get to handle transaction argument
    if not hasattr(DocumentReference, "_orig_get"):
        DocumentReference._orig_get = DocumentReference.get

        def doc_ref_get(self: Any, transaction: Any = None) -> Any:
            """Handle transaction argument in get."""
            return self._orig_get()

        DocumentReference.get = doc_ref_get

    if not hasattr(MockFirestore, "_nextdink_get_all"):
        MockFirestore._nextdink_get_all = True

        def get_all(
            self: Any,
            references: list[Any],
            field_paths: Any = None,
            transaction: Any = None,
        ) -> list[Any]:
            return [ref.get() for ref in references]

        MockFirestore.get_all = get_all


class MockBatch:
    def __init__(self, db: Any) -> None:
        self.db = db
        self.writes: list[tuple[str, Any, Any]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append(("update", ref, data))

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append(("set", ref, data))

    def delete(self, ref: Any) -> None:
        self.writes.append(("delete", ref, None))

    def _real_commit(self) -> None:
        for op, ref, data in self.writes:
            if op == "delete":
                ref.delete()
            elif op == "set":
                ref.set(data)
            else:
                ref.update(data)
        self.writes = []


class MockTransaction:
    """Buffers writes until commit, like a Firestore transaction."""

    def __init__(self, db: Any) -> None:
        self.db = db
        self.writes: list[tuple[str, Any, Any]] = []
        self.committed = False

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append(("update", ref, data))

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append(("set", ref, data))

    def delete(self, ref: Any) -> None:
        self.writes.append(("delete", ref, None))

    def commit(self) -> None:
        for op, ref, data in self.writes:
            if op == "delete":
                ref.delete()
            elif op == "set":
                ref.set(data)
            else:
                ref.update(data)
        self.committed = True


def mock_transactional(func: Callable[..., Any]) -> Callable[..., Any]:
    """Stand-in for firestore.transactional: run once, then commit."""

    def wrapper(transaction: MockTransaction, *args: Any, **kwargs: Any) -> Any:
        result = func(transaction, *args, **kwargs)
        transaction.commit()
        return result

    return wrapper


def make_mock_db() -> MockFirestore:
    """A MockFirestore with batches and transactions wired in."""
    patch_mockfirestore()
    db = MockFirestore()
    db.batch = unittest.mock.MagicMock(side_effect=lambda: MockBatch(db))
    db.transaction = unittest.mock.MagicMock(
        side_effect=lambda **kwargs: MockTransaction(db)
    )
    return db


def make_firestore_module(db: Any) -> unittest.mock.MagicMock:
    """A MagicMock standing in for ``firebase_admin.firestore``."""
    module = unittest.mock.MagicMock()
    module.client.return_value = db
    module.FieldFilter = MockFieldFilter
    module.SERVER_TIMESTAMP = SERVER_TIMESTAMP
    module.transactional = mock_transactional
    module.Query.DESCENDING = "DESCENDING"
    module.Query.ASCENDING = "ASCENDING"
    return module


def start_firestore_patches(
    test_case: Any, db: Any, modules: tuple[str, ...] = FIRESTORE_MODULES
) -> unittest.mock.MagicMock:
    """Point every module's ``firestore`` at one mock module bound to ``db``."""
    module = make_firestore_module(db)
    for target in modules:
        patcher = unittest.mock.patch(target, new=module)
        patcher.start()
        test_case.addCleanup(patcher.stop)
    return module


class AppTestCase(unittest.TestCase):
    """A Flask test client wired to a fresh mock Firestore."""

    user_id = "user1"
    user_data = {
        "displayName": "Dana Dinker",
        "displayNameLower": "dana dinker",
        "photoUrl": "https://example.com/dana.png",
    }

    def setUp(self) -> None:
        self.db = make_mock_db()
        self.firestore = start_firestore_patches(self, self.db)

        patchers = {
            "init_app": unittest.mock.patch("firebase_admin.initialize_app"),
            "verify_id_token": unittest.mock.patch(
                "firebase_admin.auth.verify_id_token"
            ),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        from nextdink import create_app

        self.app = create_app(
            {"TESTING": True, "WTF_CSRF_ENABLED": False, "SERVER_NAME": "localhost"}
        )
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)

        self.db.collection("users").document(self.user_id).set(dict(self.user_data))

    def login(self, user_id: Optional[str] = None) -> None:
        """Put a signed-in user in the session."""
        with self.client.session_transaction() as sess:
            sess["user_id"] = user_id or self.user_id

    def add_user(self, user_id: str, display_name: str) -> None:
        self.db.collection("users").document(user_id).set(
            {
                "displayName": display_name,
                "displayNameLower": display_name.lower(),
                "photoUrl": None,
            }
        )
