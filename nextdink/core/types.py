"""Core data types for the nextdink application."""

from typing import Any, TypedDict


class _FirestoreDocumentBase(TypedDict):
    id: str
    createdAt: Any


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Fields every stored document carries. ``id`` is the document id."""

    updatedAt: Any


class ErrorBody(TypedDict):
    """The JSON body of every error response."""

    error: str
    message: str
