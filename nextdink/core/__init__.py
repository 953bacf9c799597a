"""Core module for the nextdink application."""

from .types import ErrorBody, FirestoreDocument

__all__ = ["FirestoreDocument", "ErrorBody"]
