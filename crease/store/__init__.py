from crease.store.document_store import DocumentStore, get_store

__all__ = ["DocumentStore", "get_store"]
