"""
Exceptions raised by the record store.

The scoring and aggregation services raise nothing of their own; they
operate on records that were validated when they were loaded.

    RecordStoreError
    ├── UnknownCollectionError
    └── RecordNotFoundError
"""


class RecordStoreError(Exception):
    """Base class for record store failures."""


class UnknownCollectionError(RecordStoreError):
    """The requested collection is not part of the schema."""

    def __init__(self, collection: str):
        self.collection = collection
        super().__init__(f"Unknown collection: {collection!r}")


class RecordNotFoundError(RecordStoreError):
    """No record with the given id exists in the collection."""

    def __init__(self, collection: str, record_id: int):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"No record {record_id} in {collection!r}")
