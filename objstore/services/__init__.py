from .object_store import (
    CompletionCallback,
    DeleteSummary,
    ObjectStoreClient,
    TransferOutcome,
)

__all__ = [
    "CompletionCallback",
    "DeleteSummary",
    "ObjectStoreClient",
    "TransferOutcome",
]
