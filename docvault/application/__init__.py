# Application layer: services that orchestrate domain and infrastructure.

from docvault.application.blob_store import BlobInfo, BlobStore, ReadHandle, WriteHandle
from docvault.application.exceptions import ApplicationError, OperationTimeout, StoreError
from docvault.application.metadata_ledger import LedgerSummary, MetadataLedger

__all__ = [
    "ApplicationError",
    "BlobInfo",
    "BlobStore",
    "LedgerSummary",
    "MetadataLedger",
    "OperationTimeout",
    "ReadHandle",
    "StoreError",
    "WriteHandle",
]
