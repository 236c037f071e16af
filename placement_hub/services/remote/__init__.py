"""
Remote Data Client package - identities, rows, blobs and functions behind a
single async facade.
"""

from placement_hub.services.remote.blobs import BlobStore
from placement_hub.services.remote.client import RemoteDataClient
from placement_hub.services.remote.functions import GENERATE_RESUME, FunctionInvoker, ResumeGenerator
from placement_hub.services.remote.identity import IdentityService
from placement_hub.services.remote.rows import RowStore

# Singleton instance
_remote_client: RemoteDataClient = None


def get_remote_client() -> RemoteDataClient:
    """Get or create the unscoped Remote Data Client (singleton pattern)"""
    global _remote_client
    if _remote_client is None:
        rows = RowStore()
        blobs = BlobStore()
        functions = FunctionInvoker({GENERATE_RESUME: ResumeGenerator(rows, blobs)})
        _remote_client = RemoteDataClient(IdentityService(), rows, blobs, functions)
    return _remote_client


__all__ = ["RemoteDataClient", "get_remote_client", "GENERATE_RESUME"]
