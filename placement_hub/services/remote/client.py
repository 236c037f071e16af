"""
Remote Data Client - the one interface the service layer uses to reach the
backend: identities, rows, blobs and invocable functions.

The stores underneath are blocking (SQLAlchemy, pymongo, openai); every call
is pushed to the threadpool so the event loop stays responsive. A client
returned by for_user() acts as that identity and is subject to the access
policies; the unscoped client is trusted.
"""

from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from placement_hub.schemas.schemas import Identity
from placement_hub.services.remote.blobs import BlobStore
from placement_hub.services.remote.functions import FunctionInvoker
from placement_hub.services.remote.identity import IdentityService, Listener, Subscription
from placement_hub.services.remote.policies import Actor
from placement_hub.services.remote.rows import RowStore


class RemoteDataClient:
    def __init__(
        self,
        identity: IdentityService,
        rows: RowStore,
        blobs: BlobStore,
        functions: FunctionInvoker,
        user_id: Optional[str] = None,
    ):
        self.identity = identity
        self.rows = rows
        self.blobs = blobs
        self.functions = functions
        self.user_id = user_id

    def for_user(self, user_id: str) -> "RemoteDataClient":
        return RemoteDataClient(self.identity, self.rows, self.blobs, self.functions, user_id=user_id)

    def _actor(self) -> Optional[Actor]:
        # fresh per call, the store fills in the current role
        return Actor(self.user_id) if self.user_id else None

    # ---------------- identity ----------------

    async def sign_up(self, email: str, password: str, metadata: dict) -> Identity:
        return await run_in_threadpool(self.identity.sign_up, email, password, metadata)

    async def sign_in(self, email: str, password: str):
        return await run_in_threadpool(self.identity.sign_in, email, password)

    async def get_session(self, token: str) -> Optional[Identity]:
        return self.identity.get_session(token)

    async def sign_out(self, identity: Identity) -> None:
        self.identity.sign_out(identity)

    def on_session_change(self, listener: Listener) -> Subscription:
        return self.identity.on_session_change(listener)

    # ---------------- rows ----------------

    async def maybe_single(self, collection: str, **filters: Any) -> Optional[dict]:
        return await run_in_threadpool(self.rows.maybe_single, collection, filters, self._actor())

    async def select(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[dict]:
        return await run_in_threadpool(
            self.rows.select, collection, filters, order_by, descending, None, self._actor()
        )

    async def insert(self, collection: str, row: Dict[str, Any]) -> dict:
        return await run_in_threadpool(self.rows.insert, collection, row, self._actor())

    async def update(self, collection: str, values: Dict[str, Any], **filters: Any) -> List[dict]:
        return await run_in_threadpool(self.rows.update, collection, values, filters, self._actor())

    async def upsert(self, collection: str, row: Dict[str, Any], on_conflict: str = "user_id") -> dict:
        return await run_in_threadpool(self.rows.upsert, collection, row, on_conflict, self._actor())

    # ---------------- blobs ----------------

    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False,
    ) -> str:
        return await run_in_threadpool(
            self.blobs.upload, bucket, path, data, content_type, upsert, self._actor()
        )

    async def get_public_url(self, bucket: str, path: str) -> str:
        return self.blobs.get_public_url(bucket, path)

    async def download(self, bucket: str, path: str):
        return await run_in_threadpool(self.blobs.download, bucket, path)

    # ---------------- functions ----------------

    async def invoke(self, name: str, payload: dict) -> dict:
        return await run_in_threadpool(self.functions.invoke, name, payload, self._actor())
