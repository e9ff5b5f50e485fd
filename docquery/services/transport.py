from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterable, AsyncIterator, Protocol, Sequence

import grpc
from google.api_core import exceptions as core_exceptions
from google.api_core.client_options import ClientOptions
from google.auth.credentials import AnonymousCredentials
from google.cloud.firestore_v1.services.firestore import FirestoreAsyncClient
from google.cloud.firestore_v1.services.firestore.transports.grpc_asyncio import FirestoreGrpcAsyncIOTransport
from google.cloud.firestore_v1.types import (
    CreateDocumentRequest,
    DeleteDocumentRequest,
    Document,
    GetDocumentRequest,
    RunQueryRequest,
    RunQueryResponse,
    UpdateDocumentRequest,
)

from docquery.core.config import settings
from docquery.services.errors import (
    DocumentNotFoundError,
    RequestRejectedError,
    TransportError,
)

_LOG = logging.getLogger("docquery.transport")

AUTHORIZATION_METADATA_KEY = "authorization"

_REJECTED = (
    core_exceptions.InvalidArgument,
    core_exceptions.FailedPrecondition,
    core_exceptions.AlreadyExists,
    core_exceptions.PermissionDenied,
    core_exceptions.Unauthenticated,
    core_exceptions.OutOfRange,
    core_exceptions.ResourceExhausted,
)


class FirestoreRpc(Protocol):
    async def get_document(self, request: GetDocumentRequest, **kwargs: Any) -> Document:
        ...

    async def run_query(self, request: RunQueryRequest, **kwargs: Any) -> AsyncIterable[RunQueryResponse]:
        ...

    async def create_document(self, request: CreateDocumentRequest, **kwargs: Any) -> Document:
        ...

    async def update_document(self, request: UpdateDocumentRequest, **kwargs: Any) -> Document:
        ...

    async def delete_document(self, request: DeleteDocumentRequest, **kwargs: Any) -> None:
        ...


def build_firestore_client() -> FirestoreAsyncClient:
    if settings.emulator_enabled:
        channel = grpc.aio.insecure_channel(settings.FIRESTORE_EMULATOR_HOST.strip())
        return FirestoreAsyncClient(transport=FirestoreGrpcAsyncIOTransport(channel=channel))
    # Authorization travels as per-call metadata, so the channel itself is anonymous.
    return FirestoreAsyncClient(
        credentials=AnonymousCredentials(),
        client_options=ClientOptions(api_endpoint=settings.FIRESTORE_API_ENDPOINT),
    )


def call_metadata(token: str | None) -> Sequence[tuple[str, str]]:
    if not token:
        return ()
    return ((AUTHORIZATION_METADATA_KEY, token),)


@contextmanager
def _translate_errors(operation: str, resource: str):
    try:
        yield
    except core_exceptions.NotFound as exc:
        raise DocumentNotFoundError(f"{operation}: document not found: {resource}") from exc
    except _REJECTED as exc:
        raise RequestRejectedError(f"{operation}: request rejected: {exc.message}") from exc
    except core_exceptions.GoogleAPICallError as exc:
        raise TransportError(f"{operation}: call failed: {exc}") from exc
    except grpc.RpcError as exc:
        raise TransportError(f"{operation}: transport failure: {exc}") from exc


async def _release_stream(stream: Any) -> None:
    # gRPC streaming calls expose cancel(); plain async generators expose aclose().
    cancel = getattr(stream, "cancel", None)
    if cancel is not None:
        cancel()
        return
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()


class FirestoreTransport:
    def __init__(self, client: FirestoreRpc | None = None):
        self._client = client

    @asynccontextmanager
    async def _rpc(self) -> AsyncIterator[FirestoreRpc]:
        # A caller-supplied client stays open; a client built for this call is closed with it.
        if self._client is not None:
            yield self._client
            return
        client = build_firestore_client()
        try:
            yield client
        finally:
            await client.transport.close()

    @staticmethod
    def _call_options(token: str | None) -> dict[str, Any]:
        return {"retry": None, "timeout": None, "metadata": call_metadata(token)}

    async def get_document(self, request: GetDocumentRequest, *, token: str | None) -> Document:
        _LOG.debug("GetDocument %s", request.name)
        with _translate_errors("GetDocument", request.name):
            async with self._rpc() as rpc:
                return await rpc.get_document(request=request, **self._call_options(token))

    async def run_query(self, request: RunQueryRequest, *, token: str | None) -> list[Document]:
        _LOG.debug("RunQuery %s", request.parent)
        documents: list[Document] = []
        with _translate_errors("RunQuery", request.parent):
            async with self._rpc() as rpc:
                stream = await rpc.run_query(request=request, **self._call_options(token))
                try:
                    async for response in stream:
                        if "document" not in response:
                            break
                        documents.append(response.document)
                finally:
                    await _release_stream(stream)
        _LOG.debug("RunQuery %s returned %d documents", request.parent, len(documents))
        return documents

    async def create_document(self, request: CreateDocumentRequest, *, token: str | None) -> Document:
        resource = f"{request.parent}/{request.collection_id}/{request.document_id or '<auto>'}"
        _LOG.debug("CreateDocument %s", resource)
        with _translate_errors("CreateDocument", resource):
            async with self._rpc() as rpc:
                return await rpc.create_document(request=request, **self._call_options(token))

    async def update_document(self, request: UpdateDocumentRequest, *, token: str | None) -> Document:
        _LOG.debug("UpdateDocument %s", request.document.name)
        with _translate_errors("UpdateDocument", request.document.name):
            async with self._rpc() as rpc:
                return await rpc.update_document(request=request, **self._call_options(token))

    async def delete_document(self, request: DeleteDocumentRequest, *, token: str | None) -> None:
        _LOG.debug("DeleteDocument %s", request.name)
        with _translate_errors("DeleteDocument", request.name):
            async with self._rpc() as rpc:
                await rpc.delete_document(request=request, **self._call_options(token))
