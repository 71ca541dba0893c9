"""Content store access: the reads and the write the engine depends on."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import grpc
from google.protobuf import json_format, struct_pb2

from blog_suggestions.models import Post, ReadingObservation

logger = logging.getLogger(__name__)

_SERVICE = "/content.ContentStore"


class ContentStore(ABC):
    """Abstract interface to the external document store.

    The suggestion engine consumes exactly two read shapes and one write
    shape.  Implementations raise on failure; swallowing errors is the
    caller's job.
    """

    @abstractmethod
    async def list_observations(self, user_id: str, limit: int) -> list[ReadingObservation]:
        """Return the *limit* most recent observations for *user_id*.

        Args:
            user_id: Owner of the observations.
            limit: Maximum number of observations to return.

        Returns:
            Observations ordered by timestamp, newest first.
        """

    @abstractmethod
    async def list_published_posts(self) -> list[Post]:
        """Return every published blog post, newest ``last_modified`` first."""

    @abstractmethod
    async def append_observation(self, observation: ReadingObservation) -> None:
        """Insert one observation.  Never updates or deletes."""

    async def close(self) -> None:
        """Release any connection held by the store."""


class GrpcContentStore(ContentStore):
    """Asyncio gRPC client for the content store service.

    Messages are ``google.protobuf.Struct`` documents, so the client
    needs no generated stubs.  The document shapes match the ``content``
    and ``userInterests`` collections.

    Args:
        channel: A ``grpc.aio.Channel`` connected to the store.
        timeout_seconds: Deadline applied to every call.
    """

    def __init__(self, channel: grpc.aio.Channel, timeout_seconds: float = 10.0) -> None:
        self._channel = channel
        self._timeout = timeout_seconds
        self._list_interests = self._unary(channel, "ListUserInterests")
        self._list_posts = self._unary(channel, "ListPublishedPosts")
        self._add_interest = self._unary(channel, "AddUserInterest")

    @classmethod
    def connect(cls, address: str, timeout_seconds: float = 10.0) -> GrpcContentStore:
        """Open an insecure channel to *address* and wrap it."""
        return cls(grpc.aio.insecure_channel(address), timeout_seconds=timeout_seconds)

    # ------------------------------------------------------------------
    # ContentStore interface
    # ------------------------------------------------------------------

    async def list_observations(self, user_id: str, limit: int) -> list[ReadingObservation]:
        response = await self._call(
            self._list_interests,
            {"userId": user_id, "limit": limit, "orderBy": "timestamp", "direction": "desc"},
        )
        observations = []
        for doc in response.get("documents", []):
            try:
                observations.append(ReadingObservation.from_document(doc))
            except (KeyError, ValueError):
                logger.warning("Skipping malformed observation document: %r", doc)
        return observations

    async def list_published_posts(self) -> list[Post]:
        response = await self._call(
            self._list_posts,
            {
                "type": "blog",
                "status": "published",
                "orderBy": "lastModified",
                "direction": "desc",
            },
        )
        posts = []
        for doc in response.get("documents", []):
            post_id = doc.get("id")
            if not post_id:
                logger.warning("Skipping post document without id: %r", doc.get("title"))
                continue
            posts.append(Post.from_document(str(post_id), doc))
        return posts

    async def append_observation(self, observation: ReadingObservation) -> None:
        await self._call(self._add_interest, observation.to_document())

    async def close(self) -> None:
        await self._channel.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _unary(channel: grpc.aio.Channel, method: str) -> Any:
        return channel.unary_unary(
            f"{_SERVICE}/{method}",
            request_serializer=struct_pb2.Struct.SerializeToString,
            response_deserializer=struct_pb2.Struct.FromString,
        )

    async def _call(self, method: Any, payload: dict[str, Any]) -> dict[str, Any]:
        request = struct_pb2.Struct()
        request.update(payload)
        response = await method(request, timeout=self._timeout)
        return json_format.MessageToDict(response)
