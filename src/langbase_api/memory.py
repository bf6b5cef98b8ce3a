# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from .filters import FilterSet

MAX_TOP_K = 100


class MemoryRecord(BaseModel):
    """A chunk of text stored in a memory together with its metadata.

    :param text: The chunk text
    :param meta: Metadata the chunk was uploaded with; filters are evaluated against it
    """

    text: str = ""
    meta: dict[str, Any] = Field(default_factory=dict)


class MemoryRetrieveResponse(MemoryRecord):
    """A single ranked retrieval result.

    :param similarity: Similarity between the query and the chunk, higher is closer
    """

    similarity: float


class MemoryRetrieveRequest(BaseModel):
    """A semantic search over one or more memories.

    :param query: The query text to search for
    :param memory: One filter set per memory to search
    :param top_k: Maximum number of records to return
    """

    query: str = Field(min_length=1)
    memory: list[FilterSet] = Field(min_length=1)
    top_k: int = Field(default=5, ge=1, le=MAX_TOP_K)


@runtime_checkable
class RetrievalTransport(Protocol):
    """Sends a serialized retrieval request and returns the raw ranked records.

    The payload is the wire body: {"query": ..., "memory": [{"name": ..., "filters": [...]}], "topK": ...}.
    Implementations raise an APIError subclass when the call fails and never retry.
    """

    async def retrieve(self, payload: dict[str, Any]) -> list[dict[str, Any]]: ...


@runtime_checkable
class MetadataRecordSupplier(Protocol):
    """Supplies the stored records of a memory for local filter evaluation."""

    def records_for(self, memory_name: str) -> Iterable[MemoryRecord]: ...
