# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from langbase.core.config import FilterConfig, LangbaseClientConfig
from langbase.core.request import HttpRetrievalTransport
from langbase.filters import build, filter_fingerprint, matches_filter_set, serialize_filter_set
from langbase.log import get_logger
from langbase_api.common.errors import APIError
from langbase_api.filters import FilterSet
from langbase_api.memory import (
    MemoryRecord,
    MemoryRetrieveRequest,
    MemoryRetrieveResponse,
    MetadataRecordSupplier,
    RetrievalTransport,
)

logger = get_logger(name=__name__, category="memory")

# A memory entry as callers write it: {"name": "docs", "filters": [...]}, or a prepared FilterSet
MemoryEntry = FilterSet | Mapping[str, Any]


def build_retrieve_payload(request: MemoryRetrieveRequest) -> dict[str, Any]:
    """The wire body for POST /v1/memory/retrieve."""
    return {
        "query": request.query,
        "memory": [serialize_filter_set(filter_set) for filter_set in request.memory],
        "topK": request.top_k,
    }


class MemoryRetriever:
    """Runs filtered semantic searches over Langbase memories.

    Every filter is built and validated before anything is sent, so a
    malformed filter raises FilterValidationError and the transport is never
    called.
    """

    def __init__(
        self,
        transport: RetrievalTransport,
        filter_config: FilterConfig | None = None,
        default_top_k: int = 5,
    ) -> None:
        self.transport = transport
        self.filter_config = filter_config or FilterConfig()
        self.default_top_k = default_top_k

    @classmethod
    def from_config(cls, config: LangbaseClientConfig) -> "MemoryRetriever":
        return cls(
            HttpRetrievalTransport(config),
            filter_config=config.filters,
            default_top_k=config.default_top_k,
        )

    def build_filter_set(self, memory_name: str, filters: Any = None) -> FilterSet:
        expression = None if filters is None else build(filters, max_depth=self.filter_config.max_depth)
        return FilterSet(memory_name=memory_name, expression=expression)

    def build_request(
        self, query: str, memory: Sequence[MemoryEntry], top_k: int | None = None
    ) -> MemoryRetrieveRequest:
        filter_sets = [self._to_filter_set(entry) for entry in memory]
        return MemoryRetrieveRequest(
            query=query,
            memory=filter_sets,
            top_k=self.default_top_k if top_k is None else top_k,
        )

    def _to_filter_set(self, entry: MemoryEntry) -> FilterSet:
        if isinstance(entry, FilterSet):
            if entry.expression is None:
                return entry
            # re-check depth against this retriever's limit
            return FilterSet(
                memory_name=entry.memory_name,
                expression=build(entry.expression, max_depth=self.filter_config.max_depth),
            )
        if "name" not in entry:
            raise ValueError(f"Memory entry must have a 'name', got keys {sorted(entry)}")
        return self.build_filter_set(entry["name"], entry.get("filters"))

    async def retrieve(
        self, query: str, memory: Sequence[MemoryEntry], top_k: int | None = None
    ) -> list[MemoryRetrieveResponse]:
        """Retrieve the records most similar to `query` from the given memories.

        :param query: The query text
        :param memory: The memories to search, each with optional raw filters
        :param top_k: Maximum number of records, defaults to the configured value
        :returns: Records ranked by similarity
        """
        request = self.build_request(query, memory, top_k)
        return await self.send(request)

    async def send(self, request: MemoryRetrieveRequest) -> list[MemoryRetrieveResponse]:
        payload = build_retrieve_payload(request)
        logger.info(
            f"Retrieving top {request.top_k} from {[fs.memory_name for fs in request.memory]} "
            f"(filters: {self._describe_filters(request)})"
        )

        raw_results = await self.transport.retrieve(payload)
        try:
            results = [MemoryRetrieveResponse.model_validate(result) for result in raw_results]
        except ValidationError as e:
            raise APIError(None, raw_results, "Unexpected record shape from memory retrieval", None) from e

        if self.filter_config.client_side_filtering:
            kept = [r for r in results if any(matches_filter_set(fs, r.meta) for fs in request.memory)]
            if len(kept) != len(results):
                logger.debug(f"Client-side filtering dropped {len(results) - len(kept)} of {len(results)} records")
            results = kept

        return results

    def preview(
        self, memory: Sequence[MemoryEntry], supplier: MetadataRecordSupplier
    ) -> dict[str, list[MemoryRecord]]:
        """Dry run: the records each memory's filter selects from a local supplier, without any network call."""
        selected: dict[str, list[MemoryRecord]] = {}
        for entry in memory:
            filter_set = self._to_filter_set(entry)
            records = supplier.records_for(filter_set.memory_name)
            selected[filter_set.memory_name] = [r for r in records if matches_filter_set(filter_set, r.meta)]
        return selected

    @staticmethod
    def _describe_filters(request: MemoryRetrieveRequest) -> str:
        parts = []
        for filter_set in request.memory:
            if filter_set.expression is None:
                parts.append(f"{filter_set.memory_name}=none")
            else:
                parts.append(f"{filter_set.memory_name}={filter_fingerprint(filter_set.expression)[:12]}")
        return ", ".join(parts)
