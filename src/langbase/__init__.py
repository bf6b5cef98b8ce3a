# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Langbase memory retrieval with metadata filters.

    >>> from langbase import MemoryRetriever, LangbaseClientConfig
    >>> retriever = MemoryRetriever.from_config(LangbaseClientConfig.from_env())
    >>> await retriever.retrieve(
    ...     "What are primitives in Langbase?",
    ...     memory=[{"name": "langbase-docs", "filters": ["company", "Eq", "Langbase"]}],
    ...     top_k=5,
    ... )
"""

from .core.config import FilterConfig, LangbaseClientConfig
from .filters import build, evaluate, serialize
from .memory import InMemoryRecordSupplier, MemoryRetriever

__all__ = [
    "FilterConfig",
    "InMemoryRecordSupplier",
    "LangbaseClientConfig",
    "MemoryRetriever",
    "build",
    "evaluate",
    "serialize",
]
