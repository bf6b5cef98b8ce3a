# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from .local import InMemoryRecordSupplier, to_memory_record
from .retrieval import MemoryRetriever, build_retrieve_payload

__all__ = [
    "InMemoryRecordSupplier",
    "MemoryRetriever",
    "build_retrieve_payload",
    "to_memory_record",
]
