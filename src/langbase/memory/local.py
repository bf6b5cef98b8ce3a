# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from langbase.log import get_logger
from langbase_api.memory import MemoryRecord

logger = get_logger(name=__name__, category="memory")


def to_memory_record(record: MemoryRecord | Mapping[str, Any]) -> MemoryRecord:
    """Accept a MemoryRecord, a {"text": ..., "meta": {...}} mapping, or a bare metadata mapping."""
    if isinstance(record, MemoryRecord):
        return record
    if "meta" in record:
        return MemoryRecord.model_validate(record)
    return MemoryRecord(meta=dict(record))


class InMemoryRecordSupplier:
    """Holds memory records in process, keyed by memory name.

    Stands in for the remote memory when previewing which records a filter
    would select.
    """

    def __init__(self, records: Mapping[str, Iterable[MemoryRecord | Mapping[str, Any]]] | None = None) -> None:
        self._records: dict[str, list[MemoryRecord]] = {}
        for memory_name, memory_records in (records or {}).items():
            for record in memory_records:
                self.add(memory_name, record)

    def add(self, memory_name: str, record: MemoryRecord | Mapping[str, Any]) -> None:
        self._records.setdefault(memory_name, []).append(to_memory_record(record))

    def records_for(self, memory_name: str) -> list[MemoryRecord]:
        return list(self._records.get(memory_name, []))

    @property
    def memory_names(self) -> list[str]:
        return sorted(self._records)

    @classmethod
    def from_jsonl(cls, path: str | Path, memory_name: str) -> "InMemoryRecordSupplier":
        """Load one record per line. Blank lines are skipped."""
        supplier = cls()
        with open(path) as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError as e:
                    raise ValueError(f"{path}:{line_number}: invalid JSON: {e}") from e
                if not isinstance(data, dict):
                    raise ValueError(f"{path}:{line_number}: expected a JSON object, got {type(data).__name__}")
                supplier.add(memory_name, data)

        logger.debug(f"Loaded {len(supplier.records_for(memory_name))} records for '{memory_name}' from {path}")
        return supplier
