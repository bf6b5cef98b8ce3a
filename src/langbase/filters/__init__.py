# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from .builder import build, expression_depth, validate
from .evaluator import evaluate, filter_records, matches_filter_set, values_equal
from .serializer import filter_fingerprint, serialize, serialize_filter_set, serialize_json

__all__ = [
    "build",
    "evaluate",
    "expression_depth",
    "filter_fingerprint",
    "filter_records",
    "matches_filter_set",
    "serialize",
    "serialize_filter_set",
    "serialize_json",
    "validate",
    "values_equal",
]
