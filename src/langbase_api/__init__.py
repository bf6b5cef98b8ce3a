# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from .common.errors import (
    APIConnectionError,
    APIConnectionTimeoutError,
    APIError,
    AuthenticationError,
    BadRequestError,
    ConfigurationError,
    ConflictError,
    FilterDepthExceededError,
    FilterValidationError,
    InternalServerError,
    LangbaseError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    UnprocessableEntityError,
)
from .filters import (
    COMBINATOR_OPERATORS,
    CONDITION_OPERATORS,
    DEFAULT_MAX_DEPTH,
    LIST_OPERATORS,
    SCALAR_OPERATORS,
    Combinator,
    FilterExpression,
    FilterNode,
    FilterOperator,
    FilterSet,
    ListCondition,
    MetadataRecord,
    Scalar,
    ScalarCondition,
    Value,
)
from .memory import (
    MAX_TOP_K,
    MemoryRecord,
    MemoryRetrieveRequest,
    MemoryRetrieveResponse,
    MetadataRecordSupplier,
    RetrievalTransport,
)

__all__ = [
    "APIConnectionError",
    "APIConnectionTimeoutError",
    "APIError",
    "AuthenticationError",
    "BadRequestError",
    "COMBINATOR_OPERATORS",
    "CONDITION_OPERATORS",
    "Combinator",
    "ConfigurationError",
    "ConflictError",
    "DEFAULT_MAX_DEPTH",
    "FilterDepthExceededError",
    "FilterExpression",
    "FilterNode",
    "FilterOperator",
    "FilterSet",
    "FilterValidationError",
    "InternalServerError",
    "LIST_OPERATORS",
    "LangbaseError",
    "ListCondition",
    "MAX_TOP_K",
    "MemoryRecord",
    "MemoryRetrieveRequest",
    "MemoryRetrieveResponse",
    "MetadataRecord",
    "MetadataRecordSupplier",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitError",
    "RetrievalTransport",
    "SCALAR_OPERATORS",
    "Scalar",
    "ScalarCondition",
    "UnprocessableEntityError",
    "Value",
]
