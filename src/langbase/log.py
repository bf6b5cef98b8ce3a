# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import logging
import os
import warnings

from pydantic import BaseModel, Field
from rich.console import Console
from rich.logging import RichHandler

# Default log level
DEFAULT_LOG_LEVEL = logging.INFO

# Predefined categories
CATEGORIES = [
    "core",
    "filters",
    "memory",
    "cli",
]
UNCATEGORIZED = "uncategorized"

# Initialize category levels with default level
_category_levels: dict[str, int] = dict.fromkeys(CATEGORIES, DEFAULT_LOG_LEVEL)
_configured = False

ROOT_LOGGER_NAME = "langbase"


class LoggingConfig(BaseModel):
    category_levels: dict[str, str] = Field(
        default_factory=dict,
        description="""
Dictionary of different logging configurations for different portions (ex: core, filters) of the SDK.
The key "all" sets the level for every category not listed explicitly.""",
    )


def parse_environment_config(env_config: str) -> dict[str, int]:
    """
    Parse the LANGBASE_LOGGING environment variable and return a dictionary of category log levels.

    Parameters:
        env_config (str): The value of the LANGBASE_LOGGING environment variable,
            e.g. "all=WARNING;filters=DEBUG".

    Returns:
        Dict[str, int]: A dictionary mapping categories to their log levels.
    """
    category_levels: dict[str, int] = {}
    for pair in env_config.split(";"):
        if not pair.strip():
            continue

        try:
            category, level = pair.split("=", 1)
        except ValueError:
            warnings.warn(f"Invalid logging configuration: '{pair}'. Expected format: 'category=level'.", stacklevel=2)
            continue

        category = category.strip().lower()
        level_value = logging.getLevelName(level.strip().upper())
        if not isinstance(level_value, int):
            warnings.warn(
                f"Unknown log level '{level.strip()}' for category '{category}'. "
                f"Valid levels are DEBUG, INFO, WARNING, ERROR, CRITICAL.",
                stacklevel=2,
            )
            continue

        if category != "all" and category not in CATEGORIES:
            warnings.warn(f"Unknown logging category: {category}. Valid categories: {CATEGORIES}", stacklevel=2)
            continue

        category_levels[category] = level_value
    return category_levels


def _level_for(category: str) -> int:
    return _category_levels.get(category, _category_levels.get("all", DEFAULT_LOG_LEVEL))


class CategoryFilter(logging.Filter):
    """Drops records below the level configured for their category."""

    def filter(self, record: logging.LogRecord) -> bool:
        category = getattr(record, "category", UNCATEGORIZED)
        return record.levelno >= _level_for(category)


def setup_logging(category_levels: dict[str, int] | None = None) -> None:
    """
    Configure the "langbase" logger hierarchy with a rich console handler.

    Parameters:
        category_levels (Dict[str, int] | None): Levels per category. When omitted they are
            read from the LANGBASE_LOGGING environment variable.
    """
    global _configured

    if category_levels is None:
        category_levels = parse_environment_config(os.environ.get("LANGBASE_LOGGING", ""))

    default_level = category_levels.get("all", DEFAULT_LOG_LEVEL)
    _category_levels.clear()
    _category_levels.update(dict.fromkeys(CATEGORIES, default_level))
    _category_levels.update(category_levels)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.addFilter(CategoryFilter())
    root.addHandler(handler)
    root.setLevel(min(_category_levels.values()))
    root.propagate = False
    _configured = True


def get_logger(name: str, category: str = UNCATEGORIZED) -> logging.LoggerAdapter:
    """
    Returns a logger with the specified name and category.
    If no category is provided, defaults to 'uncategorized'.

    Parameters:
        name (str): The name of the logger (e.g., module or filename).
        category (str): The category of the logger (e.g., "filters", "memory").

    Returns:
        logging.LoggerAdapter: Configured logger with category support.
    """
    if not _configured:
        setup_logging()

    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {"category": category})
