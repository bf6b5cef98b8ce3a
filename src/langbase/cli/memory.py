# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import argparse
import asyncio
import json
import sys

from pydantic import ValidationError
from termcolor import cprint

from langbase.cli.subcommand import Subcommand
from langbase.cli.utils import load_json_argument, print_subcommand_description, print_table
from langbase.core.config import LangbaseClientConfig
from langbase.log import get_logger, parse_environment_config, setup_logging
from langbase.memory import MemoryRetriever
from langbase_api.common.errors import LangbaseError
from langbase_api.memory import MAX_TOP_K

logger = get_logger(name=__name__, category="cli")


class MemoryParser(Subcommand):
    """Query Langbase memories"""

    def __init__(self, subparsers: argparse._SubParsersAction):
        super().__init__()
        self.parser = subparsers.add_parser(
            "memory",
            prog="langbase memory",
            description="Query Langbase memories",
            formatter_class=argparse.RawTextHelpFormatter,
        )
        self.parser.set_defaults(func=lambda args: self.parser.print_help())

        memory_subparsers = self.parser.add_subparsers(title="memory_subcommands")
        MemoryRetrieve.create(memory_subparsers)
        print_subcommand_description(self.parser, memory_subparsers)


def _non_blank(value: str) -> str:
    if not value.strip():
        raise argparse.ArgumentTypeError("must not be blank")
    return value


def _top_k(value: str) -> int:
    top_k = int(value)
    if not 1 <= top_k <= MAX_TOP_K:
        raise argparse.ArgumentTypeError(f"top-k must be between 1 and {MAX_TOP_K}, got {top_k}")
    return top_k


class MemoryRetrieve(Subcommand):
    """Retrieve similar records from a memory, optionally narrowed by a metadata filter"""

    def __init__(self, subparsers: argparse._SubParsersAction):
        super().__init__()
        self.parser = subparsers.add_parser(
            "retrieve",
            prog="langbase memory retrieve",
            description="Retrieve similar records from a memory, optionally narrowed by a metadata filter",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        )
        self._add_arguments()
        self.parser.set_defaults(func=self._run_memory_retrieve_cmd)

    def _add_arguments(self):
        self.parser.add_argument("--memory", type=_non_blank, required=True, help="Name of the memory to search")
        self.parser.add_argument("--query", type=_non_blank, required=True, help="The query text")
        self.parser.add_argument(
            "--filter",
            type=str,
            default=None,
            help="Metadata filter as JSON, or @path to a JSON file",
        )
        self.parser.add_argument(
            "--top-k",
            type=_top_k,
            default=None,
            help="Number of records to retrieve. Defaults to the configured value.",
        )
        self.parser.add_argument(
            "--config",
            type=str,
            default=None,
            help="Path to a YAML config file. Without it the LANGBASE_* environment variables are used.",
        )
        self.parser.add_argument(
            "-o",
            "--output",
            choices=["table", "json"],
            default="table",
            help="Output format (table, json)",
        )

    def _run_memory_retrieve_cmd(self, args: argparse.Namespace) -> None:
        filters = None if args.filter is None else load_json_argument(self.parser, args.filter, "Filter")

        try:
            config = (
                LangbaseClientConfig.from_yaml(args.config) if args.config else LangbaseClientConfig.from_env()
            )
            if config.logging and config.logging.category_levels:
                levels = ";".join(f"{k}={v}" for k, v in config.logging.category_levels.items())
                setup_logging(parse_environment_config(levels))

            retriever = MemoryRetriever.from_config(config)
            results = asyncio.run(
                retriever.retrieve(args.query, [{"name": args.memory, "filters": filters}], top_k=args.top_k)
            )
        except (LangbaseError, ValidationError) as e:
            cprint(str(e), color="red", file=sys.stderr)
            sys.exit(1)

        if args.output == "json":
            print(json.dumps([result.model_dump() for result in results]))
            return

        print_table(
            ["#", "Similarity", "Text", "Meta"],
            [
                [str(i), f"{result.similarity:.4f}", _truncate(result.text), json.dumps(result.meta)]
                for i, result in enumerate(results, start=1)
            ],
            title=f"{len(results)} records from '{args.memory}'",
        )


def _truncate(text: str, limit: int = 80) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 3] + "..."
