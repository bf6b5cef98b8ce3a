# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import argparse
import json
import sys
from typing import Any

from termcolor import cprint

from langbase.cli.subcommand import Subcommand
from langbase.cli.utils import load_json_argument, print_subcommand_description, print_table
from langbase.filters import build, evaluate, expression_depth, filter_fingerprint, serialize, serialize_json
from langbase.log import get_logger
from langbase.memory import InMemoryRecordSupplier
from langbase_api.common.errors import FilterValidationError
from langbase_api.filters import DEFAULT_MAX_DEPTH, FilterExpression

logger = get_logger(name=__name__, category="cli")


class FiltersParser(Subcommand):
    """Validate and dry-run memory retrieval filters"""

    def __init__(self, subparsers: argparse._SubParsersAction):
        super().__init__()
        self.parser = subparsers.add_parser(
            "filters",
            prog="langbase filters",
            description="Validate and dry-run memory retrieval filters",
            formatter_class=argparse.RawTextHelpFormatter,
        )
        self.parser.set_defaults(func=lambda args: self.parser.print_help())

        filters_subparsers = self.parser.add_subparsers(title="filters_subcommands")
        FiltersCheck.create(filters_subparsers)
        FiltersEval.create(filters_subparsers)
        print_subcommand_description(self.parser, filters_subparsers)


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "filter",
        type=str,
        help='Filter as JSON, e.g. \'["company", "Eq", "Langbase"]\', or @path to a JSON file',
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help="Maximum nesting depth to accept",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=["table", "json"],
        default="table",
        help="Output format (table, json)",
    )


def _build_or_exit(parser: argparse.ArgumentParser, args: argparse.Namespace) -> FilterExpression:
    raw = load_json_argument(parser, args.filter, "Filter")
    try:
        return build(raw, max_depth=args.max_depth)
    except FilterValidationError as e:
        cprint(str(e), color="red", file=sys.stderr)
        sys.exit(1)


class FiltersCheck(Subcommand):
    """Validate a filter and print its canonical wire form"""

    def __init__(self, subparsers: argparse._SubParsersAction):
        super().__init__()
        self.parser = subparsers.add_parser(
            "check",
            prog="langbase filters check",
            description="Validate a filter and print its canonical wire form",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        )
        self._add_arguments()
        self.parser.set_defaults(func=self._run_filters_check_cmd)

    def _add_arguments(self):
        _add_filter_arguments(self.parser)

    def _run_filters_check_cmd(self, args: argparse.Namespace) -> None:
        expression = _build_or_exit(self.parser, args)

        summary = {
            "filters": serialize(expression),
            "fingerprint": filter_fingerprint(expression),
            "depth": expression_depth(expression),
        }
        if args.output == "json":
            print(json.dumps(summary))
            return

        print_table(
            ["Property", "Value"],
            [
                ["Wire form", serialize_json(expression)],
                ["Fingerprint", summary["fingerprint"]],
                ["Depth", str(summary["depth"])],
            ],
            title="Filter is valid",
        )


class FiltersEval(Subcommand):
    """Evaluate a filter against metadata records locally"""

    def __init__(self, subparsers: argparse._SubParsersAction):
        super().__init__()
        self.parser = subparsers.add_parser(
            "eval",
            prog="langbase filters eval",
            description="Evaluate a filter against metadata records locally",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        )
        self._add_arguments()
        self.parser.set_defaults(func=self._run_filters_eval_cmd)

    def _add_arguments(self):
        _add_filter_arguments(self.parser)
        self.parser.add_argument(
            "--record",
            type=str,
            action="append",
            default=None,
            help='Metadata record as a JSON object, e.g. \'{"company": "Langbase"}\'. May be repeated.',
        )
        self.parser.add_argument(
            "--records-file",
            type=str,
            default=None,
            help="JSONL file with one record per line, either bare metadata or {\"text\": ..., \"meta\": {...}}",
        )

    def _load_records(self, args: argparse.Namespace) -> list[dict[str, Any]]:
        if not args.record and not args.records_file:
            self.parser.error("Provide at least one --record or a --records-file")

        records: list[dict[str, Any]] = []
        for value in args.record or []:
            record = load_json_argument(self.parser, value, "Record")
            if not isinstance(record, dict):
                self.parser.error(f"Record must be a JSON object, got {type(record).__name__}")
            records.append(record)

        if args.records_file:
            try:
                supplier = InMemoryRecordSupplier.from_jsonl(args.records_file, "cli")
            except (OSError, ValueError) as e:
                self.parser.error(str(e))
            records.extend(r.meta for r in supplier.records_for("cli"))
        return records

    def _run_filters_eval_cmd(self, args: argparse.Namespace) -> None:
        expression = _build_or_exit(self.parser, args)
        records = self._load_records(args)

        results = [{"record": record, "matches": evaluate(expression, record)} for record in records]
        matched = sum(1 for result in results if result["matches"])
        logger.debug(f"Filter {filter_fingerprint(expression)[:12]} matched {matched}/{len(results)} records")

        if args.output == "json":
            print(json.dumps({"results": results, "matched": matched, "total": len(results)}))
            return

        print_table(
            ["#", "Record", "Matches"],
            [
                [str(i), json.dumps(result["record"]), "yes" if result["matches"] else "no"]
                for i, result in enumerate(results, start=1)
            ],
            title=f"{matched} of {len(results)} records match",
        )
