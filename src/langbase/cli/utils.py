# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import argparse
import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table


def print_subcommand_description(parser, subparsers):
    """Print descriptions of subcommands."""
    description_text = ""
    for name, subcommand in subparsers.choices.items():
        description = subcommand.description
        description_text += f"  {name:<21} {description}\n"
    parser.epilog = description_text


def load_json_argument(parser: argparse.ArgumentParser, value: str, what: str) -> Any:
    """Parse a JSON command line value; "@path" reads the JSON from a file."""
    if value.startswith("@"):
        path = Path(value[1:])
        if not path.exists():
            parser.error(f"{what} file not found: {path}")
        value = path.read_text()
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        parser.error(f"{what} is not valid JSON: {e}")


def print_table(headers: list[str], rows: list[list[str]], title: str | None = None) -> None:
    table = Table(title=title, show_header=True)
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*row)
    Console().print(table)
