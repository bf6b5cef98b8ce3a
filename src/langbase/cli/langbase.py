# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import argparse

from .filters import FiltersParser
from .memory import MemoryParser
from .utils import print_subcommand_description


class LangbaseCLIParser:
    """Defines CLI parser for Langbase CLI"""

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="langbase",
            description="Work with Langbase memories and their metadata filters",
            add_help=True,
            formatter_class=argparse.RawTextHelpFormatter,
        )

        # Default command is to print help
        self.parser.set_defaults(func=lambda args: self.parser.print_help())

        subparsers = self.parser.add_subparsers(title="subcommands")

        # Add sub-commands
        FiltersParser.create(subparsers)
        MemoryParser.create(subparsers)

        print_subcommand_description(self.parser, subparsers)

    def parse_args(self, argv: list[str] | None = None) -> argparse.Namespace:
        return self.parser.parse_args(argv)

    def run(self, args: argparse.Namespace) -> None:
        args.func(args)


def main(argv: list[str] | None = None):
    parser = LangbaseCLIParser()
    args = parser.parse_args(argv)
    parser.run(args)


if __name__ == "__main__":
    main()
