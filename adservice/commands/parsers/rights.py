"""
Parser for the effective rights command.

This module defines the command-line interface for the 'rights' command,
which resolves the rights the bound user holds on one directory object.
"""

import argparse
from typing import Callable, Tuple

from . import target

NAME = "rights"


def entry(options: argparse.Namespace) -> None:
    from adservice.commands import rights

    rights.entry(options)


def add_subparser(subparsers: argparse._SubParsersAction) -> Tuple[str, Callable]:  # type: ignore
    """
    Add the effective rights subparser to the main parser.

    Args:
        subparsers: Parent parser to attach the subparser to

    Returns:
        Tuple of (command_name, entry_function) for command registration
    """
    subparser = subparsers.add_parser(
        NAME,
        help="Show effective rights on an object",
        description=(
            "Resolve the access control list of a directory object against the "
            "bound user's security identifiers and print the rights granted on "
            "every attribute, child class and extended right."
        ),
    )

    target_group = subparser.add_argument_group("target options")
    target_group.add_argument(
        "-object",
        action="store",
        metavar="distinguished name",
        dest="object_dn",
        help="Object to inspect. If omitted, the domain root will be used",
    )

    output_group = subparser.add_argument_group("output options")
    output_group.add_argument(
        "-json",
        action="store_true",
        help="Output result as JSON",
    )

    target.add_argument_group(subparser)

    return NAME, entry
