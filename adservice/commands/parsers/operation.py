"""
Parser for the operation command.

This module defines the command-line interface for the 'operation' command,
which lists, describes, validates and invokes directory operations on one
object as the bound user.
"""

import argparse
from typing import Callable, Tuple

from . import target

NAME = "operation"


def entry(options: argparse.Namespace) -> None:
    """
    Entry point for the operation command.

    Args:
        options: Parsed command-line arguments
    """
    from adservice.commands import operation

    operation.entry(options)


def add_subparser(subparsers: argparse._SubParsersAction) -> Tuple[str, Callable]:  # type: ignore
    """
    Add the operation subparser to the main parser.

    Args:
        subparsers: Parent parser to attach the subparser to

    Returns:
        Tuple of (command_name, entry_function) for command registration
    """
    subparser = subparsers.add_parser(
        NAME,
        help="List, check and invoke operations on an object",
        description=(
            "Work with the operations the bound user may perform on a directory "
            "object, such as creating children, renaming, moving, editing details "
            "and changing passwords."
        ),
    )

    subparser.add_argument(
        "operation_action",
        choices=["list", "show", "validate", "invoke"],
        help=(
            "Action to perform: "
            "list (available operations), "
            "show (capability of one operation), "
            "validate (check an input without writing), "
            "invoke (perform the operation)"
        ),
    )

    target_group = subparser.add_argument_group("target options")
    target_group.add_argument(
        "-object",
        action="store",
        metavar="distinguished name",
        dest="object_dn",
        help="Object to operate on. If omitted, the domain root will be used",
    )
    target_group.add_argument(
        "-name",
        action="store",
        metavar="operation",
        help="Operation name, such as create-user or rename",
    )
    target_group.add_argument(
        "-payload",
        action="store",
        metavar="json",
        help=(
            "Operation input as JSON text. A plain string is accepted for "
            "operations taking a string"
        ),
    )

    output_group = subparser.add_argument_group("output options")
    output_group.add_argument(
        "-json",
        action="store_true",
        help="Output result as JSON",
    )

    target.add_argument_group(subparser)

    return NAME, entry
