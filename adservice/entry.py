# PYTHON_ARGCOMPLETE_OK
import argparse
import sys
from typing import Callable, Dict, Tuple

import argcomplete

from adservice import version
from adservice.commands.parsers import ENTRY_PARSERS
from adservice.lib import logger
from adservice.lib.errors import handle_error

DEBUG_FLAGS = ("-debug", "--debug")
VERSION_FLAGS = ("-v", "-version", "--version")


def build_parser() -> Tuple[argparse.ArgumentParser, Dict[str, Callable]]:
    """
    Create the top-level parser.

    Returns:
        The parser and the entry function of each sub-command
    """
    parser = argparse.ArgumentParser(
        add_help=False,
        description="Delegated Active Directory object operations",
    )
    _ = parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        help="Show adservice's version number and exit",
        default=argparse.SUPPRESS,
    )
    _ = parser.add_argument(
        "-h",
        "--help",
        action="help",
        default=argparse.SUPPRESS,
        help="Show this help message and exit",
    )
    subparsers = parser.add_subparsers(help="Action", dest="action", required=True)

    actions: Dict[str, Callable] = {}
    for entry_parser in ENTRY_PARSERS:
        action, entry = entry_parser.add_subparser(subparsers)
        actions[action] = entry

    return parser, actions


def main() -> None:
    logger.init()

    print(version.BANNER, file=sys.stderr)

    # -debug is accepted anywhere on the command line, not only before the action
    if any(arg in DEBUG_FLAGS for arg in sys.argv):
        sys.argv = [arg for arg in sys.argv if arg not in DEBUG_FLAGS]
        logger.set_verbose(True)

    if any(arg.lower() in VERSION_FLAGS for arg in sys.argv):
        return

    parser, actions = build_parser()
    argcomplete.autocomplete(parser, always_complete_options=False)

    if len(sys.argv) == 1:
        parser.print_help()
        sys.exit(1)

    options = parser.parse_args()

    try:
        actions[options.action](options)
    except Exception as e:
        logger.logging.error(f"Got error: {e}")
        handle_error()
        sys.exit(1)


if __name__ == "__main__":
    main()
