"""Argument parsing functionality for typesgraph."""

import argparse
from typing import List, Optional

from constants import Constants


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file (JSON); defaults to stdout",
                        action="store",
                        type=str)


def _add_registry_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--data",
                        dest="TYPES_DATA",
                        help=f"Types data file (default: {Constants.TYPES_DATA_FILE})",
                        action="store",
                        type=str)
    parser.add_argument("--not-needed",
                        dest="NOT_NEEDED",
                        help=f"Not-needed packages file, e.g. {Constants.NOT_NEEDED_FILE}",
                        action="store",
                        type=str)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="typesgraph",
        description=(
            "typesgraph - dependency graph and affected-set tool for typings packages"
        ),
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="action", required=True)

    parse_cmd = subparsers.add_parser(
        "parse", help="Parse a definitions tree into a types data file"
    )
    parse_cmd.add_argument("-d", "--directory",
                           dest="DEFINITIONS_ROOT",
                           help="Root of the definitions tree (contains types/)",
                           action="store",
                           type=str,
                           required=True)
    parse_cmd.add_argument("-p", "--package",
                           dest="PACKAGES",
                           help="Only parse this package (can be used multiple times)",
                           action="append",
                           type=str,
                           default=[])
    parse_cmd.add_argument("-w", "--workers",
                           dest="WORKERS",
                           help="Number of packages parsed in parallel",
                           action="store",
                           type=int)
    parse_cmd.add_argument("--error-on-warnings",
                           dest="ERROR_ON_WARNINGS",
                           help="Exit with a non-zero status code if any package failed to parse.",
                           action="store_true")
    _add_common_options(parse_cmd)

    affected_cmd = subparsers.add_parser(
        "affected", help="Compute the packages affected by a set of changes"
    )
    affected_cmd.add_argument("-c", "--changed",
                              dest="CHANGED",
                              help="Changed package, e.g. jquery, jquery@2 or @ember/object@3.1 "
                                   "(can be used multiple times)",
                              action="append",
                              type=str,
                              default=[])
    affected_cmd.add_argument("-l", "--load_list",
                              dest="LIST_FROM_FILE",
                              help="Load changed packages from a file, one per line",
                              action="store",
                              type=str)
    _add_registry_options(affected_cmd)
    _add_common_options(affected_cmd)

    deprecations_cmd = subparsers.add_parser(
        "deprecations", help="List published packages that should be deprecated"
    )
    deprecations_cmd.add_argument("-l", "--load_list",
                                  dest="LIST_FROM_FILE",
                                  help="File listing published @types package names, one per line",
                                  action="store",
                                  type=str,
                                  required=True)
    _add_registry_options(deprecations_cmd)
    _add_common_options(deprecations_cmd)

    return parser.parse_args(argv)
