"""typesgraph - dependency graph and affected-set tool for typings packages.

    Returns:
        int: Exit code
"""
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from args import parse_args
from cli_config import apply_cli_overrides, apply_config, load_config
from common.fs import DiskFS
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from analysis.affected import Affected, get_affected_packages
from analysis.deprecations import packages_to_deprecate
from definitions.data_file import read_all_packages, write_types_data
from definitions.errors import DefinitionsError
from definitions.packages import AllPackages, TypingsVersion, definitions_url
from definitions.parse import parse_definitions, types_data_from_results
from versioning.parser import parse_change_token

logger = logging.getLogger(__name__)


def load_pkgs_file(file_name: str) -> List[str]:
    """Loads non-empty lines from a file.

    Args:
        file_name (str): File path containing one package per line.

    Returns:
        list: List of lines
    """
    try:
        with open(file_name, encoding='utf-8') as file:
            return [line.strip() for line in file if line.strip() and not line.strip().startswith("#")]
    except FileNotFoundError as e:
        logging.error("File not found: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except IOError as e:
        logging.error("IO error: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def _setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments."""
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def package_to_json(pkg: TypingsVersion) -> Dict[str, Any]:
    """JSON form of one affected package version."""
    return {
        "name": pkg.name,
        "version": str(pkg.version),
        "npmName": pkg.full_npm_name,
        "subdirectoryPath": pkg.subdirectory_path,
        "sourceUrl": definitions_url(pkg),
    }


def affected_to_json(affected: Affected) -> Dict[str, Any]:
    return {
        "changedPackages": [package_to_json(p) for p in affected.changed_packages],
        "dependentPackages": [package_to_json(p) for p in affected.dependent_packages],
    }


def export_json(data: Any, path: Optional[str]) -> None:
    """Writes ``data`` as JSON to ``path``, or to stdout when no path is given."""
    if not path:
        json.dump(data, sys.stdout, ensure_ascii=False, indent=4)
        sys.stdout.write("\n")
        return
    try:
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(data, file, ensure_ascii=False, indent=4)
        logging.info("JSON file has been successfully exported at: %s", path)
    except OSError as e:
        logging.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def _load_registry(args: Any) -> AllPackages:
    data_path = args.TYPES_DATA or Constants.TYPES_DATA_FILE
    try:
        return read_all_packages(data_path, args.NOT_NEEDED)
    except (OSError, ValueError, DefinitionsError) as e:
        logging.error("Couldn't load the package registry from %s: %s", data_path, e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def run_parse(args: Any) -> int:
    """Parse a definitions tree and write the types data file."""
    results = parse_definitions(
        DiskFS(args.DEFINITIONS_ROOT),
        workers=Constants.PARSE_WORKERS,
        names=args.PACKAGES or None,
    )
    types_data = types_data_from_results(results)
    output = args.OUTPUT or Constants.TYPES_DATA_FILE
    try:
        write_types_data(output, types_data)
    except OSError as e:
        logging.error("Types data couldn't be written to disk: %s", e)
        return ExitCodes.FILE_ERROR.value
    failed = [result for result in results.values() if not result.ok]
    for result in failed:
        logging.warning("%s: %s", result.name, result.error)
    if failed and args.ERROR_ON_WARNINGS:
        logging.error("Some packages failed to parse, exiting with non-zero status code.")
        return ExitCodes.EXIT_WARNINGS.value
    return ExitCodes.SUCCESS.value


def run_affected(args: Any) -> int:
    """Compute and export the affected set for the requested changes."""
    tokens = list(args.CHANGED)
    if args.LIST_FROM_FILE:
        tokens.extend(load_pkgs_file(args.LIST_FROM_FILE))
    try:
        changes = [parse_change_token(token) for token in tokens]
    except ValueError as e:
        logging.error("Invalid change: %s", e)
        return ExitCodes.USAGE_ERROR.value
    if not changes:
        logging.warning("No changed packages given.")

    all_packages = _load_registry(args)
    affected = get_affected_packages(all_packages, changes)
    logging.info(
        "%d changed packages, %d dependent packages.",
        len(affected.changed_packages),
        len(affected.dependent_packages),
    )
    export_json(affected_to_json(affected), args.OUTPUT)
    return ExitCodes.SUCCESS.value


def run_deprecations(args: Any) -> int:
    """List published packages that are gone from the registry."""
    all_packages = _load_registry(args)
    names = packages_to_deprecate(all_packages, load_pkgs_file(args.LIST_FROM_FILE))
    export_json(names, args.OUTPUT)
    return ExitCodes.SUCCESS.value


_ACTIONS = {
    "parse": run_parse,
    "affected": run_affected,
    "deprecations": run_deprecations,
}


def main(argv: Optional[List[str]] = None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    try:
        apply_config(load_config(getattr(args, "CONFIG", None)))
    except (OSError, ValueError) as e:
        logging.error("Couldn't load configuration: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    apply_cli_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.action)
        )

    sys.exit(_ACTIONS[args.action](args))


if __name__ == "__main__":
    main()
