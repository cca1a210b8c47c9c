"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    USAGE_ERROR = 2
    EXIT_WARNINGS = 3


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    TYPES_SCOPE = "@types"
    SCOPE_SEPARATOR = "__"
    TYPES_DIRECTORY = "types"
    TSCONFIG_FILE = "tsconfig.json"
    OTHER_FILES_FILE = "OTHER_FILES.txt"
    INDEX_FILE = "index.d.ts"
    DECLARATION_EXTENSION = ".d.ts"
    SCRIPT_EXTENSIONS = [".ts", ".tsx"]
    TYPES_DATA_FILE = "types-data.json"
    NOT_NEEDED_FILE = "notNeededPackages.json"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "TYPESGRAPH_LOG_LEVEL"
    PARSE_WORKERS = 4
    DEFINITIONS_REPO_URL = "https://github.com/DefinitelyTyped/DefinitelyTyped"
