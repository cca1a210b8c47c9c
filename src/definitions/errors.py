"""Errors raised while reading and analyzing typings packages."""


class DefinitionsError(Exception):
    """Base class for per-package definition errors."""

    def __init__(self, package_name: str, message: str):
        super().__init__(message)
        self.package_name = package_name


class PackageFileNotFoundError(DefinitionsError):
    """An entry file listed for a package could not be read."""

    def __init__(self, package_name: str, file_name: str):
        super().__init__(
            package_name,
            f"{package_name}: file '{file_name}' listed as an entry point does not exist.",
        )
        self.file_name = file_name


class PinnedDependencyError(DefinitionsError):
    """A package references a specific historical version of another package."""

    def __init__(self, package_name: str, referenced: str, root: str):
        super().__init__(
            package_name,
            f"{package_name}: '{referenced}': do not directly import specific versions "
            f"of another types package. You should work with the latest version of {root} instead.",
        )
        self.referenced = referenced
        self.root = root


class InvalidReferenceError(DefinitionsError):
    """A reference escapes the package directory."""

    def __init__(self, package_name: str, file_name: str, reference: str):
        super().__init__(
            package_name,
            f"{file_name}: Definitions must use global references to other packages, "
            f"not parent (\"../xxx\") references. (Based on reference '{reference}')",
        )
        self.file_name = file_name
        self.reference = reference


class InvalidSourceError(DefinitionsError):
    """A source file cannot be scanned (byte-order mark, bad header, bad tsconfig)."""

    def __init__(self, package_name: str, file_name: str, reason: str):
        super().__init__(package_name, f"{package_name}/{file_name}: {reason}")
        self.file_name = file_name


class RegistryConflictError(DefinitionsError):
    """A name is both a typings package and a not-needed package."""

    def __init__(self, package_name: str):
        super().__init__(
            package_name,
            f"{package_name} is listed as not needed but still has typings.",
        )


class UnknownPackageError(DefinitionsError):
    """A strict lookup named a package absent from the registry."""

    def __init__(self, package_name: str, detail: str = ""):
        message = f"No typings available for '{package_name}'"
        super().__init__(package_name, f"{message}: {detail}" if detail else message)
