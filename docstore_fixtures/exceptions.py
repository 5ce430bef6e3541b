# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Exception taxonomy for schema compilation and fixture lifecycle errors."""

from typing import Any


class FixtureError(Exception):
    """Base exception for all docstore fixture errors."""
    pass


class InvalidLiteralError(FixtureError):
    """Exception raised when a duration or size literal cannot be parsed."""
    pass


class InvalidNameError(FixtureError):
    """Exception raised when an index, type or field name is not legal."""
    pass


class InvalidOptionError(FixtureError):
    """Exception raised when a field option is not one of its allowed values."""
    pass


class DuplicateFieldNameError(FixtureError):
    """Exception raised when a name appears twice in the same field map."""
    pass


class CompilationError(FixtureError):
    """Exception raised when an index specification cannot be compiled.

    Attributes:
        cause: The first inner failure encountered, if any
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class InvalidDeclarationError(FixtureError):
    """Exception raised when a declarative index configuration is malformed.

    Attributes:
        errors: Human-readable validation errors
    """

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = list(errors or [])
        if self.errors:
            message = f"{message}: " + "; ".join(self.errors)
        super().__init__(message)


class InstanceUnavailableError(FixtureError):
    """Exception raised when a ready store instance cannot be acquired in time."""
    pass


class IndexAlreadyExistsError(FixtureError):
    """Exception raised when installing an index whose name is already taken."""

    def __init__(self, index_name: str, message: str | None = None):
        super().__init__(message or f"Index '{index_name}' already exists")
        self.index_name = index_name


class MappingMismatchError(FixtureError):
    """Exception raised when an installed mapping differs from the compiled one.

    Attributes:
        differences: One entry per mismatching path
    """

    def __init__(self, differences: list[str]):
        self.differences = list(differences)
        super().__init__(
            f"Installed mappings differ from compiled mappings ({len(self.differences)} difference(s)): "
            + "; ".join(self.differences)
        )


class TeardownError(FixtureError):
    """Non-fatal failure raised or collected while tearing a fixture down.

    Attributes:
        operation: The teardown step that failed (e.g. "delete_index")
        target: What the step operated on (index name, instance name)
        errors: Aggregated errors when this instance summarizes several failures
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        target: Any = None,
        errors: list["TeardownError"] | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.target = target
        self.errors = list(errors or [])


class FixtureStateError(FixtureError):
    """Exception raised when a lifecycle operation is invalid in the current state."""
    pass
