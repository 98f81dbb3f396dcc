"""Exception taxonomy for the migration pipeline"""


class MigrationError(Exception):
    """Base class for all migration errors."""


class MalformedHeaderError(MigrationError):
    """Source file has no valid frontmatter delimiter pair or an unparseable header."""


class MissingRequiredFieldError(MigrationError):
    """Mapped record is missing one or more required fields."""

    def __init__(self, fields: list[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required field(s): {', '.join(self.fields)}")


class ComponentResolutionError(MigrationError):
    """One or more components could not be resolved and the policy forbids placeholders."""

    def __init__(self, failures: list):
        self.failures = list(failures)
        names = ", ".join(f"{f.usage.name} ({f.error})" for f in self.failures)
        super().__init__(f"Unresolved component(s): {names}")


class DuplicateIdentifierError(MigrationError):
    """Two source files derive the same record identifier."""


class StoreWriteError(MigrationError):
    """A create/update/upload against the store failed. Retryable."""


class StoreConnectionError(MigrationError):
    """The store cannot be reached. Aborts the batch."""


class ConfigurationError(MigrationError):
    """Invalid configuration or missing prerequisite data. Aborts the batch."""


class PaginationExhaustionError(MigrationError):
    """A page loop did not terminate within the configured number of iterations."""
