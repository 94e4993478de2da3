"""Custom exception hierarchy for lcm-fixdata."""


class FixDataError(Exception):
    """Base exception for all lcm-fixdata errors."""


class UnexpectedRootError(FixDataError):
    """The document root is not a <languageproject> element."""

    def __init__(self, found: str):
        self.found = found
        super().__init__(
            f"Unexpected outer element (expected <languageproject>): {found}"
        )


class ConfigError(FixDataError):
    """Invalid fixer configuration (bad YAML, unknown keys or values)."""

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        super().__init__(message)


class ModelError(FixDataError):
    """The loaded lexicon model is inconsistent (missing owner, bad class)."""
