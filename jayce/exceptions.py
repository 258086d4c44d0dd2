"""
Jayce Exception Hierarchy

Clean exception hierarchy for consistent error handling across the CLI
and the deployment pipeline.
"""

from typing import Optional


class JayceError(Exception):
    """Base exception for all Jayce errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigError(JayceError):
    """Raised when configuration is invalid or missing."""

    pass


class ModuleLoadError(JayceError):
    """Raised when a package directory or its build output cannot be read."""

    pass


class ResolutionError(JayceError):
    """Raised when named addresses cannot be resolved."""

    pass


class CycleError(ResolutionError):
    """Raised when modules depend on each other in a cycle."""

    def __init__(self, members: list[str]):
        self.members = members
        message = "Dependency cycle between modules"
        context = " -> ".join(members + members[:1])
        super().__init__(message, context)


class UnknownAddressError(ResolutionError):
    """Raised when a module references an address nobody provides."""

    def __init__(self, module_name: str, address_name: str, known: list[str]):
        self.module_name = module_name
        self.address_name = address_name
        self.known = known
        message = (
            f"Module '{module_name}' references unknown address '{address_name}'"
        )
        context = (
            f"Known addresses: {', '.join(known)}"
            if known
            else "Add it to --addresses-name or --deployed-addresses"
        )
        super().__init__(message, context)


class SubmissionError(JayceError):
    """Base class for errors raised while talking to the network."""

    kind = "submission"


class TransientSubmissionError(SubmissionError):
    """Raised for errors that may go away on retry (rate limits, timeouts)."""

    kind = "transient"


class SequenceMismatchError(TransientSubmissionError):
    """Raised when the node rejects a transaction's sequence number."""

    kind = "sequence_mismatch"


class PermanentSubmissionError(SubmissionError):
    """Raised for errors that retrying cannot fix."""

    kind = "permanent"


class CancellationError(JayceError):
    """Raised inside workers when the run is cancelled or times out."""

    kind = "cancelled"


class ReportWriteError(JayceError):
    """Raised when the deploy report cannot be written."""

    pass
