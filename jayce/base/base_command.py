"""
Base Command Class
"""

from abc import ABC, abstractmethod
from typing import Optional
from rich.console import Console
from jayce.exceptions import JayceError
from jayce.ui_components import show_header
from jayce.logger import DeployLogger


class BaseCommand(ABC):
    """
    Base for jayce commands.

    Subclasses implement execute() and return an exit code; run() maps
    JayceError to 1 and Ctrl-C to 130.
    """

    def __init__(self, verbose: bool = False, console: Optional[Console] = None):
        self.verbose = verbose
        self.console = console or Console()
        self.logger: Optional[DeployLogger] = None

    def init_logger(self, network: str, command_name: str) -> DeployLogger:
        """
        Initialize command logger.

        Args:
            network: Network name (groups log files)
            command_name: Command name

        Returns:
            DeployLogger instance
        """
        self.logger = DeployLogger(
            network, command_name, verbose=self.verbose, output=self.console
        )
        return self.logger

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in verbose mode)."""
        if not self.verbose:
            show_header(
                title=title,
                subtitle=subtitle,
                details=details,
                console=self.console,
            )

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓ {message}[/green]")

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]✗ {message}[/red]")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def confirm(self, question: str, default: bool = False) -> bool:
        """
        Ask for user confirmation.

        Args:
            question: Question to ask
            default: Default answer

        Returns:
            True if confirmed
        """
        default_str = "y" if default else "n"
        self.console.print(
            f"{question} [bold bright_white]\\[y/n][/bold bright_white] [dim]({default_str})[/dim]: ",
            end="",
        )
        answer = input().strip().lower()

        if not answer:
            return default

        return answer in ["y", "yes"]

    def _logs_hint(self) -> None:
        if self.logger:
            self.console.print(f"[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    @abstractmethod
    def execute(self, **kwargs) -> int:
        """
        Execute command logic.

        Must be implemented by subclasses.

        Returns:
            Process exit code
        """
        pass

    def run(self, **kwargs) -> None:
        """
        Run command with error handling and exit with its code.

        Args:
            **kwargs: Command arguments
        """
        try:
            code = self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            self._logs_hint()
            raise SystemExit(130)
        except SystemExit:
            raise
        except JayceError as e:
            if self.logger:
                self.logger.log_error(e.message, context=e.context)
            else:
                self.console.print(f"\n[bold red]✗ Error:[/bold red] {e.message}")
                if e.context:
                    self.console.print(f"  [dim]{e.context}[/dim]")
            self.console.print()
            self._logs_hint()
            raise SystemExit(1)
        except PermissionError as e:
            self.console.print(f"\n[bold red]✗ Permission denied:[/bold red] {e}\n")
            if self.logger:
                self.logger.log_error(f"Permission error: {e}")
            self._logs_hint()
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()
        raise SystemExit(code)
