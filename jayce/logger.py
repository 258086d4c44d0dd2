"""
Logging system for jayce
Provides real-time logging to files with clean console output
"""

import threading
from pathlib import Path
from datetime import datetime
from typing import Optional, TextIO
from rich.console import Console

from jayce.constants import LOG_DATE_FORMAT, LOG_DIR, LOG_TIME_FORMAT

console = Console()


class DeployLogger:
    """
    Manages logging for deployment runs
    - Writes all output to log files in real-time
    - Shows clean progress UI in console (unless verbose)
    - Captures errors with context
    - Safe to call from worker threads
    """

    def __init__(
        self,
        network: str,
        operation: str,
        verbose: bool = False,
        base_dir: Optional[Path] = None,
        output: Optional[Console] = None,
    ):
        """
        Initialize logger

        Args:
            network: Target network name (groups log files)
            operation: Operation name (e.g., 'deploy')
            verbose: If True, show all output in console
            base_dir: Directory holding the logs tree (default: current directory)
            output: Console to print to (default: module console)
        """
        self.network = network
        self.operation = operation
        self.verbose = verbose
        self.console = output or console
        self.log_file: Optional[TextIO] = None
        self.log_path: Optional[Path] = None
        self.current_step = ""
        self.has_errors = False
        self._lock = threading.RLock()

        # Structure: .jayce/logs/{network}/{date}/{time}_{operation}.log
        now = datetime.now()
        logs_dir = (base_dir or Path.cwd()) / LOG_DIR / network / now.strftime(LOG_DATE_FORMAT)
        logs_dir.mkdir(parents=True, exist_ok=True)

        self.log_path = logs_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{operation}.log"

        # Line buffered for real-time tailing
        self.log_file = open(self.log_path, "w", buffering=1, encoding="utf-8")

        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
Jayce Deployment Log
{"=" * 80}
Network: {self.network}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self._write(header)

    def _write(self, text: str):
        with self._lock:
            if self.log_file:
                self.log_file.write(text)
                self.log_file.flush()

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        timestamp = datetime.now().strftime("%H:%M:%S")
        self._write(f"[{timestamp}] [{level}] {message}\n")

        if self.verbose:
            if level == "ERROR":
                self.console.print(f"[red]{message}[/red]")
            elif level == "WARNING":
                self.console.print(f"[yellow]{message}[/yellow]")
            elif level == "DEBUG":
                self.console.print(f"[dim]{message}[/dim]")
            else:
                self.console.print(message)

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., node response)
        """
        self.has_errors = True

        # Clear markers for grepping
        error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{error}
"""
        if context:
            error_block += f"\nContext: {context}\n"
        error_block += f"{'!' * 80}\n\n"
        self._write(error_block)

        self.console.print(f"[bold red]✗ {error}[/bold red]")
        if context:
            self.console.print(f"  [color(208)]{context}[/color(208)]")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        if self.current_step and not self.verbose:
            self.console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose:
            self.console.print(f"[color(214)]▶[/color(214)] [white]{step_name}[/white]")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.verbose:
            self.console.print(f"  [dim]✓ {message}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.verbose:
            self.console.print(f"  [yellow]⚠[/yellow] [dim]{message}[/dim]")

    def close(self):
        """Close log file"""
        with self._lock:
            if self.log_file:
                footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
                self.log_file.write(footer)
                self.log_file.close()
                self.log_file = None
