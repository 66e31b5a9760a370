from contextlib import contextmanager
from datetime import datetime
import logging

from rich.console import Console
from rich.panel import Panel
from rich.align import Align
from rich.markup import escape
from rich.logging import RichHandler
from rich.progress import (
    Progress, SpinnerColumn, TextColumn, BarColumn, DownloadColumn,
    TransferSpeedColumn, TimeElapsedColumn, MofNCompleteColumn,
)

from asnscan import __version__

BANNER = r"""[bold cyan]
    ___   _____ _   __
   /   | / ___// | / /_____________ _____
  / /| | \__ \/  |/ / ___/ ___/ __ `/ __ \
 / ___ |___/ / /|  (__  ) /__/ /_/ / / / /
/_/  |_/____/_/ |_/____/\___/\__,_/_/ /_/
[/bold cyan]"""


class DisplayManager:
    def __init__(self):
        # stderr keeps stdout clean for json/csv output
        self.console = Console(stderr=True)

        # --- LOGGING BRIDGE ---
        handler = RichHandler(
            console=self.console,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setLevel(logging.WARNING)
        root = logging.getLogger("asnscan")
        root.addHandler(handler)
        root.propagate = False
        self.handler = handler

    def set_verbose(self, verbose):
        self.handler.setLevel(logging.DEBUG if verbose else logging.WARNING)

    def print_banner(self):
        meta = f"[bold white]ASNSCAN v{__version__}[/bold white]\n[dim]IP / domain to ASN and ASN to prefix mapper[/dim]"
        self.console.print(Panel(Align.center(f"{BANNER}\n{meta}"), border_style="blue"))
        self.console.print("[green][+] Scan result follows below[/green]\n")

    def log(self, message, level="INFO"):
        """Status line with timestamp and icon"""
        timestamp = datetime.now().strftime("%H:%M:%S")
        colors = {"INFO": "blue", "SUCCESS": "green", "WARNING": "yellow", "ERROR": "red", "DEBUG": "dim white"}
        icon = {"INFO": "[*]", "SUCCESS": "[+]", "WARNING": "[!]", "ERROR": "[-]", "DEBUG": "[D]"}
        c = colors.get(level, "white")
        i = icon.get(level, "[?]")
        self.console.print(f"[grey50]{timestamp}[/grey50] [bold {c}]{i}[/bold {c}] {message}", highlight=False)

    def error(self, phase, error):
        self.console.print(f"[bold red]{phase}[/bold red] {escape(str(error))}", highlight=False)

    @contextmanager
    def progress(self, description, total=None, unit="bytes"):
        """
        Yields an advance(n) callback driving a progress bar.
        total=None renders a pulsing bar with a raw counter.
        """
        if unit == "bytes":
            counter = [DownloadColumn(), TransferSpeedColumn()]
        else:
            counter = [MofNCompleteColumn()]

        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            *counter,
            TimeElapsedColumn(),
            console=self.console,
            transient=False,
        ) as progress:
            task = progress.add_task(description, total=total)
            yield lambda n: progress.advance(task, n)


# Global instance
display = DisplayManager()
