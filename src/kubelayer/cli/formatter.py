# src/kubelayer/cli/formatter.py
from typing import Any, Dict, Iterable, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from kubelayer.core.resource import Resource


class KubeFormatter:
    """
    KubeFormatter: renders provenance tables, transformer notes and
    build summaries for the CLI.
    """

    def __init__(self, console: Console):
        self.console = console

    def show_logic_logs(self, logs: List[str]):
        """Lists what the layer transformers changed."""
        for log in logs:
            self.console.print(f"[bold cyan]Layer pass:[/bold cyan] [white]{log}[/white]")

    def print_provenance_table(self, resources: Iterable[Resource]):
        """
        One row per composed resource: where it started, where it ended
        up, which layers decorated its name and who refers to it.
        """
        table = Table(title="KubeLayer Provenance Report", show_lines=True, header_style="bold magenta")
        table.add_column("Original Id", style="dim")
        table.add_column("Current Id", style="cyan")
        table.add_column("Prefixes")
        table.add_column("Suffixes")
        table.add_column("Referred By")
        table.add_column("Behavior", justify="center")

        for res in resources:
            table.add_row(
                str(res.org_id()),
                str(res.cur_id()),
                ", ".join(p or "''" for p in res.get_name_prefixes()) or "-",
                ", ".join(s or "''" for s in res.get_name_suffixes()) or "-",
                "\n".join(str(ref) for ref in res.get_ref_by()) or "-",
                str(res.behavior()),
            )

        self.console.print(table)

    def print_summary(self, summary: Dict[str, Any]):
        kinds = ", ".join(f"{kind}={count}" for kind, count in sorted(summary["kinds"].items()))
        self.console.print(Panel(
            f"[bold white]Summary Report[/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Total Resources: {summary['total_resources']}\n"
            f"Kinds:           {kinds or '-'}\n"
            f"Renamed:         [green]{summary['renamed']}[/green]\n"
            f"Relocated:       [green]{summary['relocated']}[/green]",
            border_style="dim"
        ))
