#!/usr/bin/env python3
"""
KUBELAYER CLI
-------------
Command-line entry point. 'compose' reads manifest files in order,
treats the first as the base and each following file as an overlay of
the previous one, and prints the composed YAML on stdout. Reports and
errors go to stderr so the output can be piped.

Author: KubeLayer Team
Date: 2026-10-19
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from kubelayer.cli.formatter import KubeFormatter
from kubelayer.core.engine import Layer, OverlayEngine
from kubelayer.core.errors import KubeLayerError
from kubelayer.core.models import GenerationBehavior
from kubelayer.render.exporter import KubeExporter

console = Console(stderr=True)


class KubeLayerCLI:
    """
    CLI wrapper that translates user commands into engine builds.
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="kubelayer",
            description="KubeLayer - compose layered Kubernetes manifests",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self._setup_args()
        self.formatter = KubeFormatter(console)

    def _setup_args(self):
        self.parser.add_argument("-v", "--version", action="version", version="kubelayer v0.1.0")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        compose_parser = subparsers.add_parser("compose", help="Compose a base with overlays")
        compose_parser.add_argument("files", nargs="+", help="Base manifest followed by overlays")
        compose_parser.add_argument("--behavior", default="merge",
                                    choices=["create", "replace", "merge"],
                                    help="How overlay resources combine with the base (default: merge)")
        compose_parser.add_argument("--name-prefix", default="", help="Prefix for every composed name")
        compose_parser.add_argument("--name-suffix", default="", help="Suffix for every composed name")
        compose_parser.add_argument("--namespace", default="", help="Namespace for every namespaced resource")
        compose_parser.add_argument("--report", action="store_true", help="Print a provenance table")
        compose_parser.add_argument("--verbose", action="store_true", help="Debug logging")

    def _load_layers(self, args: argparse.Namespace) -> List[Layer]:
        layers = []
        for index, file_name in enumerate(args.files):
            path = Path(file_name)
            if not path.is_file():
                raise KubeLayerError(f"Path '{file_name}' not found.", context={"path": file_name})
            layers.append(Layer(
                name=path.name,
                documents=[path.read_text(encoding="utf-8-sig")],
                behavior=(GenerationBehavior.UNSPECIFIED if index == 0
                          else GenerationBehavior.parse(args.behavior)),
            ))

        # Flag-driven decorations belong to the outermost layer
        layers[-1] = dataclasses.replace(
            layers[-1],
            name_prefix=args.name_prefix,
            name_suffix=args.name_suffix,
            namespace=args.namespace,
        )
        return layers

    def _run_compose(self, args: argparse.Namespace) -> int:
        engine = OverlayEngine()
        try:
            composed = engine.compose(self._load_layers(args))
            output = KubeExporter().export(composed)
        except KubeLayerError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            return 1

        sys.stdout.write(output)

        if args.report:
            self.formatter.show_logic_logs(engine.logic_logs)
            self.formatter.print_provenance_table(composed)
            self.formatter.print_summary(engine.generate_summary(composed))
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point."""
        args = self.parser.parse_args(argv)
        if args.command != "compose":
            self.parser.print_help()
            return 0

        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )
        return self._run_compose(args)


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(KubeLayerCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
