"""
scanhub command line entry point.

Usage:
    scanhub discover
    scanhub scan "Office Scanner" --output scan.bmp --dpi 300
    scanhub advise NETWORK_SCANNER_UNREACHABLE
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table

from .acquisition import ColorMode, OutputFormat, ScanSettings, UnavailableAcquisitionService
from .advisor import Advice
from .config import settings
from .discovery import DeviceRegistry
from .service import ScannerService

logger = logging.getLogger("scanhub.main")

console = Console()


def _configure_logging(level: str, debug: bool = False) -> None:
    """Configure root logging; debug mode forces DEBUG regardless of level."""
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def render_registry(registry: DeviceRegistry) -> Table:
    table = Table(title=f"Scanners ({len(registry)})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Origin", style="cyan")
    table.add_column("Identity", style="dim")
    for index, device in enumerate(registry, start=1):
        table.add_row(
            str(index),
            device.display_name,
            device.origin.value,
            device.identity,
        )
    return table


def render_advice(advice: Advice) -> None:
    console.print(f"[bold red]{advice.code}[/]: {advice.message}")
    for index, hint in enumerate(advice.suggestions, start=1):
        console.print(f"  {index}. {hint}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scanhub", description="Discover scanners and scan documents")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.debug,
        help="Enable debug logging (overrides --log-level)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("discover", help="List local and network scanners")

    scan = sub.add_parser("scan", help="Scan one document")
    scan.add_argument("name", help="Scanner display name as listed by 'discover'")
    scan.add_argument("--output", help="Output file path")
    scan.add_argument("--dpi", type=int, help="Resolution in DPI")
    scan.add_argument("--color", choices=[m.value for m in ColorMode], default=ColorMode.COLOR.value)
    scan.add_argument("--format", choices=[f.value for f in OutputFormat], default=OutputFormat.BMP.value)

    advise = sub.add_parser("advise", help="Explain an error code")
    advise.add_argument("code", help="Canonical error code")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level, args.debug)

    with ScannerService(UnavailableAcquisitionService(), settings) as service:
        if args.command == "advise":
            render_advice(service.advise(args.code))
            return 0

        registry = service.discover()

        if args.command == "discover":
            console.print(render_registry(registry))
            return 0

        scan_settings = None
        if args.dpi is not None or args.color != ColorMode.COLOR.value or args.format != OutputFormat.BMP.value:
            scan_settings = ScanSettings(
                resolution_dpi=args.dpi or settings.scan.local_resolution,
                color_mode=ColorMode(args.color),
                output_format=OutputFormat(args.format),
            )

        outcome = service.scan(args.name, scan_settings, args.output, registry=registry)
        if outcome.ok:
            console.print(f"[green]Saved[/] {outcome.output_path} ({outcome.bytes_written} bytes)")
            return 0

        render_advice(service.advise(outcome.error))
        if outcome.detail:
            console.print(f"[dim]{outcome.detail}[/]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
