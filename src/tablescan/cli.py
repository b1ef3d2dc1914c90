"""Command-line interface for tablescan."""

import json
import sys
import logging
from pathlib import Path
from typing import Any, Optional

import click
import yaml

from tablescan import __version__
from tablescan.engine import Classifier, Scanner
from tablescan.models import AddressedCell
from tablescan.registry import DetectorRegistry, load_registry
from tablescan.report import dumps
from tablescan.sources import read_table, write_report
from tablescan.table import MalformedTableError


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_config(path: Optional[Path]) -> dict[str, Any]:
    """Load a YAML config file, or return an empty config."""
    if path is None:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _load_registry_or_exit(
    patterns: tuple[Path, ...],
    config: dict[str, Any],
    codes: tuple[str, ...] = (),
    namespaces: tuple[str, ...] = (),
) -> DetectorRegistry:
    """Load detectors from CLI options, falling back to config and defaults."""
    if patterns:
        pattern_paths = [str(p) for p in patterns]
    else:
        pattern_paths = config.get("registry", {}).get("paths")

    try:
        registry = load_registry(paths=pattern_paths)
        if codes or namespaces:
            registry = registry.select(codes=codes, namespaces=namespaces)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    return registry


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """tablescan: Find sensitive data in tables."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--out",
    "-o",
    "output_file",
    type=click.Path(dir_okay=False, allow_dash=True, path_type=Path),
    default=Path("report.json"),
    show_default=True,
    help="Report file ('-' prints to stdout)",
)
@click.option(
    "--patterns",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    multiple=True,
    help="Detector files to load (uses defaults if not specified)",
)
@click.option(
    "--detector",
    "-d",
    "codes",
    multiple=True,
    help="Only run these detector codes (can be used multiple times)",
)
@click.option(
    "--ns",
    "--namespace",
    "namespaces",
    multiple=True,
    help="Only run detectors from these namespaces",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file",
)
@click.option("--delimiter", default=",", show_default=True, help="CSV field delimiter")
@click.option(
    "--lenient",
    is_flag=True,
    help="Accept rows whose length differs from the header",
)
@click.option("--workers", type=int, default=None, help="Threads to spread rows over")
@click.option("--indent", type=int, default=None, help="Pretty-print the report")
@click.option("--summary", is_flag=True, help="Print finding counts per detector")
@click.option(
    "--fail-on-findings",
    is_flag=True,
    help="Exit with status 1 if anything was found",
)
def scan(
    file: Path,
    output_file: Path,
    patterns: tuple[Path, ...],
    codes: tuple[str, ...],
    namespaces: tuple[str, ...],
    config: Optional[Path],
    delimiter: str,
    lenient: bool,
    workers: Optional[int],
    indent: Optional[int],
    summary: bool,
    fail_on_findings: bool,
) -> None:
    """Scan a CSV file and write a findings report."""
    config_data = load_config(config)
    scan_config = config_data.get("scan", {})

    registry = _load_registry_or_exit(patterns, config_data, codes, namespaces)
    strict = not lenient and scan_config.get("strict", True)
    if workers is None:
        workers = scan_config.get("workers", 1)

    scanner = Scanner(registry, workers=workers, format=scan_config.get("format", "csv"))

    try:
        table = read_table(file, delimiter=delimiter)
        report = scanner.analyse(table, strict=strict)
    except (MalformedTableError, UnicodeDecodeError) as e:
        click.echo(f"Error: {file}: {e}", err=True)
        sys.exit(2)

    if str(output_file) == "-":
        click.echo(dumps(report, indent=indent))
    else:
        write_report(report, output_file, indent=indent)
        click.echo(
            f"Scanned {report.item_count} cells, found {len(report.errors)} items; "
            f"report written to {output_file}",
            err=True,
        )

    if summary:
        counts: dict[str, int] = {}
        for finding in report.errors:
            counts[finding.code] = counts.get(finding.code, 0) + 1
        for code in registry.codes:
            if code in counts:
                click.echo(f"  {code:<35} {counts[code]}", err=True)

    if fail_on_findings and report.errors:
        sys.exit(1)


@main.command()
@click.option(
    "--text",
    "-t",
    required=True,
    help="Cell value to classify",
)
@click.option(
    "--patterns",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    multiple=True,
    help="Detector files to load",
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format",
)
def classify(text: str, patterns: tuple[Path, ...], output: str) -> None:
    """Show which detector, if any, a single value falls under."""
    registry = _load_registry_or_exit(patterns, {})
    cell = AddressedCell(value=text, column_name="", row_index=0, column_index=0)
    finding = Classifier(registry).classify(cell)

    if output == "json":
        click.echo(
            json.dumps(
                {
                    "code": finding.code if finding else None,
                    "message": finding.message if finding else None,
                }
            )
        )
    elif finding:
        click.echo(f"{finding.code}: {finding.message}")
    else:
        click.echo("No match")


@main.command()
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to listen on [default: 8080]",
)
@click.option(
    "--host",
    "-h",
    default=None,
    help="Host to bind to [default: 0.0.0.0]",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file",
)
@click.pass_context
def serve(
    ctx: click.Context,
    port: Optional[int],
    host: Optional[str],
    config: Optional[Path],
) -> None:
    """Start HTTP server."""
    try:
        import uvicorn
        from tablescan.server import create_app
    except ImportError:
        click.echo(
            "Error: Server dependencies not installed. Install with: pip install tablescan[server]",
            err=True,
        )
        sys.exit(1)

    config_data = load_config(config)

    # CLI options win over config
    server_config = config_data.get("server", {})
    port = port or server_config.get("port", 8080)
    host = host or server_config.get("host", "0.0.0.0")

    click.echo(f"Starting server on {host}:{port}")

    app = create_app(config_data)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info" if ctx.obj.get("verbose") else "warning",
    )


@main.command()
@click.option(
    "--patterns",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    multiple=True,
    help="Detector files to list",
)
def list_detectors(patterns: tuple[Path, ...]) -> None:
    """List available detectors in priority order."""
    registry = _load_registry_or_exit(patterns, {})

    click.echo(f"Loaded {len(registry)} detectors from {len(registry.namespaces)} namespaces\n")

    for priority, detector in enumerate(registry, start=1):
        anchoring = "anchored" if detector.anchored else "contains"
        click.echo(
            f"  {priority:>2}. {detector.code:<35} {detector.namespace:<6} "
            f"{anchoring:<9} {detector.description}"
        )


if __name__ == "__main__":
    main()
