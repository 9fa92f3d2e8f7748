#!/usr/bin/env python3
"""
Command line interface for the Wi-Fi threat analyzer.

This module provides the main CLI entry point for assessing recorded
Wi-Fi scans and querying the reference tables from the command line.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, List, Dict, Any

import click
import yaml
from rich.console import Console
from rich.table import Table

from ..main import WifiThreatAnalyzer
from ..core.config import EngineConfig, load_config
from ..core.models import AnalysisError, ScanAnalysisResult, ThreatLevel
from ..core.reference_data import default_reference_data, load_reference_data
from ..analyzers.core.ssid_analyzer import SSIDAnalyzer
from ..analyzers.core.vendor_directory import VendorDirectory
from ..utils.mac_utils import is_locally_administered, normalize_mac

LEVEL_STYLES = {
    ThreatLevel.CRITICAL: "bold red",
    ThreatLevel.HIGH: "red",
    ThreatLevel.MEDIUM: "yellow",
    ThreatLevel.LOW: "green",
}


def setup_logging(level: str = "INFO"):
    """Setup logging configuration."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    # Reports go to stdout
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ],
        force=True
    )


def load_scans(scan_file: str) -> List[List[Dict[str, Any]]]:
    """
    Read a scan file.

    Accepts a list of observations (one scan) or a mapping with a "scans"
    key holding a list of scans, in JSON or YAML.
    """
    path = Path(scan_file)
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix.lower() == '.json':
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict) and 'scans' in data:
        scans = data['scans']
    elif isinstance(data, list):
        scans = [data]
    else:
        raise click.ClickException("Scan file must hold a list of observations or a 'scans' list")

    if not isinstance(scans, list) or not all(isinstance(scan, list) for scan in scans):
        raise click.ClickException("Each scan must be a list of observations")
    if not scans:
        raise click.ClickException("Scan file contains no scans")
    return scans


def render_summary(console: Console, analyzer: WifiThreatAnalyzer, result: ScanAnalysisResult) -> None:
    """Print a per-network table and the scan-wide verdict."""
    summary = analyzer.summarize(result)

    table = Table(title="Network Assessments")
    table.add_column("SSID")
    table.add_column("BSSID")
    table.add_column("Threat Level")
    table.add_column("Confidence", justify="right")
    table.add_column("Grade", justify="center")
    table.add_column("Threats", justify="right")

    for assessment in analyzer.ordered_assessments(result):
        level = assessment.threat_level
        table.add_row(
            assessment.ssid or "(hidden)",
            assessment.bssid or "",
            f"[{LEVEL_STYLES[level]}]{level.display_name}[/]",
            f"{assessment.aggregate_confidence:.2f}",
            assessment.security_grade,
            str(len(assessment.validated_threats)),
        )
    console.print(table)

    for pattern in result.pattern_analysis.detected_patterns:
        console.print(f"[bold yellow]Attack pattern:[/] {pattern.pattern_type.value} - {pattern.description}")
    console.print(f"Overall: {summary['overall_assessment']} (risk score {summary['risk_score']}/100)")


@click.group()
@click.option('--log-level', default='WARNING',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level')
@click.option('--config-file', type=click.Path(exists=True),
              help='Engine configuration file (YAML or JSON)')
@click.option('--reference-data', type=click.Path(exists=True),
              help='Reference tables file (YAML)')
@click.pass_context
def cli(ctx, log_level: str, config_file: Optional[str], reference_data: Optional[str]):
    """Wi-Fi Threat Analyzer CLI."""
    setup_logging(log_level)

    try:
        config = load_config(config_file) if config_file else EngineConfig()
        reference = load_reference_data(reference_data) if reference_data else default_reference_data()
    except AnalysisError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    ctx.ensure_object(dict)
    ctx.obj['config'] = config
    ctx.obj['reference'] = reference
    ctx.obj['log_level'] = log_level


@cli.command()
@click.argument('scan_file', type=click.Path(exists=True))
@click.option('--location', '-l', help='Coarse location tag (e.g. airport, home)')
@click.option('--output', '-o', type=click.Path(),
              help='Output file path (default: print to stdout)')
@click.option('--format', '-f', 'output_format', default='json',
              type=click.Choice(['json', 'markdown', 'md', 'text', 'txt']),
              help='Output format')
@click.pass_context
def analyze(ctx, scan_file: str, location: Optional[str], output: Optional[str], output_format: str):
    """Analyze one or more recorded scans; the report covers the last one."""
    try:
        scans = load_scans(scan_file)
        analyzer = WifiThreatAnalyzer(
            config=ctx.obj['config'],
            reference=ctx.obj['reference']
        )

        result = None
        for scan in scans:
            result = analyzer.analyze_scan(scan, location_tag=location)

        report = analyzer.generate_report(result, output_format=output_format)

        if output:
            with open(output, 'w', encoding='utf-8') as f:
                f.write(report)
            console = Console()
            render_summary(console, analyzer, result)
            console.print(f"Report saved to: {output}")
        else:
            click.echo(report)

    except click.ClickException:
        raise
    except (AnalysisError, OSError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Analysis failed: {e}", err=True)
        sys.exit(1)


@cli.command('lookup-vendor')
@click.argument('mac')
@click.pass_context
def lookup_vendor(ctx, mac: str):
    """Look up the vendor behind a MAC address."""
    normalized = normalize_mac(mac)
    if normalized is None:
        click.echo(f"Invalid MAC address: {mac}", err=True)
        sys.exit(1)

    directory = VendorDirectory(ctx.obj['reference'], ctx.obj['config'])
    record = directory.lookup_vendor(normalized)

    table = Table(title=f"Vendor lookup: {normalized}", show_header=False)
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Vendor", record.vendor_name if record else "Unknown")
    table.add_row("Category", record.category.value if record else "unknown")
    table.add_row("Trust", record.trust_level.value if record else "unknown")
    table.add_row("Suspicious", "yes" if directory.is_suspicious_vendor(normalized) else "no")
    table.add_row("Trusted infrastructure", "yes" if directory.is_legitimate_router_vendor(normalized) else "no")
    table.add_row("Locally administered", "yes" if is_locally_administered(normalized) else "no")
    table.add_row("Known malicious", "yes" if directory.is_known_malicious(normalized) else "no")
    Console().print(table)


@cli.command('check-ssid')
@click.argument('ssid')
@click.option('--scan-ssid', multiple=True,
              help='Other SSID visible in the same scan (repeatable)')
@click.pass_context
def check_ssid(ctx, ssid: str, scan_ssid: tuple):
    """Check a network name for spoofing patterns."""
    analyzer = SSIDAnalyzer(ctx.obj['reference'], ctx.obj['config'])
    result = analyzer.analyze(ssid, [ssid] + list(scan_ssid))

    console = Console()
    verdict = "[bold red]SUSPICIOUS[/]" if result.is_detected else "[green]no spoofing pattern found[/]"
    console.print(f"{ssid}: {verdict} (score {result.confidence_score:.2f})")
    for factor in result.suspicious_factors:
        console.print(f"  - {factor}")
    if result.legitimate_matches:
        console.print(f"Resembles: {', '.join(result.legitimate_matches)}")


@cli.command('list-detectors')
@click.pass_context
def list_detectors(ctx):
    """List the per-network detectors in execution order."""
    analyzer = WifiThreatAnalyzer(config=ctx.obj['config'], reference=ctx.obj['reference'])

    table = Table(title="Available Detectors")
    table.add_column("Order", justify="right")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Description")
    for info in analyzer.list_detectors():
        table.add_row(str(info['analysis_order']), info['name'], info['category'], info['description'])
    Console().print(table)


@cli.command()
@click.pass_context
def stats(ctx):
    """Show reference table and detector statistics."""
    reference = ctx.obj['reference']
    directory = VendorDirectory(reference, ctx.obj['config'])
    console = Console()

    table = Table(title="Reference Data")
    table.add_column("Table")
    table.add_column("Entries", justify="right")
    for name, count in reference.get_stats().items():
        table.add_row(name, str(count))
    console.print(table)

    table = Table(title="Vendor Categories")
    table.add_column("Category")
    table.add_column("Prefixes", justify="right")
    for category, count in directory.get_database_stats().items():
        table.add_row(category, str(count))
    console.print(table)


def main():
    """Main CLI entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
