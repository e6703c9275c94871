#!/usr/bin/env python3
"""
Polyglot Endpoint Scanner
=========================
Static discovery of HTTP endpoints across languages and frameworks, with
contract mining, per-endpoint analytics and artifact export.

Features:
  - Framework detection from project manifests
  - Route extraction for Node, Python, JVM, Go, Ruby, PHP, Rust, .NET and Elixir
  - GraphQL, WebSocket and gRPC operations
  - Parameters, bodies, responses, auth, middleware, validation, rate limits
  - Security, documentation, performance, naming and health analytics
  - OpenAPI 3.0, Postman v2.1, cURL, SDK snippet and mock exports

Usage: python main.py [OPTIONS] <path-or-git-url>
"""

import sys
import os
import json
import argparse
import tempfile
import shutil
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn
from rich import box
from dotenv import load_dotenv
import git

from analytics import build_stats
from engine import ConfigError, EndpointScanner, ScannerConfig, group_endpoints
from extractors.models import Endpoint
from renderers import render_curl, render_mock, render_openapi, render_postman, render_sdk_snippets, to_yaml

# =============================================================================
# VERSION
# =============================================================================
__version__ = "1.0.0"

console = Console()

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Configure structured logging for the scanner."""
    logger = logging.getLogger("endpoint_scanner")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler with structured format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)  # Only warnings and errors to console
    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            datefmt='%Y-%m-%dT%H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger

# =============================================================================
# OUTPUT FORMATTERS
# =============================================================================
def fmt_auth(auth: str) -> str:
    color = "red" if auth == "none" else "green"
    return f"[{color}]{auth}[/{color}]"

def fmt_health(score: int) -> str:
    color = "green" if score >= 80 else "cyan" if score >= 60 else "yellow" if score >= 40 else "red"
    return f"[{color}]{score}[/{color}]"

def _health(ep: Endpoint) -> int:
    return ep.analytics.health.overall if ep.analytics else 0

def make_table(endpoints: List[Endpoint]) -> Table:
    t = Table(title=" Discovered API Endpoints", box=box.ROUNDED, header_style="bold magenta")
    t.add_column("#", style="dim", width=4)
    t.add_column("Language", style="blue", width=12)
    t.add_column("Framework", style="cyan", width=14)
    t.add_column("Method", width=8)
    t.add_column("Path", max_width=40)
    t.add_column("Auth", width=8)
    t.add_column("Health", width=6)
    t.add_column("File:Line", style="dim", max_width=30)

    for i, ep in enumerate(endpoints[:100], 1):
        path = ep.path[:37] + "..." if len(ep.path) > 40 else ep.path
        loc = f"{Path(ep.source_file).name}:{ep.line_number}"
        t.add_row(
            str(i), ep.language, ep.framework, ep.method, path,
            fmt_auth(ep.auth), fmt_health(_health(ep)), loc
        )

    if len(endpoints) > 100:
        t.add_row("...", "...", "...", "...", f"... +{len(endpoints) - 100} more", "", "", "")

    return t

def make_summary(s: Dict[str, Any], stats: Dict[str, Any]) -> Panel:
    security = stats["security"]
    severities = security["issues_by_severity"]
    txt = f"""
[bold cyan] Scan Summary[/bold cyan]

[bold]Framework:[/bold] {s['framework']}
[bold]Total Endpoints:[/bold] {s['total']} | Duplicates dropped: {s['duplicates_dropped']}
[bold]Files Scanned:[/bold] {s['files_scanned']} | Skipped: {s['files_skipped']} | Errors: {s['files_errored']}

[bold cyan]By Method:[/bold cyan]
""" + "\n".join([f"   {method}: {count}" for method, count in sorted(stats['by_method'].items())])

    txt += f"""

[bold cyan]Security Issues:[/bold cyan]
   Critical: {severities.get('critical', 0)}
   High: {severities.get('high', 0)}
   Medium: {severities.get('medium', 0)}
   Low: {severities.get('low', 0)}

[bold cyan]Auth:[/bold cyan]
   With auth: {security['endpoints_with_auth']}
   Without auth: {security['endpoints_without_auth']}

[bold cyan]Health:[/bold cyan]
   Average: {stats['health']['average']}
   Documentation average: {stats['documentation']['average_score']}
   Unit tested: {stats['test_coverage']['with_unit_tests']} of {stats['total']}
"""
    if s["truncated"]:
        txt += "\n[yellow]Scan stopped at a file-count or time ceiling; results are partial[/yellow]\n"

    return Panel(txt, title=" Analysis Results", border_style="cyan")

# =============================================================================
# EXPORTS
# =============================================================================
def _export_path(value: str, default: str) -> str:
    return default if value == "AUTO" else value

def _write(path: str, text: str):
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)

def export_openapi(endpoints: List[Endpoint], output_file: str, title: str, base_url: str) -> None:
    document = render_openapi(endpoints, title=title, base_url=base_url)
    if output_file.endswith(('.yaml', '.yml')):
        _write(output_file, to_yaml(document))
    else:
        _write(output_file, json.dumps(document, indent=2))

    path_count = len(document["paths"])
    operation_count = sum(len(methods) for methods in document["paths"].values())
    console.print(f"\n[green] OpenAPI 3.0 spec exported: {output_file}[/green]")
    console.print(f"   Paths: {path_count}")
    console.print(f"   Operations: {operation_count}")
    console.print(f"   Schemas: {len(document['components']['schemas'])}")

def export_postman(endpoints: List[Endpoint], output_file: str, name: str, base_url: str) -> None:
    _write(output_file, json.dumps(render_postman(endpoints, name=name, base_url=base_url), indent=2))
    console.print(f"[green] Postman collection exported: {output_file}[/green]")

def export_curl(endpoints: List[Endpoint], output_file: str, base_url: str) -> None:
    blocks = [f"# {ep.label} ({ep.source_file}:{ep.line_number})\n{render_curl(ep, base_url)}" for ep in endpoints]
    _write(output_file, "#!/bin/sh\n\n" + "\n\n".join(blocks) + "\n")
    console.print(f"[green] cURL commands exported: {output_file}[/green]")

def export_per_endpoint(endpoints: List[Endpoint], output_file: str,
                        render: Callable[[Endpoint], Dict[str, Any]], what: str) -> None:
    _write(output_file, json.dumps({ep.id: render(ep) for ep in endpoints}, indent=2))
    console.print(f"[green] {what} exported: {output_file}[/green]")

# =============================================================================
# GIT HELPER
# =============================================================================
def is_remote(target: str) -> bool:
    return target.startswith(("http://", "https://", "git@"))

def clone_repo(url: str) -> str:
    tmp = tempfile.mkdtemp(prefix="endpoint_scan_")
    console.print(f"[cyan]Cloning: {url}[/cyan]")
    git.Repo.clone_from(url, tmp, depth=1)
    console.print(f"[green] Cloned[/green]")
    return tmp

# =============================================================================
# MAIN CLI
# =============================================================================
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="endpoint-scanner",
        description=f"Polyglot Endpoint Scanner v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  endpoint-scanner ./src                              # Basic scan
  endpoint-scanner ./src -o result.json               # Full JSON result
  endpoint-scanner ./src --export-openapi api.yaml    # OpenAPI as YAML
  endpoint-scanner ./src --export-postman             # Postman collection
  endpoint-scanner ./src --workers 8                  # Parallel scan for large repos
  endpoint-scanner https://github.com/org/repo.git    # Clone and scan
        """
    )

    # Target
    parser.add_argument("target", help="Directory or Git URL to scan")

    # Output options
    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument("-o", "--output", help="Output JSON file")
    output_group.add_argument("--export-openapi", metavar="FILE", nargs="?", const="AUTO",
                             help="Export OpenAPI 3.0 spec (.yaml/.yml writes YAML)")
    output_group.add_argument("--export-postman", metavar="FILE", nargs="?", const="AUTO",
                             help="Export Postman v2.1 collection")
    output_group.add_argument("--export-curl", metavar="FILE", nargs="?", const="AUTO",
                             help="Export cURL commands as a shell script")
    output_group.add_argument("--export-sdk", metavar="FILE", nargs="?", const="AUTO",
                             help="Export TypeScript/JavaScript/Python/cURL snippets")
    output_group.add_argument("--export-mocks", metavar="FILE", nargs="?", const="AUTO",
                             help="Export mock request/response payloads")

    # Scan options
    scan_group = parser.add_argument_group("Scan Options")
    scan_group.add_argument("--config", metavar="FILE",
                           help="Configuration file (JSON/YAML)")
    scan_group.add_argument("--workers", type=int,
                           help="Number of parallel workers (default: 1, sequential)")
    scan_group.add_argument("--max-depth", type=int,
                           help="Maximum directory depth (default: 8)")
    scan_group.add_argument("--merge-duplicates", action="store_true", default=None,
                           help="Union-merge duplicate declarations instead of dropping them")

    # General
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Minimal output")
    parser.add_argument("--log-file", metavar="FILE", help="Write JSON-lines debug log to file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser

def load_config(args: argparse.Namespace) -> ScannerConfig:
    config = ScannerConfig.from_file(args.config) if args.config else ScannerConfig.from_env()
    return config.with_overrides(
        parallel_workers=args.workers,
        max_depth=args.max_depth,
        merge_duplicates=args.merge_duplicates,
    )

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv()
    setup_logging("DEBUG" if args.verbose or args.log_file else "INFO", args.log_file)

    # Banner
    if not args.quiet:
        console.print(Panel.fit(
            f"[bold cyan] Polyglot Endpoint Scanner v{__version__}[/bold cyan]\n"
            "[dim]Node | Python | Java/Kotlin | Go | Ruby | PHP | Rust | .NET | Elixir | GraphQL | gRPC[/dim]",
            border_style="cyan"
        ))

    try:
        config = load_config(args)
    except ConfigError as e:
        console.print(f"[red]Config error: {e}[/red]")
        return 1

    target = args.target
    tmp = None

    try:
        # Clone if URL
        if is_remote(target):
            tmp = clone_repo(target)
            target = tmp
        elif not os.path.isdir(target):
            console.print(f"[red]Error: {target} not found[/red]")
            return 1

        scanner = EndpointScanner(target, config)

        if not args.quiet:
            console.print(f"\n[bold cyan] Scanning...[/bold cyan]")

        # Progress callback
        def progress_cb(cur, tot, fp):
            prog.update(task, completed=(cur / tot) * 100,
                        description=f"[cyan]{Path(fp).name[:25]}")

        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                      BarColumn(), TextColumn("{task.percentage:>3.0f}%"),
                      console=console, disable=args.quiet) as prog:
            task = prog.add_task("[cyan]Scanning", total=100)
            endpoints = scanner.scan(progress_cb=progress_cb)

        summary = scanner.summary()
        stats = build_stats(endpoints, scanner.elapsed_ms)

        # Print results
        if not args.quiet:
            console.print(f"\n[green] Found {len(endpoints)} endpoints[/green]")
            console.print("\n" + "=" * 70)
            console.print(make_summary(summary, stats))
            console.print()

        if endpoints and not args.quiet:
            console.print(make_table(sorted(endpoints, key=_health)))

            # High priority
            flagged = [
                (ep, issue) for ep in endpoints if ep.analytics
                for issue in ep.analytics.security.issues
                if issue.severity.value in ("critical", "high")
            ]
            if flagged:
                console.print("\n[bold red] HIGH PRIORITY[/bold red]")
                for ep, issue in flagged[:10]:
                    console.print(f"   [{issue.severity.value}] {ep.label} ({ep.source_file}:{ep.line_number})")
                    console.print(f"     {issue.message}: {issue.recommendation}")

        # Export outputs
        name = Path(args.target.rstrip("/")).name.removesuffix(".git") or "api"
        if args.output:
            data = {
                "target": args.target,
                "version": __version__,
                "framework": scanner.framework,
                "summary": summary,
                "stats": stats,
                "endpoints": [e.to_dict() for e in endpoints],
                "groups": [g.to_dict() for g in group_endpoints(endpoints)],
            }
            _write(args.output, json.dumps(data, indent=2))
            if not args.quiet:
                console.print(f"\n[green] Saved: {args.output}[/green]")

        if args.export_openapi:
            export_openapi(endpoints, _export_path(args.export_openapi, f"{name}-openapi.json"),
                           name, config.base_url)

        if args.export_postman:
            export_postman(endpoints, _export_path(args.export_postman, f"{name}.postman_collection.json"),
                           name, config.base_url)

        if args.export_curl:
            export_curl(endpoints, _export_path(args.export_curl, f"{name}-curl.sh"), config.base_url)

        if args.export_sdk:
            export_per_endpoint(endpoints, _export_path(args.export_sdk, f"{name}-sdk.json"),
                                lambda ep: render_sdk_snippets(ep, config.sdk_base_url), "SDK snippets")

        if args.export_mocks:
            export_per_endpoint(endpoints, _export_path(args.export_mocks, f"{name}-mocks.json"),
                                render_mock, "Mock payloads")

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        return 130
    except (git.GitCommandError, OSError) as e:
        console.print(f"\n[red]Error: {e}[/red]")
        if args.verbose:
            console.print_exception()
        return 1
    finally:
        if tmp and os.path.exists(tmp):
            shutil.rmtree(tmp, ignore_errors=True)

    if not args.quiet:
        console.print("\n[bold green] Complete![/bold green]")

    return 0

if __name__ == "__main__":
    sys.exit(main())
