#!/usr/bin/env python3
"""
SpeedFlux CLI -- connection quality testing from the terminal.

Usage::

    python speedflux.py                          # rich dashboard
    python speedflux.py --simple                 # plain text
    python speedflux.py --json                   # JSON to stdout
    python speedflux.py -o result.json           # save to file
    python speedflux.py --url ws://host:3001     # pick a server
    python speedflux.py --max-speed 500          # progress ceiling in Mbps
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import List, Optional

from engine.client import SpeedTestClient
from engine.config import DEFAULTS, get_config_value, load_config, set_config_value
from engine.constants import (
    MAX_DURATION,
    MAX_IDLE_TIMEOUT,
    MAX_MAX_SPEED,
    MIN_DURATION,
    MIN_IDLE_TIMEOUT,
    MIN_MAX_SPEED,
)
from engine.errors import SessionAborted, SpeedtestError
from engine.logging_setup import configure_logging
from engine.session import SpeedTestSession
from ui.dashboard import (
    ProgressDisplay,
    console,
    print_final_results,
    print_header,
    print_latency_details,
    print_quality,
    print_scenarios,
    print_speed_result,
)
from ui.output import create_result_json, format_text_result, save_json

logger = logging.getLogger("speedflux")


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------

def _validate(
    server_url: str,
    max_speed: float,
    upload_duration: float,
    idle_timeout: float,
    phase_pause: float,
) -> None:
    """Raise ``ValueError`` if any parameter is out of range."""
    if not server_url.startswith(("ws://", "wss://")):
        raise ValueError("Server URL must start with ws:// or wss://")
    if not MIN_MAX_SPEED <= max_speed <= MAX_MAX_SPEED:
        raise ValueError(f"Max speed must be between {MIN_MAX_SPEED:.0f} and {MAX_MAX_SPEED:.0f} Mbps")
    if not MIN_DURATION <= upload_duration <= MAX_DURATION:
        raise ValueError(f"Upload duration must be between {MIN_DURATION} and {MAX_DURATION} s")
    if not MIN_IDLE_TIMEOUT <= idle_timeout <= MAX_IDLE_TIMEOUT:
        raise ValueError(f"Idle timeout must be between {MIN_IDLE_TIMEOUT} and {MAX_IDLE_TIMEOUT} s")
    if phase_pause < 0:
        raise ValueError("Phase pause must not be negative")


def _apply_config_settings(pairs: List[str]) -> str:
    """Persist ``KEY=VALUE`` pairs.  Values are read as JSON, else as text."""
    path = ""
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or key not in DEFAULTS:
            raise ValueError(f"Expected KEY=VALUE with KEY one of: {', '.join(sorted(DEFAULTS))}")
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            value = raw
        path = set_config_value(key, value)
    return path


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

async def run_speedtest(
    *,
    server_url: str,
    max_speed: float,
    upload_duration: float,
    idle_timeout: float,
    phase_pause: float,
    json_output: bool = False,
    output_file: Optional[str] = None,
    simple: bool = False,
) -> dict:
    """Run one full session and return a JSON-serialisable dict."""

    show_ui = not json_output and not simple

    client = SpeedTestClient(
        server_url,
        idle_timeout=idle_timeout,
        upload_duration=upload_duration,
    )
    session = SpeedTestSession(client, max_speed=max_speed, phase_pause=phase_pause)

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, session.abort)
    except (NotImplementedError, RuntimeError):
        pass  # no signal handlers on this platform; KeyboardInterrupt still works

    if show_ui:
        print_header(server_url)
        progress = ProgressDisplay()
        progress.start()
        on_progress = progress.update
    else:
        progress = None
        on_progress = None

    try:
        report = await session.run(on_progress=on_progress)
    finally:
        if progress is not None:
            progress.stop()
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass

    if show_ui:
        print_latency_details(report.latency)
        print_speed_result(report.download, "Download Results", "green")
        print_speed_result(report.upload, "Upload Results", "blue")
        print_final_results(report)
        print_quality(report.quality)
        print_scenarios(report)
    elif simple:
        print(format_text_result(report))

    result_json = create_result_json(report, server_url)

    if json_output:
        print(json.dumps(result_json, indent=2))

    if output_file:
        save_json(result_json, output_file)
        if not json_output:
            console.print(f"\n[green]Results saved to:[/green] {output_file}")

    return result_json


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser(config: dict) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SpeedFlux -- connection quality testing",
    )
    # Output modes
    parser.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    parser.add_argument("--output", "-o", type=str, metavar="FILE", help="Save results to JSON file")
    parser.add_argument("--simple", "-s", action="store_true", help="Simple output mode (no dashboard)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging to stderr")
    parser.add_argument("--config-set", action="append", metavar="KEY=VALUE", help="Store a setting in the config file and exit")
    parser.add_argument("--config-get", metavar="KEY", help="Print one setting from the config file and exit")

    # Test parameters
    parser.add_argument("--url", type=str, default=config["server_url"], metavar="URL", help="Measurement server base URL")
    parser.add_argument("--max-speed", type=float, default=config["max_speed"], metavar="MBPS", help="Progress ceiling in Mbps (default: 1000)")
    parser.add_argument("--upload-duration", type=float, default=config["upload_duration"], metavar="SECS", help="Upload test duration in seconds (default: 10)")
    parser.add_argument("--idle-timeout", type=float, default=config["idle_timeout"], metavar="SECS", help="Fail a phase after this long without data (default: 10)")
    parser.add_argument("--phase-pause", type=float, default=config["phase_pause"], metavar="SECS", help="Pause between phases (default: 0.5)")
    return parser


def main(argv: Optional[list] = None) -> None:
    config = load_config()
    args = build_parser(config).parse_args(argv)

    if args.config_set:
        try:
            path = _apply_config_settings(args.config_set)
        except ValueError as exc:
            console.print(f"[red]Error: {exc}[/red]")
            sys.exit(1)
        console.print(f"[green]Config saved to:[/green] {path}")
        return
    if args.config_get:
        print(json.dumps(get_config_value(args.config_get)))
        return

    configure_logging("DEBUG" if args.verbose else config.get("log_level"))

    try:
        _validate(
            server_url=args.url,
            max_speed=args.max_speed,
            upload_duration=args.upload_duration,
            idle_timeout=args.idle_timeout,
            phase_pause=args.phase_pause,
        )
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    try:
        asyncio.run(
            run_speedtest(
                server_url=args.url,
                max_speed=args.max_speed,
                upload_duration=args.upload_duration,
                idle_timeout=args.idle_timeout,
                phase_pause=args.phase_pause,
                json_output=args.json,
                output_file=args.output,
                simple=args.simple,
            )
        )
    except (KeyboardInterrupt, SessionAborted):
        console.print("\n[yellow]Test cancelled by user[/yellow]")
        sys.exit(1)
    except (SpeedtestError, IOError) as exc:
        logger.debug("Run failed", exc_info=True)
        console.print(f"\n[red]Error: {exc}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
