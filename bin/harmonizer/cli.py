"""CLI entry point for harmonizer."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from harmonizer import producer_version
from harmonizer.config import ConfigError, HarmonizerConfig, parse_size, write_config
from harmonizer.errors import HarmonizerError
from harmonizer.readback import (
    check_file,
    format_check,
    format_summary_table,
    is_ok,
    summarize_path,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="harmonizer",
        description="Harmonic HDF5 tool: inspect and check run files, or write a config.",
    )
    parser.add_argument("--version", action="version", version=producer_version())
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # inspect
    insp = sub.add_parser("inspect", help="Summarize harmonic run files")
    insp.add_argument("path", type=Path, help="Harmonic file or directory of run files")

    # check
    chk = sub.add_parser("check", help="Check run files against the harmonic layout")
    chk.add_argument("path", type=Path, help="Harmonic file or directory of run files")

    # init-config
    init = sub.add_parser("init-config", help="Write a harmonizer TOML config")
    init.add_argument("output", type=Path, help="Path of the TOML file to write")
    init.add_argument("--path", type=Path, required=True, help="Harmonic output directory")
    init.add_argument("--size", default="10GB", help="Per-file size budget (default: 10GB)")
    init.add_argument("--overwrite", action="store_true", help="Allow truncating existing run files")

    return parser


def cmd_inspect(path: Path) -> None:
    """Run the inspect subcommand."""
    summaries = summarize_path(path)
    print(format_summary_table(summaries))


def cmd_check(path: Path) -> bool:
    """Run the check subcommand. Returns True when every file passes."""
    summaries = summarize_path(path)
    if not summaries:
        print("No harmonic files found.")
        return False

    results = [(s, check_file(s)) for s in summaries]
    print(format_check(results))
    return all(is_ok(issues) for _, issues in results)


def cmd_init_config(output: Path, harmonic_path: Path, size: str, overwrite: bool) -> None:
    """Run the init-config subcommand."""
    config = HarmonizerConfig(
        harmonic_path=harmonic_path,
        harmonic_size=parse_size(size),
        overwrite=overwrite,
    )
    write_config(config, output)
    print(f"Wrote {output}")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "inspect":
            cmd_inspect(args.path)
        elif args.command == "check":
            if not cmd_check(args.path):
                sys.exit(1)
        elif args.command == "init-config":
            cmd_init_config(args.output, args.path, args.size, args.overwrite)
    except (HarmonizerError, ConfigError) as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
