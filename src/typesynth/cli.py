"""Command-line interface for typesynth."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from typesynth.config import EXECUTORS, SynthesisConfig
from typesynth.errors import ErrorCollector, TypesynthError, handle_error
from typesynth.logging import configure_logging
from typesynth.output import Output, Verbosity, configure_output

if TYPE_CHECKING:
    from argparse import Namespace


def get_version() -> str:
    """Get the typesynth version."""
    from typesynth import __version__

    return __version__


def setup_output(args: Namespace) -> Output:
    """Configure global output based on CLI args."""
    if getattr(args, "quiet", False):
        verbosity = Verbosity.QUIET
    elif getattr(args, "debug", False):
        verbosity = Verbosity.DEBUG
    elif getattr(args, "verbose", False):
        verbosity = Verbosity.VERBOSE
    else:
        verbosity = Verbosity.NORMAL

    return configure_output(
        verbosity=verbosity,
        json_format=getattr(args, "json", False),
        compact=getattr(args, "compact", False),
        no_color=getattr(args, "no_color", False),
    )


def load_config(args: Namespace) -> SynthesisConfig:
    """Effective configuration: config file, then command-line overrides.

    Raises:
        FileNotFoundError: --config names a missing file
        ConfigError: the config file is invalid
    """
    from typesynth.toml_config import find_config_file, load_toml_config

    if getattr(args, "config", None):
        config = load_toml_config(Path(args.config))
    else:
        path = find_config_file(Path.cwd())
        config = load_toml_config(path) if path else SynthesisConfig()

    if getattr(args, "timeout", None) is not None:
        config.timeout_seconds = args.timeout
    if getattr(args, "max_size", None) is not None:
        config.max_size = args.max_size
    if getattr(args, "executor", None):
        config.executor = args.executor
    if getattr(args, "debug", False):
        config.log_level = "DEBUG"
    return config


# =============================================================================
# Commands
# =============================================================================


def cmd_synth(args: Namespace) -> int:
    """Synthesize the functions of a task file."""
    from typesynth.synthesis.tasks import FunctionSynthesizer, combine_code, load_function_specs

    output = setup_output(args)
    try:
        config = load_config(args)
        configure_logging(config.log_level, config.log_format)
        specs = load_function_specs(Path(args.file))
    except (TypesynthError, OSError) as e:
        output.error(handle_error(e).to_compact())
        return 1

    if args.function:
        specs = [spec for spec in specs if spec.name in args.function]
        if not specs:
            output.error(f"No function named {', '.join(args.function)} in {args.file}")
            return 1

    collector = ErrorCollector()
    synthesizer = FunctionSynthesizer(config)
    results = []
    try:
        for spec in specs:
            if output.is_text:
                output.step(f"Synthesizing {spec.name} ({len(spec.examples)} examples)")
            result = synthesizer.synthesize_all([spec], collector)[0]
            results.append(result)
            if not output.is_text:
                continue
            if result.success:
                output.code(result.code or "")
            else:
                output.error(f"{spec.name}: {result.error.message if result.error else 'failed'}")
            if result.stats is not None:
                output.verbose(f"  {result.stats.to_dict()} in {result.elapsed_ms:.0f}ms")
    except TypesynthError as e:
        output.error(handle_error(e).to_compact())
        return 1

    if args.output:
        Path(args.output).write_text(combine_code(results))
    if output.is_text:
        if args.output:
            output.success(f"Wrote {args.output}")
        output.info(collector.summary())
    else:
        output.data(
            {
                "functions": [r.to_dict() for r in results],
                "summary": collector.summary(),
            }
        )
    return 1 if collector.has_errors() else 0


def cmd_catalog(args: Namespace) -> int:
    """List the method signatures the synthesizer knows."""
    from typesynth.synthesis.catalog import default_catalog

    output = setup_output(args)
    entries = []
    for cls_name, method, sig in default_catalog().entries():
        params = ", ".join(str(t) for t in sig.arg_types)
        entries.append(
            {
                "class": cls_name,
                "method": method,
                "params": [str(t) for t in sig.arg_types],
                "returns": str(sig.return_type),
                "property": sig.is_property,
                "signature": f"{cls_name}.{method}({params}) -> {sig.return_type}",
            }
        )

    if output.is_text:
        for entry in entries:
            output.print(entry["signature"])
    else:
        output.data(entries)
    return 0


def cmd_config(args: Namespace) -> int:
    """Print the effective configuration."""
    from typesynth.toml_config import config_to_toml

    output = setup_output(args)
    try:
        config = load_config(args)
    except (TypesynthError, OSError) as e:
        output.error(handle_error(e).to_compact())
        return 1

    if output.is_text:
        output.print(config_to_toml(config))
    else:
        output.data(dataclasses.asdict(config))
    return 0


# =============================================================================
# Parser
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="typesynth",
        description="Synthesize Python functions from input/output examples",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")

    # Global output options
    parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")
    parser.add_argument("--compact", "-c", action="store_true", help="Compact output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Quiet mode (errors only)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output (most verbose)")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Config file (default: nearest typesynth.toml or pyproject.toml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # synth command
    synth_parser = subparsers.add_parser("synth", help="Synthesize functions from a task file")
    synth_parser.add_argument("file", help="JSON or YAML task file")
    synth_parser.add_argument(
        "--timeout",
        "-t",
        type=float,
        help="Seconds per function (default: from config, 60)",
    )
    synth_parser.add_argument(
        "--max-size",
        type=int,
        help="Largest program in AST nodes (default: from config, 50)",
    )
    synth_parser.add_argument(
        "--executor",
        choices=EXECUTORS,
        help="How candidates are run against examples",
    )
    synth_parser.add_argument(
        "--function",
        "-f",
        action="append",
        metavar="NAME",
        help="Only synthesize this function (repeatable)",
    )
    synth_parser.add_argument(
        "--output",
        "-o",
        metavar="PATH",
        help="Also write all synthesized functions to a Python file",
    )
    synth_parser.set_defaults(func=cmd_synth)

    # catalog command
    catalog_parser = subparsers.add_parser("catalog", help="List known method signatures")
    catalog_parser.set_defaults(func=cmd_catalog)

    # config command
    config_parser = subparsers.add_parser("config", help="Show the effective configuration")
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_output(args)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
