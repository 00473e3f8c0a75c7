"""Command-line interface for map generation."""

import argparse
import sys
import time
from pathlib import Path

import structlog


def configure_logging(verbose: bool) -> None:
    """Configure structlog for console output."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(10 if verbose else 20),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hexworld", description="Generate procedural hex maps"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a single map")
    generate.add_argument("--seed", type=int, default=12345, help="Random seed (default: 12345)")
    generate.add_argument("--width", type=int, default=None, help="Map width (overrides config)")
    generate.add_argument("--height", type=int, default=None, help="Map height (overrides config)")
    generate.add_argument(
        "--attempts", type=int, default=3, help="Maximum generation attempts (default: 3)"
    )
    generate.add_argument("--config", type=str, default=None, help="Config name or path")
    generate.add_argument(
        "--output", "-o", type=str, default=None, help="Save the map as JSON to this path"
    )

    validate = subparsers.add_parser("validate", help="Validate a saved map")
    validate.add_argument("path", type=str, help="Path to a saved map JSON file")
    validate.add_argument("--config", type=str, default=None, help="Config name or path")

    batch = subparsers.add_parser("batch", help="Run many seeds and report map quality")
    batch.add_argument("--seeds", type=int, default=20, help="Number of seeds (default: 20)")
    batch.add_argument("--start-seed", type=int, default=0, help="First seed (default: 0)")
    batch.add_argument(
        "--attempts", type=int, default=3, help="Maximum attempts per seed (default: 3)"
    )
    batch.add_argument("--config", type=str, default=None, help="Config name or path")

    return parser


def _resolve_config(name: str | None):
    from ..config import find_config, load_config
    from .config import MapConfig

    if name is None:
        return MapConfig()
    return load_config(find_config(name))


def _print_result(result) -> None:
    for error in result.errors:
        print(f"  ERROR   {error}")
    for warning in result.warnings:
        print(f"  WARNING {warning}")


def cmd_generate(args: argparse.Namespace) -> int:
    from .generator import MapGenerator
    from .persistence import save_map

    config = _resolve_config(args.config)
    updates = {}
    if args.width is not None:
        updates["width"] = args.width
    if args.height is not None:
        updates["height"] = args.height
    if updates:
        config = config.model_copy(update=updates)

    print(f"Generating {config.width}x{config.height} map with seed {args.seed}")

    generator = MapGenerator(config)
    start_time = time.time()
    accepted = generator.generate_complete_map(args.seed, max_attempts=args.attempts)
    gen_time = time.time() - start_time

    stats = generator.last_result.stats if generator.last_result else {}
    print(
        f"{'Accepted' if accepted else 'Rejected'} after {generator.attempts_used} "
        f"attempt(s) in {gen_time:.2f}s (seed used: {generator.seed_used})"
    )
    print(f"  Terrain: {stats.get('terrain_distribution', {})}")
    print(f"  Rivers: {len(generator.rivers)}  Locations: {len(generator.locations)}")
    for loc in generator.locations:
        print(f"    {loc.type:<13} {loc.name:<22} {loc.coords}")
    if generator.last_result is not None:
        _print_result(generator.last_result)

    if args.output:
        output_path = Path(args.output)
        save_map(
            output_path,
            generator.grid,
            generator.rivers,
            generator.locations,
            seed=generator.seed_used,
        )
        print(f"Saved to {output_path}")

    return 0 if accepted else 1


def cmd_validate(args: argparse.Namespace) -> int:
    from .generator import MapGenerator
    from .persistence import load_map

    config = _resolve_config(args.config)
    loaded = load_map(Path(args.path))
    generator = MapGenerator(config)
    generator.load(loaded.grid, loaded.rivers, loaded.locations, seed=loaded.metadata.get("seed"))
    result = generator.validate()

    print(f"{args.path}: {'valid' if result.valid else 'INVALID'}")
    _print_result(result)
    return 0 if result.valid else 1


def cmd_batch(args: argparse.Namespace) -> int:
    from .batch import run_batch

    config = _resolve_config(args.config)
    seeds = range(args.start_seed, args.start_seed + args.seeds)
    report = run_batch(config, seeds, max_attempts=args.attempts)

    print(f"Seeds: {report.total}  Passed: {report.passed} ({report.pass_rate:.0%})")
    print(f"Average attempts: {report.average_attempts:.2f}")
    if report.error_counts:
        print("Most common errors:")
        for message, count in report.most_common_errors():
            print(f"  {count:>4}  {message}")
    if report.warning_counts:
        print("Most common warnings:")
        for message, count in report.most_common_warnings():
            print(f"  {count:>4}  {message}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for map generation."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    from ..exceptions import HexWorldError

    commands = {
        "generate": cmd_generate,
        "validate": cmd_validate,
        "batch": cmd_batch,
    }
    try:
        return commands[args.command](args)
    except (FileNotFoundError, HexWorldError) as e:
        structlog.get_logger().error("command_failed", command=args.command, error=str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
