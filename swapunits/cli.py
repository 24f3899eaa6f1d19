#!/usr/bin/env python3
"""
SwapUnits CLI.

    COMMAND         ALIASES         WHAT IT DOES
    -------         -------         ----------------------------------
    serve           start, up       Start the SwapUnits API server
    convert         conv, c         Convert a value between two units
    units           list, ls        List categories, or the units of one
    presets         quick           Show the quick-pick presets
    ring            status, ping    Ping a running instance
    flash           info, stats     Show history/favorites stats
"""

import argparse
import sys

__version__ = "1.0.0"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_serve(args):
    """Start the SwapUnits API server."""
    import uvicorn
    from swapunits.config import get_config

    cfg = get_config()
    host = args.host or cfg["server"]["host"]
    port = args.port or cfg["server"]["port"]

    print(f"  SwapUnits v{__version__} on {host}:{port}")
    print()

    uvicorn.run(
        "swapunits.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


def cmd_convert(args):
    """Convert a value and print the formatted result."""
    from swapunits.pipeline import ConversionRequest, run_conversion

    view = run_conversion(ConversionRequest(
        category=args.category,
        from_unit=args.from_unit,
        to_unit=args.to_unit,
        value=args.value,
        number_format="scientific" if args.scientific else "normal",
    ))

    if not view.ok:
        print(f"  ✗  {view.outcome.reason.value}: {view.outcome.detail}", file=sys.stderr)
        return 1

    print(f"  {view.source_display} {args.from_unit} = {view.result.formatted_string} {view.outcome.unit}")
    if view.policy.normal_option_disabled:
        print("  (scientific notation forced by magnitude)")
    return 0


def cmd_units(args):
    """List categories, or the units of one category."""
    from swapunits.units.catalog import get_category, list_categories

    if not args.category:
        for name in list_categories():
            cat = get_category(name)
            print(f"  {name:<20} {cat.family.value:<11} {len(cat.units)} units")
        return 0

    cat = get_category(args.category)
    if cat is None:
        print(f"  ✗  Unknown category: {args.category}", file=sys.stderr)
        return 1

    print(f"  {cat.name} ({cat.family.value})")
    print("  " + "─" * 40)
    for unit in cat.units:
        tag = "  [inverse]" if unit.is_reciprocal else ""
        print(f"  {unit.symbol:<10} {unit.name}{tag}")
    return 0


def cmd_presets(args):
    """Show the quick-pick presets."""
    from swapunits.units.presets import get_presets

    for preset in get_presets(limit=args.limit):
        print(f"  {preset.category:<20} {preset.name}")
    return 0


def cmd_ring(args):
    """Ping a running instance."""
    import httpx

    url = (args.url or "http://localhost:8000").rstrip("/")
    try:
        resp = httpx.get(f"{url}/api/v1/health", timeout=5)
        if resp.status_code == 200:
            print(f"  ✓  {url} is up (v{resp.json().get('version', '?')})")
            return 0
        print(f"  ✗  No answer — got HTTP {resp.status_code}")
    except httpx.ConnectError:
        print(f"  ✗  Nothing at {url}")
    except httpx.HTTPError as e:
        print(f"  ✗  Error: {e}")
    return 1


def cmd_flash(args):
    """Show history and favorites stats from the local database."""
    from swapunits.config import get_config
    from swapunits.storage.sqlite_store import SQLiteStore

    cfg = get_config()
    store = SQLiteStore(cfg["storage"]["sqlite_path"])
    stats = store.get_stats()

    print(f"  Database:  {cfg['storage']['sqlite_path']}")
    print(f"  History:   {stats['history']}")
    print(f"  Favorites: {stats['favorites']}")
    for category, n in stats["history_by_category"].items():
        print(f"    {category:<20} {n}")
    return 0


# ---------------------------------------------------------------------------
# Parser with aliases
# ---------------------------------------------------------------------------

def _add_command(subparsers, names, help_text, func, setup_fn=None):
    """Register a command under multiple names."""
    p = subparsers.add_parser(names[0], help=help_text, aliases=names[1:])
    p.set_defaults(func=func)
    if setup_fn:
        setup_fn(p)
    return p


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swapunits",
        description="SwapUnits — quick unit conversions.",
        epilog="Run 'swapunits <command> --help' for command-specific options.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V", action="version",
        version=f"swapunits {__version__}",
    )

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    def setup_serve(p):
        p.add_argument("--host", default=None, help="Override listen host")
        p.add_argument("--port", "-p", type=int, default=None, help="Override listen port")
        p.add_argument("--reload", action="store_true", help="Auto-reload on code changes (dev)")

    _add_command(sub, ["serve", "start", "up"], "Start the SwapUnits API server", cmd_serve, setup_serve)

    def setup_convert(p):
        p.add_argument("category", help="Category, e.g. Length or 'Fuel Economy'")
        p.add_argument("value", help="Value to convert")
        p.add_argument("from_unit", help="Source unit symbol, e.g. m")
        p.add_argument("to_unit", help="Target unit symbol, e.g. ft")
        p.add_argument("--scientific", "-s", action="store_true", help="Scientific notation")

    _add_command(sub, ["convert", "conv", "c"], "Convert a value between two units", cmd_convert, setup_convert)

    def setup_units(p):
        p.add_argument("category", nargs="?", default=None, help="Show the units of this category")

    _add_command(sub, ["units", "list", "ls"], "List categories or units", cmd_units, setup_units)

    def setup_presets(p):
        p.add_argument("--limit", "-n", type=int, default=15, help="Maximum presets to show")

    _add_command(sub, ["presets", "quick"], "Show the quick-pick presets", cmd_presets, setup_presets)

    def setup_ring(p):
        p.add_argument("--url", "-u", default=None, help="SwapUnits URL (default: http://localhost:8000)")

    _add_command(sub, ["ring", "status", "ping"], "Ping a running SwapUnits instance", cmd_ring, setup_ring)

    _add_command(sub, ["flash", "info", "stats"], "Show history and favorites stats", cmd_flash)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0
    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
