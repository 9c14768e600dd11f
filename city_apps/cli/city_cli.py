"""Command line access to the city solver: encode/decode city ids, solve, hint, rate and check cities."""

# city_cli.py
# Usage:
#   python -m city_apps.cli.city_cli encode --top 0,3,0,0 --right 0,0,2,0 --bottom 0,0,0,1 --left 4,0,0,0
#   python -m city_apps.cli.city_cli decode <city_id>
#   python -m city_apps.cli.city_cli solve <city_id> [--grid "1,2,0,0;0,0,0,0;..."]
#   python -m city_apps.cli.city_cli hint <city_id> --grid "..."
#   python -m city_apps.cli.city_cli difficulty <city_id>
#   python -m city_apps.cli.city_cli check <city_id> --grid "..."

import argparse
import json
import logging
import sys

from city_solver.city_tools import RequestKind, check_city, handle_request, solve_tool, time_limit
from city_solver.config import load_config
from city_solver.serialize import CodecError, city_uri, deserialize_city, serialize_city
from city_solver.solver_core import empty_grid, validate_city_grid
from types_city import City


def parse_list(text):
    return [int(value) for value in text.split(",")] if text else []


def parse_grid(text):
    """'1,2;2,1' -> [[1, 2], [2, 1]]"""
    return [parse_list(row) for row in text.split(";")]


def city_from_args(args) -> City:
    if args.city_id:
        return deserialize_city(args.city_id)
    top, right, bottom, left = (parse_list(getattr(args, side)) for side in ("top", "right", "bottom", "left"))
    width, height = len(top), len(right)
    city = City(width, height, [top, right, bottom or [0] * width, left or [0] * height])
    validate_city_grid(empty_grid(width, height), city.border_hints)
    return city


def grid_from_args(args, city: City):
    if not args.grid:
        return None
    grid = parse_grid(args.grid)
    validate_city_grid(grid, city.border_hints)
    return grid


def run(args, cfg) -> dict:
    if args.command == "decode":
        city = deserialize_city(args.city_id)
        return {"width": city.width, "height": city.height, "border_hints": city.border_hints}

    city = city_from_args(args)
    if args.command == "encode":
        city_id = serialize_city(city)
        return {"city_id": city_id, "uri": city_uri(city_id, cfg.share_base_url)}

    grid = grid_from_args(args, city)
    if args.command == "solve":
        return solve_tool(city.border_hints, grid)
    if args.command == "hint":
        move = handle_request(RequestKind.HINT, city.border_hints, grid, time_limit(cfg.solve_timeout))
        return {"move": move._asdict() if move else None}
    if args.command == "difficulty":
        should_stop = time_limit(cfg.solve_timeout)
        return {"difficulty": handle_request(RequestKind.DIFFICULTY, city.border_hints, should_stop=should_stop)}
    if args.command == "check":
        if grid is None:
            raise ValueError("check needs --grid")
        return check_city(city.border_hints, grid)
    raise ValueError(f"Unknown command {args.command!r}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--config", type=str, default=None, help="YAML config file")
    ap.add_argument("--log-level", type=str, default=None)
    sub = ap.add_subparsers(dest="command", required=True)

    dec = sub.add_parser("decode", help="Show the border hints of a city id")
    dec.add_argument("city_id")

    for name, help_text in (
        ("encode", "Build a city id from border hints"),
        ("solve", "Solve a city and print every move"),
        ("hint", "Print the next move for the given grid"),
        ("difficulty", "Rate a city"),
        ("check", "Report errors in a grid"),
    ):
        p = sub.add_parser(name, help=help_text)
        if name != "encode":
            p.add_argument("city_id", nargs="?", default=None)
            p.add_argument("--grid", type=str, default=None, help='rows separated by ";", e.g. "1,2;2,1"')
        else:
            p.set_defaults(city_id=None)
        p.add_argument("--top", type=str, default="", help="comma separated, left to right")
        p.add_argument("--right", type=str, default="", help="comma separated, top to bottom")
        p.add_argument("--bottom", type=str, default="", help="comma separated, right to left")
        p.add_argument("--left", type=str, default="", help="comma separated, bottom to top")
    return ap


def main(args) -> int:
    cfg = load_config(args.config, log_level=args.log_level)
    logging.basicConfig(level=str(cfg.log_level).upper(), format="%(levelname)s %(name)s: %(message)s")
    try:
        payload = run(args, cfg)
    except CodecError as exc:
        print(f"Invalid city or state: {exc}", file=sys.stderr)
        return 2
    except TimeoutError as exc:
        print(f"Gave up after {cfg.solve_timeout}s: {exc}", file=sys.stderr)
        return 3
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main(build_parser().parse_args()))
