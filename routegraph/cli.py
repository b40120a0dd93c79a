"""
Command-line entry point.

    routegraph compile city.osm.pbf --out build/ --admin admins.geojson
    routegraph stage transitions --out build/
    routegraph tile build/ 2048 1361 --z 12 --dest tiles/
"""

import argparse
import sys
from pathlib import Path

from routegraph.constants import TILE_ZOOM
from routegraph.pipeline import Pipeline, STAGE_ORDER
from routegraph.tiles import encode_tile, tile_index


def _print_summary(summary):
    for stage, tables in summary.items():
        counts = ", ".join(f"{table}={n:,}" for table, n in tables.items())
        print(f"[{stage}] {counts}")


def _cmd_compile(args):
    pipeline = Pipeline(args.out, fmt=args.format)
    tile_bounds = 'roads' if args.tiles == 'roads' else None
    summary = pipeline.run(args.osm, admin_polygons=args.admin, z=args.z, tile_bounds=tile_bounds)
    _print_summary(summary)
    return 0


def _cmd_stage(args):
    pipeline = Pipeline(args.out, fmt=args.format)
    if args.stage == 'classify':
        if not args.osm:
            raise SystemExit("stage 'classify' requires --osm")
        result = pipeline.classify(args.osm)
    elif args.stage == 'admin':
        if not args.admin:
            raise SystemExit("stage 'admin' requires --admin")
        result = pipeline.admin(args.admin)
    elif args.stage == 'tiles':
        result = pipeline.tiles(z=args.z)
    else:
        result = getattr(pipeline, args.stage)()
    _print_summary({args.stage: result})
    return 0


def _cmd_tile(args):
    pipeline = Pipeline(args.build, fmt=args.format)
    roads = pipeline.load('roads')
    intersections = pipeline.load('intersections')
    road_bytes, intersection_bytes = encode_tile(roads, intersections, args.x, args.y, args.z)
    dest = Path(args.dest)
    dest.mkdir(parents=True, exist_ok=True)
    index = tile_index(args.x, args.y, args.z)
    (dest / f"{index}.roads.parquet").write_bytes(road_bytes)
    (dest / f"{index}.intersections.parquet").write_bytes(intersection_bytes)
    print(f"[tile {args.z}/{args.x}/{args.y}] roads={len(road_bytes):,}B "
          f"intersections={len(intersection_bytes):,}B")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog='routegraph',
        description="Compile OpenStreetMap data into a routable road network.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--format', default='parquet', choices=['parquet', 'geojson'],
                        help="table file format (default: parquet)")
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('compile', help="run every stage")
    p.add_argument('osm', help=".osm / .osm.pbf extract")
    p.add_argument('--out', required=True, help="output directory")
    p.add_argument('--admin', help="admin polygon dataset (place_type, name, geometry)")
    p.add_argument('--z', type=int, default=TILE_ZOOM, help=f"tile zoom (default: {TILE_ZOOM})")
    p.add_argument('--tiles', choices=['all', 'roads'], default='roads',
                   help="generate the full grid or only tiles covering the roads (default: roads)")
    p.set_defaults(func=_cmd_compile)

    p = sub.add_parser('stage', help="re-run a single stage")
    p.add_argument('stage', choices=STAGE_ORDER)
    p.add_argument('--out', required=True, help="output directory")
    p.add_argument('--osm', help="extract for the classify stage")
    p.add_argument('--admin', help="admin polygon dataset for the admin stage")
    p.add_argument('--z', type=int, default=TILE_ZOOM)
    p.set_defaults(func=_cmd_stage)

    p = sub.add_parser('tile', help="encode one tile window for a routing engine")
    p.add_argument('build', help="output directory of a compile run")
    p.add_argument('x', type=int)
    p.add_argument('y', type=int)
    p.add_argument('--z', type=int, default=TILE_ZOOM)
    p.add_argument('--dest', default='tiles', help="destination directory (default: tiles)")
    p.set_defaults(func=_cmd_tile)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
