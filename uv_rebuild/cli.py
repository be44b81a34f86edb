"""
Command Line Interface for the UV rebuild tools.
"""

import argparse
import sys
import json
import logging

from .utils.logger import setup_logger, get_logger
from .utils.error_handler import UVRebuildError
from .mesh.mesh_io import load_mesh, save_mesh
from .core.subdivider import UVSubdivider
from .core.validator import UVValidator
from .atlas.packer import AtlasPacker, PackResult
from .atlas.padding import assess_quality
from .atlas.compositor import PILImageProvider, compose_atlas, save_atlas
from .atlas.uv_remap import remap_mesh_uvs
from .batch.batch_processor import BatchProcessor, pack_with_growth
from .batch.config_manager import ConfigManager
from .visualization.uv_viewer import UVViewer


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="uv-rebuild",
        description="UV Rebuild - Split mesh UVs into unit tiles and pack texture atlases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Split triangles whose UVs cross tile boundaries
  uv-rebuild subdivide wall.npz -o wall_subdivided.npz

  # Show mesh statistics
  uv-rebuild inspect wall.npz

  # Pack textures into a 1024 atlas and keep the layout
  uv-rebuild pack a.png b.png c.png -o atlas.png --atlas-size 1024 --layout atlas.json

  # Move a mesh's UVs into its atlas cell
  uv-rebuild remap wall.npz --layout atlas.json --image-index 1 -o wall_atlas.npz

  # Draw a UV layout
  uv-rebuild view wall.npz -o wall_uv.png
"""
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subdivide_parser = subparsers.add_parser('subdivide', help='Split triangles crossing UV tiles')
    subdivide_parser.add_argument('input', help='Input mesh file (.npz or .json)')
    subdivide_parser.add_argument('-o', '--output', required=True, help='Output mesh file')
    subdivide_parser.add_argument('--preset', default='default', help='Use configuration preset')
    subdivide_parser.add_argument('--threshold', type=float, help='UV bound above which triangles are split')
    subdivide_parser.add_argument('--max-depth', type=int, help='Recursion limit per triangle')
    subdivide_parser.add_argument('--no-format', action='store_true', help='Skip shifting pieces into [0,1]')
    subdivide_parser.add_argument('--recalculate-normals', action='store_true',
                                  help='Compute normals when the input has none')
    subdivide_parser.add_argument('--recalculate-tangents', action='store_true',
                                  help='Compute tangents when the input has none')

    inspect_parser = subparsers.add_parser('inspect', help='Validate and describe a mesh')
    inspect_parser.add_argument('file', help='Mesh file to inspect')
    inspect_parser.add_argument('--threshold', type=float, default=1.0, help='UV range upper bound')
    inspect_parser.add_argument('--output', help='Output report file')

    pack_parser = subparsers.add_parser('pack', help='Pack images into an atlas')
    pack_parser.add_argument('images', nargs='+', help='Image files')
    pack_parser.add_argument('-o', '--output', required=True, help='Atlas image path')
    pack_parser.add_argument('--preset', default='default', help='Use configuration preset')
    pack_parser.add_argument('--atlas-size', type=int, help='Atlas side in pixels')
    pack_parser.add_argument('--padding', type=int, help='Padding around each image')
    pack_parser.add_argument('--no-mipmap-safe', action='store_true',
                             help='Use the base padding even when it is narrower than the edge padding')
    pack_parser.add_argument('--no-extrude', action='store_true', help='Do not extrude image edges')
    pack_parser.add_argument('--grow', action='store_true', help='Double the atlas size until everything fits')
    pack_parser.add_argument('--max-size', type=int, default=8192, help='Largest atlas size tried with --grow')
    pack_parser.add_argument('--layout', help='Write the packing layout to this JSON file')

    remap_parser = subparsers.add_parser('remap', help='Move mesh UVs into an atlas cell')
    remap_parser.add_argument('input', help='Input mesh file')
    remap_parser.add_argument('--layout', required=True, help='Layout JSON written by pack')
    remap_parser.add_argument('--image-index', type=int, required=True, help='Packed image used by the mesh')
    remap_parser.add_argument('-o', '--output', required=True, help='Output mesh file')
    remap_parser.add_argument('--no-shrink', action='store_true', help='Skip the mipmap-safe UV inset')

    view_parser = subparsers.add_parser('view', help='Visualize a UV layout or atlas layout')
    view_parser.add_argument('file', help='Mesh file, or layout JSON with --layout')
    view_parser.add_argument('-o', '--output', help='Output image file')
    view_parser.add_argument('--layout', action='store_true', help='FILE is a layout JSON written by pack')
    view_parser.add_argument('--texture', help='Texture to draw under the UV layout')
    view_parser.add_argument('--no-grid', action='store_true', help='Hide the UV tile grid')

    batch_parser = subparsers.add_parser('batch', help='Subdivide many mesh files')
    batch_parser.add_argument('config', nargs='?', help='Batch configuration JSON file')
    batch_parser.add_argument('--input-dir', help='Subdivide every matching file of this directory')
    batch_parser.add_argument('--output-dir', help='Output directory for --input-dir')
    batch_parser.add_argument('--pattern', default='*.npz', help='File pattern for --input-dir')
    batch_parser.add_argument('--preset', default='default', help='Use configuration preset')
    batch_parser.add_argument('-o', '--output', help='Output report file')
    batch_parser.add_argument('--stop-on-error', action='store_true', help='Stop on first error')

    presets_parser = subparsers.add_parser('presets', help='List available presets')
    presets_parser.add_argument('--show', metavar='NAME', help='Print the settings of one preset')

    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--log-dir', help='Directory for log files')

    return parser


def cmd_subdivide(args) -> int:
    """Execute subdivide command."""
    logger = get_logger('uv_rebuild')

    try:
        config = ConfigManager().create_config(
            args.preset,
            threshold=args.threshold,
            max_depth=args.max_depth,
            format_uvs=False if args.no_format else None,
            recalculate_normals=True if args.recalculate_normals else None,
            recalculate_tangents=True if args.recalculate_tangents else None,
        )

        mesh = load_mesh(args.input)
        subdivider = UVSubdivider(config.subdivision)
        result = subdivider.subdivide(mesh)
        save_mesh(result, args.output)

        stats = subdivider.last_stats
        print(f"\nSubdivision completed: {args.output}")
        print(f"  Triangles: {stats.input_triangles} -> {stats.output_triangles}")
        print(f"  Vertices: {stats.input_vertices} -> {stats.output_vertices}")
        print(f"  Split triangles: {stats.split_triangles}")
        print(f"  Deepest split: {stats.max_depth_reached}")
        if config.subdivision.format_uvs:
            print(f"  Shifted triangles: {stats.formatted_triangles}")
            print(f"  Cloned vertices: {stats.cloned_vertices}")
        return 0

    except (UVRebuildError, OSError, ValueError) as e:
        logger.error(f"Subdivision failed: {e}")
        return 1


def cmd_inspect(args) -> int:
    """Execute inspect command."""
    logger = get_logger('uv_rebuild')

    try:
        mesh = load_mesh(args.file)
        validator = UVValidator(threshold=args.threshold)
        report = validator.generate_report(mesh)

        print(report)

        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(report)
            print(f"\nReport saved to: {args.output}")

        return 0 if validator.validate_mesh(mesh).is_valid else 1

    except (UVRebuildError, OSError, ValueError) as e:
        logger.error(f"Inspection failed: {e}")
        return 1


def cmd_pack(args) -> int:
    """Execute pack command."""
    logger = get_logger('uv_rebuild')

    try:
        config = ConfigManager().create_config(
            args.preset,
            atlas_size=args.atlas_size,
            base_padding=args.padding,
            mipmap_safe=False if args.no_mipmap_safe else None,
            extrude_edges=False if args.no_extrude else None,
        )
        atlas = config.atlas

        provider = PILImageProvider.from_files(args.images)
        sizes = provider.image_sizes()

        if args.grow:
            result = pack_with_growth(sizes, config, args.max_size)
        else:
            result = AtlasPacker(atlas.atlas_size, atlas.base_padding, atlas.mipmap_safe).pack(sizes)

        if not result.success:
            print(f"Packing failed: {result.message}")
            return 1

        buffer = compose_atlas(result, provider, extrude=atlas.extrude_edges)
        save_atlas(buffer, args.output)

        if args.layout:
            layout = result.to_dict()
            layout['images'] = list(args.images)
            with open(args.layout, 'w', encoding='utf-8') as f:
                json.dump(layout, f, indent=2)

        print(f"\nAtlas saved to: {args.output}")
        print(f"  Size: {result.atlas_size}x{result.atlas_size}")
        print(f"  Images: {result.image_count}")
        print(f"  Padding: {result.padding}px (edge extrusion {result.edge_padding}px)")
        print(f"  Fill: {result.placed_area / result.atlas_size ** 2:.1%}")

        smallest = min(min(w, h) for w, h in sizes)
        quality = assess_quality(result.atlas_size, smallest, result.edge_padding)
        print(f"  Mipmap quality: {quality.rating}")
        return 0

    except (UVRebuildError, OSError) as e:
        logger.error(f"Packing failed: {e}")
        return 1


def _load_layout(path: str) -> PackResult:
    with open(path, 'r', encoding='utf-8') as f:
        return PackResult.from_dict(json.load(f))


def cmd_remap(args) -> int:
    """Execute remap command."""
    logger = get_logger('uv_rebuild')

    try:
        result = _load_layout(args.layout)
        mesh = load_mesh(args.input)
        remapped = remap_mesh_uvs(mesh, result, args.image_index, shrink=not args.no_shrink)
        save_mesh(remapped, args.output)

        print(f"Remapped {remapped.vertex_count} UVs to image {args.image_index}: {args.output}")
        return 0

    except (UVRebuildError, OSError, ValueError, KeyError) as e:
        logger.error(f"Remap failed: {e}")
        return 1


def cmd_view(args) -> int:
    """Execute view command."""
    logger = get_logger('uv_rebuild')

    viewer = UVViewer()
    if not viewer.available:
        logger.error("matplotlib is required for visualization")
        return 1

    try:
        if args.layout:
            result = _load_layout(args.file)
            output_path = args.output or "atlas_layout.png"
            viewer.visualize_atlas(result, output_path)
        else:
            mesh = load_mesh(args.file)
            output_path = args.output or f"{mesh.name}_uv.png"
            if args.texture:
                viewer.visualize_uv_with_texture(mesh, args.texture, output_path)
            else:
                viewer.visualize_uv(mesh, output_path, show_tile_grid=not args.no_grid)

        print(f"Visualization saved to: {output_path}")
        return 0

    except (UVRebuildError, OSError, ValueError, KeyError) as e:
        logger.error(f"View failed: {e}")
        return 1


def cmd_batch(args) -> int:
    """Execute batch command."""
    logger = get_logger('uv_rebuild')

    processor = BatchProcessor()

    try:
        config = processor.config_manager.create_config(args.preset)

        if args.config:
            items, file_config = processor.load_batch_config(args.config)
            if file_config is not None:
                config = file_config
        elif args.input_dir and args.output_dir:
            items = processor.create_batch_from_directory(
                args.input_dir, args.output_dir, pattern=args.pattern
            )
        else:
            logger.error("Give a batch config file or --input-dir with --output-dir")
            return 1

        result = processor.process_batch(items, config, stop_on_error=args.stop_on_error)

        report = processor.generate_report(result, args.output)
        print(report)

        return 0 if result.failed == 0 else 1

    except (UVRebuildError, OSError, ValueError) as e:
        logger.error(f"Batch processing failed: {e}")
        return 1


def cmd_presets(args) -> int:
    """List available presets."""
    config_manager = ConfigManager()

    if args.show:
        info = config_manager.get_preset_info(args.show)
        if info is None:
            print(f"Preset not found: {args.show}")
            return 1
        print(json.dumps(info, indent=2))
        return 0

    print("\nAvailable Presets:")
    print("-" * 50)

    for name in config_manager.get_preset_names():
        info = config_manager.get_preset_info(name)
        print(f"\n  {name}:")
        print(f"    {info['description']}")

    return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    console_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logger(log_dir=args.log_dir, console_level=console_level)

    commands = {
        'subdivide': cmd_subdivide,
        'inspect': cmd_inspect,
        'pack': cmd_pack,
        'remap': cmd_remap,
        'view': cmd_view,
        'batch': cmd_batch,
        'presets': cmd_presets,
    }

    if args.command in commands:
        return commands[args.command](args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
