#!/usr/bin/env python3
"""
Palette Grid - quantize captured images to a palette grid and publish them as UV strings
"""
import argparse
import signal
import sys

import cv2

from . import config
from .capture import ClipboardSource, FileSource
from .config import GridConfig
from .errors import PaletteGridError
from .palette import load_palette
from .quantizer import GridEncoder, render_preview
from .sinks import FileSink, RegistrySink, StreamSink
from .uv_codec import index_to_uv
from .watcher import CaptureWatcher


def _add_grid_args(parser):
    parser.add_argument('--palette', default=None,
                        help='Reference palette image (default: bundled palette)')
    parser.add_argument('--cols', type=int, default=config.PALETTE_COLS,
                        help=f'Palette columns (default: {config.PALETTE_COLS})')
    parser.add_argument('--rows', type=int, default=config.PALETTE_ROWS,
                        help=f'Palette rows (default: {config.PALETTE_ROWS})')
    parser.add_argument('--width', type=int, default=config.OUTPUT_WIDTH,
                        help=f'Output grid width (default: {config.OUTPUT_WIDTH})')
    parser.add_argument('--height', type=int, default=config.OUTPUT_HEIGHT,
                        help=f'Output grid height (default: {config.OUTPUT_HEIGHT})')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='palette-grid',
        description='Quantize images to a palette grid and encode them as UV coordinates',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Watch the clipboard and write each new image to the registry (Windows)
  palette-grid watch

  # Watch a screenshot file and mirror the encoded grid into a text file
  palette-grid watch --source file --input shot.png --sink file --output grid.txt

  # Encode a single image to stdout
  palette-grid encode flag.png
        '''
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    watch_parser = subparsers.add_parser('watch', help='Poll a capture source and publish changes')
    _add_grid_args(watch_parser)
    watch_parser.add_argument('--source', choices=['clipboard', 'file'], default='clipboard',
                              help='Capture source (default: clipboard)')
    watch_parser.add_argument('--input', help='Image file polled by --source file')
    watch_parser.add_argument('--sink', choices=['registry', 'file', 'stdout'], default='registry',
                              help='Where encoded strings go (default: registry)')
    watch_parser.add_argument('--output', help='Output file for --sink file')
    watch_parser.add_argument('--interval', type=float, default=config.POLL_INTERVAL,
                              help=f'Seconds between polls (default: {config.POLL_INTERVAL})')
    watch_parser.add_argument('--registry-path', default=config.REGISTRY_PATH,
                              help='Registry key under HKEY_CURRENT_USER')
    watch_parser.add_argument('--value-name', default=config.REGISTRY_VALUE_NAME,
                              help='Registry value name')

    encode_parser = subparsers.add_parser('encode', help='Encode one image file')
    _add_grid_args(encode_parser)
    encode_parser.add_argument('image', help='Image file to encode')
    encode_parser.add_argument('--output', help='Write to this file instead of stdout')

    palette_parser = subparsers.add_parser('palette', help='Print the sampled palette')
    _add_grid_args(palette_parser)

    preview_parser = subparsers.add_parser('preview', help='Write the quantized image for inspection')
    _add_grid_args(preview_parser)
    preview_parser.add_argument('image', help='Image file to quantize')
    preview_parser.add_argument('out', help='Output image path (e.g. preview.png)')
    preview_parser.add_argument('--scale', type=int, default=8, help='Pixels per grid cell (default: 8)')

    return parser


def _grid_config(args) -> GridConfig:
    try:
        return GridConfig(palette_cols=args.cols, palette_rows=args.rows,
                          out_width=args.width, out_height=args.height)
    except (TypeError, ValueError) as e:
        raise SystemExit(f"Error: {e}")


def _read_image(path):
    source = FileSource(path)
    image = source.grab()
    if image is None:
        raise SystemExit(f"Error: cannot read image {path}")
    return image


def _make_source(args):
    if args.source == 'file':
        if not args.input:
            raise SystemExit("Error: --source file needs --input")
        return FileSource(args.input)
    return ClipboardSource()


def _make_sink(args):
    if args.sink == 'file':
        if not args.output:
            raise SystemExit("Error: --sink file needs --output")
        return FileSink(args.output)
    if args.sink == 'stdout':
        return StreamSink(sys.stdout)
    return RegistrySink(args.registry_path, args.value_name)


def cmd_watch(args, grid, palette):
    source = _make_source(args)
    sink = _make_sink(args)

    def report(timestamp, encoded):
        print(f"[WATCH] Last update: {timestamp} ({grid.token_count} cells)", file=sys.stderr)

    watcher = CaptureWatcher(source, sink, palette, grid, interval=args.interval, on_update=report)

    def signal_handler(sig, frame):
        print("\nShutting down...", file=sys.stderr)
        watcher.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    watcher.start()
    watcher.wait()
    if watcher.error is not None:
        return 1
    return 0


def cmd_encode(args, grid, palette):
    encoded = GridEncoder(palette, grid).encode(_read_image(args.image))
    sink = FileSink(args.output) if args.output else StreamSink(sys.stdout)
    sink.write(encoded)
    sink.close()
    return 0


def cmd_palette(args, grid, palette):
    for i, (r, g, b) in enumerate(palette):
        row, col = palette.index_to_cell(i)
        u, v = index_to_uv(i, palette.cols, palette.rows)
        print(f"{i:3d}  row={row} col={col}  rgb=({r:3d}, {g:3d}, {b:3d})  uv={u:.2f}:{v:.2f}")
    return 0


def cmd_preview(args, grid, palette):
    indices = GridEncoder(palette, grid).quantize(_read_image(args.image))
    image = render_preview(indices, palette, scale=args.scale)
    if not cv2.imwrite(args.out, cv2.cvtColor(image, cv2.COLOR_RGB2BGR)):
        print(f"Error: failed to write {args.out}", file=sys.stderr)
        return 1
    print(f"Preview saved as '{args.out}'", file=sys.stderr)
    return 0


COMMANDS = {
    'watch': cmd_watch,
    'encode': cmd_encode,
    'palette': cmd_palette,
    'preview': cmd_preview,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    grid = _grid_config(args)

    # no palette, no pipeline
    try:
        palette = load_palette(args.palette, grid.palette_cols, grid.palette_rows)
    except PaletteGridError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"[PALETTE] Sampled {len(palette)} colours ({palette.cols}x{palette.rows})", file=sys.stderr)

    try:
        return COMMANDS[args.command](args, grid, palette)
    except PaletteGridError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
