"""
Command-line entry point of the synapse counter.

Loads the persisted defaults, applies command-line overrides, runs the
batch and prints the results table (optionally writing it as CSV).
"""

from __future__ import annotations
import argparse
import logging
import signal
import sys
from dataclasses import replace
from typing import List, Optional

from ..addons import (
    RunOptions, Settings, format_table, load_settings, reset_settings, save_settings, write_csv,
)
from ..core import (
    IMAGE_TYPES, ColocalizationPipeline, PipelineConfig, channel_choices, default_channels,
    threshold_methods,
)
from .worker import BatchWorker, collect_items

logger = logging.getLogger("synapse_counter")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="synapse-counter",
        description="Count presynaptic, postsynaptic and colocalized particles in two-channel images.",
    )
    ap.add_argument("inputs", nargs="*", help="image files and/or folders (default: stored input folder)")
    ap.add_argument("--recursive", action=argparse.BooleanOptionalAction, default=None,
                    help="search sub-folders of input folders")
    ap.add_argument("--output-dir", default=None,
                    help="save presyn/postsyn/coloc masks as <file>-<tag>.tiff in this folder")
    ap.add_argument("--results", default=None, help="write the results table to this CSV file")

    g = ap.add_argument_group("analysis settings (default: stored settings)")
    g.add_argument("--image-type", choices=IMAGE_TYPES, default=None)
    g.add_argument("--pre", default=None, help="presynaptic channel (C1..C5 or green/blue/red)")
    g.add_argument("--post", default=None, help="postsynaptic channel (C1..C5 or green/blue/red)")
    g.add_argument("--resize-width", type=int, default=None, help="resize width in px; 0 = no resize")
    g.add_argument("--rolling-ball", type=float, default=None, help="rolling ball radius (px)")
    g.add_argument("--max-filter", type=float, default=None, help="maximum filter radius (px)")
    g.add_argument("--threshold", choices=threshold_methods(), default=None,
                   help="automatic threshold method")
    g.add_argument("--min-pre", type=float, default=None, help="min. presynaptic particle size (px² or voxels)")
    g.add_argument("--max-pre", type=float, default=None, help="max. presynaptic particle size (px² or voxels)")
    g.add_argument("--min-post", type=float, default=None, help="min. postsynaptic particle size (px² or voxels)")
    g.add_argument("--max-post", type=float, default=None, help="max. postsynaptic particle size (px² or voxels)")
    g.add_argument("--3d", dest="is_3d", action=argparse.BooleanOptionalAction, default=None,
                   help="analyze stacks as 3D voxel clusters")

    s = ap.add_argument_group("settings file")
    s.add_argument("--settings", default=None, help="settings JSON (default: ~/.synapse_counter.json)")
    s.add_argument("--save-settings", action="store_true", help="store the effective settings as new defaults")
    s.add_argument("--reset-settings", action="store_true", help="restore built-in defaults and exit")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return ap


def apply_overrides(args: argparse.Namespace, settings: Settings) -> Settings:
    """Merge command-line values over stored settings."""
    p = settings.pipeline
    overrides = {
        "image_type": args.image_type,
        "pre_channel": args.pre,
        "post_channel": args.post,
        "resize_width": args.resize_width,
        "rolling_ball_radius": args.rolling_ball,
        "max_filter_radius": args.max_filter,
        "threshold_method": args.threshold,
        "min_size_pre": args.min_pre,
        "max_size_pre": args.max_pre,
        "min_size_post": args.min_post,
        "max_size_post": args.max_post,
        "is_3d": args.is_3d,
    }
    pipeline: PipelineConfig = replace(p, **{k: v for k, v in overrides.items() if v is not None})

    # Stored tags of the other image type are replaced by that type's defaults
    choices = channel_choices(pipeline.image_type)
    pre_def, post_def = default_channels(pipeline.image_type)
    if pipeline.pre_channel not in choices and args.pre is None:
        pipeline = replace(pipeline, pre_channel=pre_def)
    if pipeline.post_channel not in choices and args.post is None:
        pipeline = replace(pipeline, post_channel=post_def)

    run = settings.run
    run = RunOptions(
        input_dir=args.inputs[0] if len(args.inputs) == 1 else run.input_dir,
        output_dir=args.output_dir if args.output_dir is not None else run.output_dir,
        recursive=args.recursive if args.recursive is not None else run.recursive,
        save_outputs=args.output_dir is not None or run.save_outputs,
    )
    return Settings(pipeline=pipeline, run=run)


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.reset_settings:
        reset_settings(args.settings)
        logger.info("Settings reset to defaults")
        return 0

    settings = apply_overrides(args, load_settings(args.settings))
    try:
        config = settings.pipeline.validate()
    except ValueError as e:
        ap.error(str(e))

    inputs = args.inputs or ([settings.run.input_dir] if settings.run.input_dir else [])
    if not inputs:
        ap.error("no input images or folders given")

    if args.save_settings:
        save_settings(settings, args.settings)

    output_dir = settings.run.output_dir if settings.run.save_outputs and settings.run.output_dir else None
    pipeline = ColocalizationPipeline(config)
    worker = BatchWorker(pipeline, output_dir=output_dir)

    def on_sigint(signum, frame):
        logger.warning("Cancel requested; stopping after the current image (Ctrl+C again to abort)")
        worker.cancel()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    previous = signal.signal(signal.SIGINT, on_sigint)
    try:
        table = worker.run(collect_items(inputs, settings.run.recursive))
    finally:
        signal.signal(signal.SIGINT, previous)

    print(format_table(table))
    if args.results:
        write_csv(args.results, table)
        logger.info("Results written to %s", args.results)
    if worker.skipped:
        logger.warning("%d image(s) skipped", len(worker.skipped))
    return 0


if __name__ == "__main__":
    sys.exit(main())
