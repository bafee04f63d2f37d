"""
Command line entry point for blockmap.
Usage: python -m blockmap render CONFIG [--map NAME] [--threads N]
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from . import __version__
from .config import ConfigParseError, MapConfig, RenderConfig
from .render import FileTileStore, TileRenderer, TileSet
from .settings import AppSettings, ConfigError
from .textures import BlockTextures
from .thread import (
    Dispatcher, LoggingProgressHandler, RenderStatus, RenderSummary, RenderWorkContext,
    create_dispatcher,
)
from .utils.logging_config import setup_logging
from .world import CollaboratorError, WorldCache

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blockmap",
        description="Render a voxel world into an isometric tile pyramid.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--settings", metavar="FILE",
        help="INI file with user settings instead of the platform settings store",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable DEBUG-level console logging.")

    commands = parser.add_subparsers(dest="command", required=True)

    render = commands.add_parser("render", help="Render the maps of a configuration file")
    render.add_argument("config", help="Render configuration file")
    render.add_argument("--map", "-m", dest="maps", action="append", metavar="NAME",
                        help="Render only this map (may be given several times)")
    render.add_argument("--threads", "-j", type=int, metavar="N",
                        help="Worker threads (default: configuration file, then settings)")
    render.add_argument("--single-thread", action="store_true",
                        help="Render in the calling thread only")

    check = commands.add_parser("check", help="Validate a configuration file without rendering")
    check.add_argument("config", help="Render configuration file")

    return parser


def load_config(path: str) -> Optional[RenderConfig]:
    """Load and validate a render configuration. Errors are logged."""
    try:
        config = RenderConfig.from_file(path)
    except ConfigParseError as e:
        logger.error(f"Unable to parse configuration file {path}: {e}")
        return None
    except ConfigError as e:
        logger.error(str(e))
        return None

    validation = config.validate()
    if not validation.is_valid:
        logger.error(f"Configuration file {path} is invalid")
        return None
    return config


def render_map(config: RenderConfig, map_config: MapConfig, dispatcher: Dispatcher,
               progress_step: int = 10) -> RenderSummary:
    """Render one map into ``output_dir/<map name>``.

    Raises:
        CollaboratorError: If the world or the textures cannot be opened
        ConfigError: If the textures do not fit the map
    """
    world_config = config.world_of(map_config)
    if config.output_dir is None:
        raise ConfigError("No output_dir configured")

    world = WorldCache(world_config.input_dir)
    textures = BlockTextures.load(map_config.texture_dir)
    if textures.block_size != map_config.block_size:
        raise ConfigError(
            f"Map '{map_config.name}': textures in {map_config.texture_dir} are "
            f"{textures.block_size}px blocks, expected {map_config.block_size}px"
        )

    renderer = TileRenderer(world, textures, map_config.tile_size)
    tile_set = TileSet.for_world(world, map_config.block_size, map_config.tile_size)
    store = FileTileStore(config.output_dir / map_config.name)
    context = RenderWorkContext(renderer, tile_set, store)

    logger.info(f"Rendering map '{map_config.title}' from world '{world_config.name}'")
    summary = dispatcher.dispatch(context, LoggingProgressHandler(progress_step))

    store.write_metadata({
        "name": map_config.title,
        "world": world_config.name,
        "depth": tile_set.depth,
        "tile_size": map_config.tile_size,
        "block_size": map_config.block_size,
        "offset": [tile_set.offset_x, tile_set.offset_y],
        "status": summary.status.name.lower(),
    })
    return summary


def run_render(args: argparse.Namespace, settings: AppSettings) -> int:
    config = load_config(args.config)
    if config is None:
        return 1

    names = args.maps or list(config.maps)
    unknown = [name for name in names if name not in config.maps]
    if unknown:
        logger.error(f"Unknown maps: {', '.join(unknown)}")
        return 1

    if args.threads is not None and args.threads < 1:
        logger.error(f"Thread count must be at least 1: {args.threads}")
        return 1
    threads = args.threads
    if threads is None:
        threads = config.threads or settings.render.effective_thread_count
    single_thread = args.single_thread or (args.threads is None and settings.render.dispatcher == "single")
    dispatcher = create_dispatcher(threads, single_thread)

    def on_interrupt(signum, frame):
        logger.warning("Interrupted, finishing started tiles")
        dispatcher.cancel()

    previous_handler = signal.signal(signal.SIGINT, on_interrupt)
    exit_code = 0
    try:
        for name in names:
            map_config = config.maps[name]
            try:
                summary = render_map(config, map_config, dispatcher, settings.render.progress_step)
            except ConfigError as e:
                logger.error(str(e))
                return 1
            except CollaboratorError as e:
                logger.error(f"Map '{name}' not rendered: {e}")
                return RenderStatus.ABORTED.exit_code

            print(f"{name}: {summary}")
            for error in summary.errors:
                logger.debug(f"  {error}")
            exit_code = max(exit_code, summary.exit_code)
            if summary.status is RenderStatus.ABORTED:
                break
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    return exit_code


def run_check(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    if config is None:
        return 1
    print(f"{args.config}: {len(config.worlds)} worlds, {len(config.maps)} maps, ok")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    settings = AppSettings(settings_file=args.settings)
    setup_logging(settings, "DEBUG" if args.verbose else None)

    validation = settings.validate()
    for warning in validation.warnings:
        logger.warning(f"Settings: {warning}")
    if not validation.is_valid:
        for error in validation.errors:
            logger.error(f"Settings: {error}")
        return 1

    if args.command == "check":
        return run_check(args)
    return run_render(args, settings)


if __name__ == "__main__":
    sys.exit(main())
