"""
Render configuration files.

A render configuration names the worlds to read and the maps to render
from them::

    output_dir = output
    threads = 4

    [world:earth]
    input_dir = worlds/earth

    [map:earth_day]
    world = earth
    texture_dir = textures/default
    name = Earth by day
    tile_size = 256
    block_size = 16

Relative paths are resolved against the directory of the configuration file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from blockmap.settings.types import ConfigError, ValidationResult
from .extended_ini import ConfigFile, ConfigSection

logger = logging.getLogger(__name__)

DEFAULT_TILE_SIZE = 256
DEFAULT_BLOCK_SIZE = 16


def _parse_int(section: ConfigSection, key: str, default: Optional[int], errors: List[str]) -> Optional[int]:
    if not section.has(key):
        return default
    value = section.get(key)
    try:
        return int(value)
    except ValueError:
        where = f"section '{section.name_type}'" if section.is_named else "root section"
        errors.append(f"Invalid integer for '{key}' in {where}: '{value}'")
        return default


@dataclass
class WorldConfig:
    name: str
    input_dir: Path


@dataclass
class MapConfig:
    name: str
    world: str
    texture_dir: Path
    title: str
    tile_size: int = DEFAULT_TILE_SIZE
    block_size: int = DEFAULT_BLOCK_SIZE


class RenderConfig:
    """Worlds and maps of one render configuration."""

    def __init__(self, config: ConfigFile, base_dir: Union[str, Path] = "."):
        self.config = config
        self.base_dir = Path(base_dir)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self._errors: List[str] = []
        root = config.root

        output_dir = root.get("output_dir")
        self.output_dir: Optional[Path] = self._resolve(output_dir) if output_dir else None
        self.threads: Optional[int] = _parse_int(root, "threads", None, self._errors)

        self.worlds: Dict[str, WorldConfig] = {}
        for section in config.sections_of_type("world"):
            self.worlds[section.name] = WorldConfig(
                name=section.name,
                input_dir=self._resolve(section.get("input_dir")),
            )

        self.maps: Dict[str, MapConfig] = {}
        for section in config.sections_of_type("map"):
            self.maps[section.name] = MapConfig(
                name=section.name,
                world=section.get("world"),
                texture_dir=self._resolve(section.get("texture_dir")),
                title=section.get("name", section.name),
                tile_size=_parse_int(section, "tile_size", DEFAULT_TILE_SIZE, self._errors),
                block_size=_parse_int(section, "block_size", DEFAULT_BLOCK_SIZE, self._errors),
            )

        for section in config.sections:
            if section.type not in ("world", "map"):
                self._errors.append(f"Unknown section type '{section.type}' of section '{section.name}'")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RenderConfig":
        """Load a render configuration.

        Raises:
            ConfigError: If the file cannot be read
            ConfigParseError: If the file is malformed
        """
        path = Path(path)
        config = ConfigFile().load_file(path)
        return cls(config, path.parent)

    @classmethod
    def from_string(cls, text: str, base_dir: Union[str, Path] = ".") -> "RenderConfig":
        return cls(ConfigFile().load(text), base_dir)

    def _resolve(self, value: str) -> Path:
        path = Path(value)
        if not path.is_absolute():
            path = self.base_dir / path
        return path

    def get_map(self, name: str) -> MapConfig:
        try:
            return self.maps[name]
        except KeyError:
            raise ConfigError(f"Unknown map '{name}'")

    def world_of(self, map_config: MapConfig) -> WorldConfig:
        try:
            return self.worlds[map_config.world]
        except KeyError:
            raise ConfigError(f"Map '{map_config.name}' uses unknown world '{map_config.world}'")

    def validate(self) -> ValidationResult:
        """Check the configuration before anything is rendered."""
        errors = list(self._errors)
        warnings: List[str] = []

        if self.output_dir is None:
            errors.append("No output directory ('output_dir') specified")
        if self.threads is not None and self.threads < 1:
            errors.append(f"Invalid thread count: {self.threads}")

        for world in self.worlds.values():
            if not self.config.get_section("world", world.name).has("input_dir"):
                errors.append(f"World '{world.name}': no input directory ('input_dir') specified")
            elif not world.input_dir.is_dir():
                warnings.append(f"World '{world.name}': input directory {world.input_dir} does not exist")

        if not self.maps:
            errors.append("No maps specified")

        for map_config in self.maps.values():
            section = self.config.get_section("map", map_config.name)
            prefix = f"Map '{map_config.name}'"
            if not map_config.world:
                errors.append(f"{prefix}: no world specified")
            elif map_config.world not in self.worlds:
                errors.append(f"{prefix}: unknown world '{map_config.world}'")

            if not section.has("texture_dir"):
                errors.append(f"{prefix}: no texture directory ('texture_dir') specified")
            elif not map_config.texture_dir.is_dir():
                warnings.append(f"{prefix}: texture directory {map_config.texture_dir} does not exist")

            if map_config.block_size <= 0 or map_config.block_size % 4 != 0:
                errors.append(f"{prefix}: block size must be a positive multiple of 4, got {map_config.block_size}")
            if map_config.tile_size <= 0 or map_config.tile_size % 2 != 0:
                errors.append(f"{prefix}: tile size must be a positive even number, got {map_config.tile_size}")

        used_worlds = {map_config.world for map_config in self.maps.values()}
        for name in self.worlds:
            if name not in used_worlds:
                warnings.append(f"World '{name}' is not used by any map")

        for warning in warnings:
            self.logger.warning(warning)
        for error in errors:
            self.logger.error(error)

        return ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)
