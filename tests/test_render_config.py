"""Tests for render configuration files."""

import pytest

from blockmap.config import RenderConfig
from blockmap.settings import ConfigError


def write_config(tmp_path, text: str):
    (tmp_path / "worlds" / "earth").mkdir(parents=True)
    (tmp_path / "textures").mkdir()
    path = tmp_path / "render.conf"
    path.write_text(text, encoding="utf-8")
    return path


VALID = """\
output_dir = out
threads = 2

[world:earth]
input_dir = worlds/earth

[map:day]
world = earth
texture_dir = textures
name = Earth by day
tile_size = 128
block_size = 12
"""


class TestRenderConfig:
    """Test reading render configurations."""

    def test_valid_config(self, tmp_path) -> None:
        """Test values, defaults and path resolution of a valid file."""
        config = RenderConfig.from_file(write_config(tmp_path, VALID))
        result = config.validate()

        assert result.is_valid, result.errors
        assert result.warnings == []
        assert config.output_dir == tmp_path / "out"
        assert config.threads == 2
        assert config.worlds["earth"].input_dir == tmp_path / "worlds" / "earth"

        day = config.get_map("day")
        assert day.title == "Earth by day"
        assert day.texture_dir == tmp_path / "textures"
        assert (day.tile_size, day.block_size) == (128, 12)
        assert config.world_of(day).name == "earth"

    def test_defaults(self, tmp_path) -> None:
        """Test a map without sizes or title uses the defaults."""
        config = RenderConfig.from_string(
            "output_dir = /tmp/out\n[world:w]\ninput_dir = w\n[map:m]\nworld = w\ntexture_dir = t\n",
            tmp_path,
        )
        m = config.get_map("m")

        assert m.title == "m"
        assert (m.tile_size, m.block_size) == (256, 16)
        assert config.threads is None

    def test_absolute_paths_are_kept(self, tmp_path) -> None:
        """Test absolute paths are not joined with the base directory."""
        absolute = tmp_path / "elsewhere"
        config = RenderConfig.from_string(f"output_dir = {absolute}\n", "/somewhere")

        assert config.output_dir == absolute

    def test_missing_output_dir_and_maps(self, tmp_path) -> None:
        """Test the two errors of an empty configuration."""
        result = RenderConfig.from_string("", tmp_path).validate()

        assert not result.is_valid
        assert any("output_dir" in e for e in result.errors)
        assert any("No maps" in e for e in result.errors)

    def test_unknown_world(self, tmp_path) -> None:
        """Test a map referring to an undefined world."""
        config = RenderConfig.from_string(
            "output_dir = out\n[map:m]\nworld = mars\ntexture_dir = t\n", tmp_path
        )
        result = config.validate()

        assert not result.is_valid
        assert any("unknown world 'mars'" in e for e in result.errors)
        with pytest.raises(ConfigError):
            config.world_of(config.get_map("m"))

    @pytest.mark.parametrize(
        "key, value",
        [
            ("block_size", "10"),
            ("block_size", "0"),
            ("block_size", "big"),
            ("tile_size", "255"),
            ("tile_size", "-2"),
        ],
    )
    def test_invalid_sizes(self, tmp_path, key: str, value: str) -> None:
        """Test sizes the projection cannot work with are rejected."""
        text = VALID.replace(f"{key} = ", f"{key} = {value}\n# ")
        result = RenderConfig.from_file(write_config(tmp_path, text)).validate()

        assert not result.is_valid

    def test_warnings(self, tmp_path) -> None:
        """Test missing directories and unused worlds only warn."""
        config = RenderConfig.from_string(
            "output_dir = out\n"
            "[world:used]\ninput_dir = missing\n"
            "[world:spare]\ninput_dir = missing\n"
            "[map:m]\nworld = used\ntexture_dir = missing\n",
            tmp_path,
        )
        result = config.validate()

        assert result.is_valid
        assert len(result.warnings) == 4
        assert any("'spare' is not used" in w for w in result.warnings)

    def test_unknown_section_type(self, tmp_path) -> None:
        """Test sections other than world and map are errors."""
        text = VALID + "\n[marker:spawn]\nx = 0\n"
        result = RenderConfig.from_file(write_config(tmp_path, text)).validate()

        assert not result.is_valid

    def test_unknown_map(self, tmp_path) -> None:
        """Test looking up a map that is not configured."""
        config = RenderConfig.from_file(write_config(tmp_path, VALID))

        with pytest.raises(ConfigError):
            config.get_map("night")
