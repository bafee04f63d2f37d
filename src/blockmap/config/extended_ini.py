"""
Extended INI files.

Like plain INI, but a section header may carry a type: ``[type:name]``.
Entries before the first header belong to the unnamed root section::

    output_dir = output

    [world:earth]
    input_dir = worlds/earth

Lines starting with ``#`` are comments. Lookups are linear scans, which is
fine for files of a few dozen entries.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

from blockmap.settings.types import ConfigError

logger = logging.getLogger(__name__)

ConfigEntry = Tuple[str, str]


class ParseErrorKind(Enum):
    """Ways a line of an extended INI file can be malformed."""

    MISSING_BRACKET = "Expecting ']' at end of line {line}."
    EMPTY_SECTION_NAME = "Invalid section name on line {line}."
    MISSING_EQUALS = "No '=' found on line {line}."


class ConfigParseError(ConfigError):
    """Raised for a malformed line, carrying its line number."""

    def __init__(self, kind: ParseErrorKind, line: int):
        self.kind = kind
        self.line = line
        super().__init__(kind.value.format(line=line))


class ConfigSection:
    """Ordered key/value entries of one section."""

    def __init__(self, type: str = "", name: str = ""):
        self.type = type
        self.name = name
        self._entries: List[ConfigEntry] = []

    def _entry_index(self, key: str) -> int:
        for i, (entry_key, _) in enumerate(self._entries):
            if entry_key == key:
                return i
        return -1

    @property
    def name_type(self) -> str:
        return f"{self.type}:{self.name}"

    @property
    def is_named(self) -> bool:
        return bool(self.name)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    @property
    def entries(self) -> List[ConfigEntry]:
        """Copy of the entries in file order."""
        return list(self._entries)

    def has(self, key: str) -> bool:
        return self._entry_index(key) != -1

    def get(self, key: str, default: str = "") -> str:
        index = self._entry_index(key)
        if index == -1:
            return default
        return self._entries[index][1]

    def set(self, key: str, value: str) -> None:
        """Set a value; an existing key keeps its position."""
        index = self._entry_index(key)
        if index != -1:
            self._entries[index] = (key, value)
        else:
            self._entries.append((key, value))

    def remove(self, key: str) -> None:
        index = self._entry_index(key)
        if index != -1:
            del self._entries[index]

    def __str__(self) -> str:
        lines = []
        if self.name:
            lines.append(f"[{self.name}]" if not self.type else f"[{self.type}:{self.name}]")
        lines.extend(f"{key} = {value}" for key, value in self._entries)
        return "".join(line + "\n" for line in lines)

    def __repr__(self) -> str:
        return f"ConfigSection({self.name_type!r}, {len(self._entries)} entries)"


class ConfigFile:
    """Root section plus named sections, unique per (type, name)."""

    def __init__(self):
        self.root = ConfigSection()
        self._sections: List[ConfigSection] = []

    def _section_index(self, type: str, name: str) -> int:
        for i, section in enumerate(self._sections):
            if section.type == type and section.name == name:
                return i
        return -1

    @property
    def sections(self) -> List[ConfigSection]:
        """Named sections in file order."""
        return list(self._sections)

    def load(self, text: str) -> "ConfigFile":
        """Replace the contents with the parsed ``text``.

        Raises:
            ConfigParseError: On the first malformed line
        """
        root = ConfigSection()
        sections: List[ConfigSection] = []
        current = root

        for line_number, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith("["):
                if not line.endswith("]"):
                    raise ConfigParseError(ParseErrorKind.MISSING_BRACKET, line_number)
                section_type, colon, section_name = line[1:-1].partition(":")
                if not colon:
                    section_type, section_name = "", section_type
                if not section_name:
                    raise ConfigParseError(ParseErrorKind.EMPTY_SECTION_NAME, line_number)

                # a repeated header continues the existing section
                current = next(
                    (s for s in sections if s.type == section_type and s.name == section_name),
                    None,
                )
                if current is None:
                    current = ConfigSection(section_type, section_name)
                    sections.append(current)
                continue

            key, equals, value = line.partition("=")
            if not equals:
                raise ConfigParseError(ParseErrorKind.MISSING_EQUALS, line_number)
            current.set(key.strip(), value.strip())

        self.root = root
        self._sections = sections
        return self

    def load_file(self, path: Union[str, Path]) -> "ConfigFile":
        """Parse a file.

        Raises:
            ConfigError: If the file cannot be read
            ConfigParseError: On the first malformed line
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Unable to read file '{path}': {e}")
        logger.debug(f"Parsing configuration file {path}")
        return self.load(text)

    def write(self) -> str:
        """Serialize; every section is followed by a blank line."""
        parts = []
        if not self.root.is_empty:
            parts.append(str(self.root) + "\n")
        for section in self._sections:
            if section.is_named:
                parts.append(str(section) + "\n")
        return "".join(parts)

    def write_file(self, path: Union[str, Path]) -> None:
        try:
            Path(path).write_text(self.write(), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Unable to write file '{path}': {e}")

    def has_section(self, type: str, name: str) -> bool:
        return self._section_index(type, name) != -1

    def get_section(self, type: str, name: str) -> ConfigSection:
        """Existing section, or a detached empty one."""
        index = self._section_index(type, name)
        if index == -1:
            return ConfigSection(type, name)
        return self._sections[index]

    def find_section(self, type: str, name: str) -> Optional[ConfigSection]:
        index = self._section_index(type, name)
        return self._sections[index] if index != -1 else None

    def sections_of_type(self, type: str) -> List[ConfigSection]:
        return [section for section in self._sections if section.type == type]

    def add_section(self, type: str, name: str) -> ConfigSection:
        """Section with this type and name, created if missing."""
        index = self._section_index(type, name)
        if index != -1:
            return self._sections[index]
        section = ConfigSection(type, name)
        self._sections.append(section)
        return section

    def add_section_object(self, section: ConfigSection) -> ConfigSection:
        """Insert a section, replacing one with the same type and name."""
        index = self._section_index(section.type, section.name)
        if index == -1:
            self._sections.append(section)
        else:
            self._sections[index] = section
        return section

    def remove_section(self, type: str, name: str) -> None:
        index = self._section_index(type, name)
        if index != -1:
            del self._sections[index]
