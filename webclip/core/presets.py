"""
Preset Store
============

Named, reusable parameter sets loaded once at startup.

A preset may carry a ``url_regexp``; the ``auto`` preset reference picks the
first preset, in declaration order, whose pattern matches the target URL.
Patterns are compiled on first use and cached for the process lifetime.
"""

import json
import re
from abc import ABC, abstractmethod
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Pattern, Union

import yaml  # type: ignore[import-untyped]
from pydantic import TypeAdapter, ValidationError
from pydantic.types import StrictStr

from webclip.config.logging import get_logger
from webclip.core.errors import PresetLoadError
from webclip.models.params import ClipParams

logger = get_logger(__name__)


class PresetDefinition(ClipParams):
    """Preset file entry: clipping parameters plus an optional URL rule."""

    url_regexp: Optional[StrictStr] = None


_definitions_adapter = TypeAdapter(Dict[str, PresetDefinition])


class Preset:
    """A named parameter set with an optional URL matching rule."""

    def __init__(self, name: str, params: ClipParams, url_regexp: Optional[str] = None):
        self.name = name
        self.params = params
        self.url_regexp = url_regexp or None

    @cached_property
    def pattern(self) -> Optional[Pattern[str]]:
        """Compiled URL rule, or None when the preset has no rule."""
        if self.url_regexp is None:
            return None
        return re.compile(self.url_regexp)

    def matches(self, url: str) -> bool:
        """Whether the URL rule matches anywhere in ``url``."""
        pattern = self.pattern
        return pattern is not None and pattern.search(url) is not None

    def __repr__(self) -> str:
        return f"Preset({self.name!r}, url_regexp={self.url_regexp!r})"


class PresetStore(ABC):
    """Read-only lookup of presets by name or by target URL."""

    @abstractmethod
    def by_name(self, name: str) -> Optional[ClipParams]:
        """Return the parameters of the named preset, or None if undefined."""
        pass

    @abstractmethod
    def for_site(self, url: str) -> Optional[ClipParams]:
        """Return the parameters of the first preset whose rule matches ``url``."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class NullPresetStore(PresetStore):
    """Store used when no presets are configured."""

    def by_name(self, name: str) -> Optional[ClipParams]:
        return None

    def for_site(self, url: str) -> Optional[ClipParams]:
        return None

    def __len__(self) -> int:
        return 0


class PresetCatalog(PresetStore):
    """Presets held in declaration order."""

    def __init__(self, presets: Dict[str, Preset]):
        self._presets = dict(presets)

    def by_name(self, name: str) -> Optional[ClipParams]:
        preset = self._presets.get(name)
        return preset.params if preset is not None else None

    def for_site(self, url: str) -> Optional[ClipParams]:
        for preset in self._presets.values():
            if preset.matches(url):
                return preset.params
        return None

    def __len__(self) -> int:
        return len(self._presets)

    def __iter__(self) -> Iterator[Preset]:
        return iter(self._presets.values())

    @classmethod
    def from_mapping(cls, data: Any) -> "PresetCatalog":
        """
        Build a catalog from decoded preset definitions.

        Args:
            data: Mapping of preset name to parameter fields

        Returns:
            PresetCatalog in the mapping's order

        Raises:
            PresetLoadError: If the definitions do not match the parameter model
        """
        try:
            definitions = _definitions_adapter.validate_python(data)
        except ValidationError as e:
            raise PresetLoadError(f"invalid preset definitions: {e}") from e

        presets: Dict[str, Preset] = {}
        for name, definition in definitions.items():
            params = ClipParams.model_validate(definition.model_dump(exclude={"url_regexp"}))
            presets[name] = Preset(name, params, definition.url_regexp)
        return cls(presets)


def presets_from_json(text: Union[str, bytes]) -> PresetCatalog:
    """Parse JSON preset definitions."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PresetLoadError(f"presets json decode failed: {e}") from e
    return PresetCatalog.from_mapping(data)


def presets_from_yaml(text: str) -> PresetCatalog:
    """Parse YAML preset definitions."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PresetLoadError(f"presets yaml decode failed: {e}") from e
    return PresetCatalog.from_mapping(data if data is not None else {})


def load_presets(path: Optional[Path]) -> PresetStore:
    """
    Load presets from a JSON or YAML file.

    A missing path or file yields an empty store; a file that exists but
    cannot be parsed is an error.

    Args:
        path: Preset file, ``.yaml``/``.yml`` for YAML, anything else for JSON

    Returns:
        Loaded preset store

    Raises:
        PresetLoadError: If the file is unreadable or malformed
    """
    if path is None:
        return NullPresetStore()
    if not path.exists():
        logger.warning("Presets file not found, continuing without presets", path=str(path))
        return NullPresetStore()

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PresetLoadError(f"cannot read presets file {path}: {e}") from e

    if path.suffix.lower() in (".yaml", ".yml"):
        catalog = presets_from_yaml(text)
    else:
        catalog = presets_from_json(text)

    logger.info("Presets loaded", path=str(path), count=len(catalog))
    return catalog
