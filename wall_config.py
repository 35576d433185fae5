"""
Wall configuration: the persisted settings model, the JSON backed store and
the read-only stream preset list.

The store keeps whatever partial source records it was given. Defaults for
missing names, urls and weights are filled in when the grid is drawn, see
wall_layout.
"""

from __future__ import annotations

import copy
import json
import logging
import math
import re
import site
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import requests

from stream_urls import normalize_stream_url

log = logging.getLogger(__name__)

MIN_COLUMNS = 1
MAX_COLUMNS = 5
DEFAULT_COLUMNS = 3
MAX_SOURCES = 10
MIN_WEIGHT = 1.0
MAX_WEIGHT = 5.0

DEFAULT_TITLE = "StreamWall"
DEFAULT_LOGO_TEXT = "SW"
PRESETS_FILE_NAME = "stream-presets.json"
PRESET_FETCH_TIMEOUT = 10

# installed as data files under <prefix>/share/streamwall, see pyproject.toml
SHARE_DIR_NAME = "streamwall"


class ConfigStoreError(Exception):
    """Raised when the configuration cannot be written."""


# ---------------- Bundled files ----------------


def resource_dirs() -> List[Path]:
    """Places that may hold player.html and the bundled presets.

    A checkout keeps them beside the modules, an installed copy under the
    interpreter (or user) prefix.
    """
    return [
        Path(__file__).resolve().parent,
        Path(sys.prefix) / "share" / SHARE_DIR_NAME,
        Path(site.getuserbase()) / "share" / SHARE_DIR_NAME,
    ]


def resource_path(name: str) -> Path:
    dirs = resource_dirs()
    for d in dirs:
        candidate = d / name
        if candidate.is_file():
            return candidate
    log.warning("Bundled file %s not found in %s", name, ", ".join(str(d) for d in dirs))
    return dirs[0] / name


# ---------------- Clamping ----------------


def _to_number(value) -> Optional[float]:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(n):
        return None
    return n


def clamp_columns(value) -> int:
    n = _to_number(value)
    if n is None:
        return DEFAULT_COLUMNS
    return int(min(max(n, MIN_COLUMNS), MAX_COLUMNS))


def clamp_weight(value) -> float:
    n = _to_number(value)
    if n is None:
        return MIN_WEIGHT
    return min(max(n, MIN_WEIGHT), MAX_WEIGHT)


def clamp_source_count(value) -> int:
    n = _to_number(value)
    if not n:
        return 1
    return int(min(max(n, 1), MAX_SOURCES))


# ---------------- Settings model ----------------


@dataclass
class Source:
    name: str = ""
    url: str = ""
    weight: Optional[float] = None

    def to_dict(self) -> Dict:
        d = {"name": self.name, "url": self.url}
        if self.weight is not None:
            d["weight"] = self.weight
        return d

    @staticmethod
    def from_dict(d) -> "Source":
        if not isinstance(d, dict):
            return Source()
        weight = _to_number(d.get("weight"))
        return Source(
            name=str(d.get("name") or ""),
            url=str(d.get("url") or ""),
            weight=weight,
        )


@dataclass(frozen=True)
class Preset:
    label: str
    url: str

    def to_dict(self) -> Dict:
        return {"label": self.label, "url": self.url}

    @staticmethod
    def from_dict(d: Dict) -> "Preset":
        url = str(d.get("url") or "")
        return Preset(label=str(d.get("label") or url), url=url)


@dataclass
class Config:
    app_title: str = DEFAULT_TITLE
    logo_text: str = DEFAULT_LOGO_TEXT
    grid_columns: int = DEFAULT_COLUMNS
    sources: List[Source] = field(default_factory=list)
    stream_presets: List[Preset] = field(default_factory=list)

    def to_dict(self, include_presets: bool = True) -> Dict:
        d = {
            "appTitle": self.app_title,
            "logoText": self.logo_text,
            "gridColumns": clamp_columns(self.grid_columns),
            "sources": [s.to_dict() for s in self.sources[:MAX_SOURCES]],
        }
        if include_presets:
            d["streamPresets"] = [p.to_dict() for p in self.stream_presets]
        return d

    @staticmethod
    def from_dict(d: Dict) -> "Config":
        sources = d.get("sources")
        if not isinstance(sources, list):
            sources = []
        presets = d.get("streamPresets")
        if not isinstance(presets, list):
            presets = []
        return Config(
            app_title=str(d.get("appTitle") or ""),
            logo_text=str(d.get("logoText") or ""),
            grid_columns=clamp_columns(d.get("gridColumns")),
            sources=[Source.from_dict(s) for s in sources[:MAX_SOURCES]],
            stream_presets=[Preset.from_dict(p) for p in presets if isinstance(p, dict)],
        )

    def copy(self) -> "Config":
        return copy.deepcopy(self)


def default_config_dict() -> Dict:
    return {
        "appTitle": DEFAULT_TITLE,
        "logoText": DEFAULT_LOGO_TEXT,
        "gridColumns": DEFAULT_COLUMNS,
        "sources": [
            {"name": f"PC {i}", "url": "https://example.com", "weight": 1}
            for i in range(1, 4)
        ],
    }


# ---------------- Editing ----------------


def set_source_count(config: Config, count) -> None:
    desired = clamp_source_count(count)
    current = len(config.sources)
    if desired > current:
        for _ in range(desired - current):
            config.sources.append(Source(name=f"PC {len(config.sources) + 1}", url="", weight=1.0))
    elif desired < current:
        del config.sources[desired:]


def remove_source(config: Config, index: int) -> bool:
    """Remove one source. The last remaining source is kept."""
    if len(config.sources) <= 1:
        return False
    if not 0 <= index < len(config.sources):
        return False
    del config.sources[index]
    return True


def apply_preset(config: Config, index: int, preset: Preset) -> None:
    if not 0 <= index < len(config.sources):
        return
    source = config.sources[index]
    source.url = normalize_stream_url(preset.url or "")
    source.name = preset.label or source.name


def set_weight(config: Config, index: int, weight) -> float:
    value = clamp_weight(weight)
    if 0 <= index < len(config.sources):
        config.sources[index].weight = value
    return value


def set_columns(config: Config, columns) -> int:
    config.grid_columns = clamp_columns(columns)
    return config.grid_columns


def update_source(config: Config, index: int, name: str, url: str, weight) -> None:
    """Take values typed into the panel; the url is normalized like a preset pick."""
    if not 0 <= index < len(config.sources):
        return
    source = config.sources[index]
    source.name = name
    source.url = normalize_stream_url(url or "")
    source.weight = clamp_weight(weight)


def ensure_sources(config: Config) -> Config:
    """An editable config always has at least one source."""
    if not config.sources:
        set_source_count(config, 1)
    return config


def prepare_for_save(config: Config) -> Dict:
    """Normalize urls and clamp fields; returns the partial to persist."""
    sources = []
    for s in config.sources[:MAX_SOURCES]:
        weight = s.weight if s.weight is not None else MIN_WEIGHT
        sources.append(Source(name=s.name, url=normalize_stream_url(s.url or ""), weight=clamp_weight(weight)))
    return {
        "appTitle": config.app_title or DEFAULT_TITLE,
        "gridColumns": clamp_columns(config.grid_columns),
        "sources": [s.to_dict() for s in sources],
    }


# ---------------- Presets ----------------


def parse_m3u(content: str) -> list[Tuple[str, str]]:
    """Parses M3U content and extracts channel information."""
    channels = []
    lines = [line.strip() for line in content.splitlines()]

    if not lines or not lines[0].startswith("#EXTM3U"):
        # Not M3U, treat it as a plain list of URLs
        return [(line, line) for line in lines if line and not line.startswith("#")]

    i = 0
    while i < len(lines):
        if lines[i].startswith("#EXTINF:"):
            info_line = lines[i]
            url_line = ""
            for j in range(i + 1, len(lines)):
                if lines[j] and not lines[j].startswith("#"):
                    url_line = lines[j]
                    i = j
                    break

            if url_line:
                name_match = re.search(r',(.+)$', info_line)
                name = name_match.group(1) if name_match else "Unnamed Channel"

                tvg_name_match = re.search(r'tvg-name="([^"]+)"', info_line)
                if tvg_name_match:
                    name = tvg_name_match.group(1)

                channels.append((name.strip(), url_line.strip()))
        i += 1

    return channels


def parse_presets(content: str) -> List[Preset]:
    text = (content or "").lstrip("\ufeff").strip()
    if not text:
        return []
    if text[0] in "[{":
        try:
            data = json.loads(text)
        except ValueError as e:
            log.warning("Preset list is not valid JSON: %s", e)
            return []
        if not isinstance(data, list):
            log.warning("Preset list must be a JSON array, got %s", type(data).__name__)
            return []
        return [Preset.from_dict(d) for d in data if isinstance(d, dict)]
    return [Preset(label=name, url=url) for name, url in parse_m3u(text)]


def load_presets(location: Union[str, Path, None]) -> List[Preset]:
    """Read presets from a file or an http(s) URL. Failures give []."""
    if not location:
        return []
    loc = str(location)
    try:
        if loc.lower().startswith(("http://", "https://")):
            response = requests.get(loc, timeout=PRESET_FETCH_TIMEOUT)
            response.raise_for_status()
            content = response.text
        else:
            content = Path(loc).read_text(encoding="utf-8")
    except requests.exceptions.RequestException as e:
        log.warning("Could not fetch presets from %s: %s", loc, e)
        return []
    except OSError as e:
        log.warning("Could not read presets from %s: %s", loc, e)
        return []
    presets = parse_presets(content)
    log.info("Loaded %d stream presets from %s", len(presets), loc)
    return presets


# ---------------- Store ----------------


class ConfigStore:
    """JSON file store for the wall configuration.

    ``get`` and ``set`` always hand back a full ``Config`` with the current
    preset list attached. Presets are never written to the config file.
    """

    def __init__(self, path: Union[str, Path], preset_locations: Iterable = ()):
        self.path = Path(path)
        self.preset_locations: Sequence = tuple(loc for loc in preset_locations if loc)
        self._data: Optional[Dict] = None
        self._presets: Optional[List[Preset]] = None

    @property
    def presets(self) -> List[Preset]:
        if self._presets is None:
            self._presets = []
            for loc in self.preset_locations:
                found = load_presets(loc)
                if found:
                    self._presets = found
                    break
        return list(self._presets)

    def _load(self) -> Dict:
        if self._data is not None:
            return self._data
        data = default_config_dict()
        try:
            if self.path.exists():
                stored = json.loads(self.path.read_text(encoding="utf-8"))
                if isinstance(stored, dict):
                    stored.pop("streamPresets", None)
                    data.update(stored)
                else:
                    log.warning("Ignoring config %s: top level is not an object", self.path)
        except (OSError, ValueError) as e:
            log.warning("Could not read config %s, using defaults: %s", self.path, e)
        self._data = data
        return data

    def _with_presets(self, data: Dict) -> Config:
        cfg = Config.from_dict(data)
        cfg.stream_presets = self.presets
        return cfg

    def get(self) -> Config:
        return self._with_presets(self._load())

    def set(self, partial: Union[Config, Dict]) -> Config:
        if isinstance(partial, Config):
            partial = partial.to_dict(include_presets=False)
        updates = {k: v for k, v in dict(partial).items() if k != "streamPresets"}

        merged = dict(self._load())
        merged.update(updates)
        if "gridColumns" in merged:
            merged["gridColumns"] = clamp_columns(merged["gridColumns"])
        if isinstance(merged.get("sources"), list):
            merged["sources"] = merged["sources"][:MAX_SOURCES]

        self._write(merged)
        self._data = merged
        log.info("Saved config: %d sources, %s columns", len(merged.get("sources") or []), merged.get("gridColumns"))
        return self._with_presets(merged)

    def _write(self, data: Dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=4), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise ConfigStoreError(f"Could not write {self.path}: {e}") from e

    # Profiles
    def export_profile(self, path: Union[str, Path], version: str = "") -> None:
        bundle = {"config": dict(self._load()), "version": version}
        try:
            Path(path).write_text(json.dumps(bundle, indent=4), encoding="utf-8")
        except OSError as e:
            raise ConfigStoreError(f"Could not export profile to {path}: {e}") from e

    def import_profile(self, path: Union[str, Path]) -> Config:
        try:
            bundle = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigStoreError(f"Could not import profile {path}: {e}") from e
        cfg = bundle.get("config") if isinstance(bundle, dict) else None
        if not isinstance(cfg, dict):
            raise ConfigStoreError(f"Profile {path} has no config section")
        return self.set(cfg)
