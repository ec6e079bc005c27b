"""Run settings: YAML defaults file merged with command-line overrides."""

from __future__ import annotations

import json
import logging
import math
import os
import re
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from dmmlog.core.commands import MeasurementOptions, build_commands
from dmmlog.core.errors import ConfigLoadError, ConfigValidationError, SettingsError
from dmmlog.core.model import UNLIMITED_SAMPLES
from dmmlog.transports.tcp import DEFAULT_PORT

DEFAULT_INTERVAL_S = 1.0
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys.

    Only ``true``/``false`` resolve to booleans; ``on``, ``yes`` and friends
    stay strings.
    """


UniqueKeyLoader.yaml_implicit_resolvers = {
    first_char: [(tag, regexp) for tag, regexp in mappings if tag != "tag:yaml.org,2002:bool"]
    for first_char, mappings in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
UniqueKeyLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class CliOptions:
    """Values given on the command line; ``None`` means "not given"."""

    host: str | None = None
    port: int | None = None
    interval: float | None = None
    rate: float | None = None
    samples: int | None = None
    measurement: MeasurementOptions = field(default_factory=MeasurementOptions)
    commands: tuple[str, ...] = ()
    reset: bool = False
    beep: bool = False
    debug: bool = False
    drop_slow: bool = False


@dataclass(frozen=True)
class RunSettings:
    host: str
    port: int = DEFAULT_PORT
    period: float = DEFAULT_INTERVAL_S
    samples: int = UNLIMITED_SAMPLES
    commands: tuple[str, ...] = ()
    reset: bool = False
    beep: bool = False
    debug: bool = False
    drop_slow: bool = False


def _load_schema_validator() -> Any:
    schema_text = resources.files("dmmlog.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "dmmlog" / "config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load and validate the defaults file.

    Without an explicit ``path`` the XDG location is used and a missing file
    yields no defaults.
    """
    if path is None:
        config_path = default_config_path()
        if not config_path.is_file():
            LOGGER.debug("No config file at %s", config_path)
            return {}
    else:
        config_path = Path(path)

    doc = _read_yaml(config_path)
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        where = ".".join(str(p) for p in exc.path)
        where = f" ({where})" if where else ""
        raise ConfigValidationError(f"Schema validation failed for {config_path}{where}: {exc.message}") from exc

    LOGGER.debug("Loaded config file %s", config_path)
    return doc


def _is_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _sample_period(options: CliOptions, config: dict[str, Any]) -> float:
    if options.interval is not None and options.rate is not None:
        raise SettingsError("Options --interval and --rate cannot be used together")

    if options.interval is not None:
        interval, rate = options.interval, None
    elif options.rate is not None:
        interval, rate = None, options.rate
    else:
        interval, rate = config.get("interval"), config.get("rate")

    if rate is not None:
        if not _is_positive(rate) or not _is_positive(1.0 / rate):
            raise SettingsError(f"Sampling rate {rate} hertz is not allowed")
        return 1.0 / rate
    if interval is None:
        return DEFAULT_INTERVAL_S
    if not _is_positive(interval):
        raise SettingsError(f"Sampling interval {interval} seconds is not allowed")
    return float(interval)


def resolve_settings(options: CliOptions, config: dict[str, Any] | None = None) -> RunSettings:
    config = config or {}

    host = options.host
    if not host:
        raise SettingsError("No instrument host given")

    port = options.port if options.port is not None else config.get("port", DEFAULT_PORT)
    if not 0 < port < 65536:
        raise SettingsError(f"Port {port} is not allowed")

    samples = options.samples if options.samples is not None else config.get("samples")
    if samples is not None and samples <= 0:
        raise SettingsError(f"Number of samples {samples} is not allowed")

    commands = (
        *build_commands(options.measurement),
        *options.commands,
        *config.get("commands", ()),
    )

    return RunSettings(
        host=host,
        port=port,
        period=_sample_period(options, config),
        samples=UNLIMITED_SAMPLES if samples is None else min(samples, UNLIMITED_SAMPLES),
        commands=tuple(commands),
        reset=options.reset or config.get("reset", False),
        beep=options.beep or config.get("beep", False),
        debug=options.debug or config.get("debug", False),
        drop_slow=options.drop_slow or config.get("drop_slow", False),
    )
