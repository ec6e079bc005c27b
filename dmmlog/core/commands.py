"""Build SCPI configuration commands from measurement options."""

from __future__ import annotations

from dataclasses import dataclass

from dmmlog.core.errors import SettingsError


@dataclass(frozen=True)
class MeasurementOptions:
    voltage: str | None = None
    current: str | None = None
    resistance: str | None = None
    ac: bool = False
    four_wire: bool = False
    resolution: str | None = None
    nplc: str | None = None


def validate_measurement(options: MeasurementOptions) -> None:
    functions = [
        name
        for name, value in (
            ("--voltage", options.voltage),
            ("--current", options.current),
            ("--resistance", options.resistance),
        )
        if value is not None
    ]
    if len(functions) > 1:
        raise SettingsError(f"Options {' and '.join(functions)} cannot be used together")
    if options.ac and options.voltage is None and options.current is None:
        raise SettingsError("--ac requires --voltage or --current")
    if options.four_wire and options.resistance is None:
        raise SettingsError("--four-wire requires --resistance")
    if options.resolution is not None and options.nplc is not None:
        raise SettingsError("Options --resolution and --nplc cannot be used together")
    if not functions and (options.resolution is not None or options.nplc is not None):
        raise SettingsError("--resolution and --nplc require --voltage, --current or --resistance")


def build_commands(options: MeasurementOptions) -> list[str]:
    validate_measurement(options)

    dc_ac = "AC" if options.ac else "DC"
    res_fres = "FRES" if options.four_wire else "RES"

    if options.voltage is not None:
        configure, prefix = f"CONF:VOLT:{dc_ac} {options.voltage}", f"VOLT:{dc_ac}"
    elif options.current is not None:
        configure, prefix = f"CONF:CURR:{dc_ac} {options.current}", f"CURR:{dc_ac}"
    elif options.resistance is not None:
        configure, prefix = f"CONF:{res_fres} {options.resistance}", res_fres
    else:
        return []

    commands = [configure]
    if options.resolution is not None:
        commands.append(f"{prefix}:RES {options.resolution}")
    if options.nplc is not None:
        commands.append(f"{prefix}:NPLC {options.nplc}")
    return commands
