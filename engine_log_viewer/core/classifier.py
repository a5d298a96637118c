"""
Column classification: canonical display names and default channel selection.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .ingest import TIME_COLUMN_PATTERN
from .models import ChannelEntry, HeaderDescriptor


@dataclass(frozen=True)
class AliasRule:
    """Header variants (compacted) that map to one canonical display name."""
    aliases: tuple[str, ...]
    canonical_name: str
    default_select: bool = False


# Evaluated in order; first match wins, so specific groups come first
ALIAS_RULES: tuple[AliasRule, ...] = (
    AliasRule(("afr", "airfuelratio", "airfuel", "afrwideband", "widebandafr"), "Air/Fuel Ratio", True),
    AliasRule(("lambda", "lambdasensor"), "Lambda", False),
    AliasRule(("rpm", "enginespeedrpm", "enginespeed", "enginerpm"), "Engine Speed (rpm)", True),
    AliasRule(("maf", "massairflow", "mafgs", "airflowmass"), "Mass Air Flow", True),
    AliasRule(("injduty", "injectorduty", "injectordutycycle", "injdc"), "Injector Duty (%)", True),
    AliasRule(("boost", "boostpressure", "turboboost"), "Boost Pressure", True),
    AliasRule(("manifoldabsolutepressure", "mapsensor", "manifoldpressure"), "Manifold Pressure", True),
    AliasRule(("oilpressure",), "Oil Pressure", True),
    AliasRule(("fuelpressure", "fuelrailpressure"), "Fuel Pressure", True),
    AliasRule(("tps", "throttleposition", "throttle"), "Throttle Position (%)", False),
    AliasRule(("iat", "intakeairtemp", "intakeairtemperature"), "Intake Air Temp", False),
    AliasRule(("ect", "coolanttemp", "coolanttemperature", "enginecoolanttemp"), "Coolant Temp", False),
    AliasRule(("ignitiontiming", "ignitionadvance", "sparkadvance"), "Ignition Timing", False),
    AliasRule(("knock", "knockretard", "knockcount"), "Knock", False),
    AliasRule(("vehiclespeed", "vss"), "Vehicle Speed", False),
    AliasRule(("batteryvoltage", "battvolt", "batteryvolts"), "Battery Voltage", False),
)

# Compacted-key substrings that pre-check a channel in the selector
DEFAULT_SELECT_KEYS: tuple[str, ...] = (
    "afr", "airfuel", "rpm", "maf", "massairflow",
    "injduty", "injectorduty", "boost", "pressure",
)

NON_ALNUM = re.compile(r"[\W_]+", re.UNICODE)

# Shorter keys (single letters, "t") would match almost every alias
MIN_REVERSE_MATCH = 3

# Acronym aliases (ect, iat, tps) only match a whole word of the header
SHORT_ALIAS = 4

WORD = re.compile(r"[a-z0-9]+")


def compact(header: str) -> str:
    """Lowercase and strip punctuation/whitespace, e.g. 'Engine Speed (RPM)' -> 'enginespeedrpm'."""
    return NON_ALNUM.sub("", header.lower())


def header_words(header: str) -> list[str]:
    """Lowercase alphanumeric runs, e.g. 'Fuel Correction (%)' -> ['fuel', 'correction']."""
    return WORD.findall(header.lower())


def alias_matches(alias: str, key: str, words: Sequence[str] = ()) -> bool:
    if len(alias) < SHORT_ALIAS:
        return alias == key or alias in words
    return alias in key or (len(key) >= MIN_REVERSE_MATCH and key in alias)


def match_alias(
    key: str,
    rules: Sequence[AliasRule] = ALIAS_RULES,
    words: Sequence[str] = ()
) -> Optional[AliasRule]:
    """
    First rule with an alias contained in key, or containing key.

    Short aliases must equal the whole key or one of the header words.
    """
    if not key:
        return None
    for rule in rules:
        for alias in rule.aliases:
            if alias_matches(alias, key, words):
                return rule
    return None


def is_default_channel(key: str) -> bool:
    """Whether a compacted key names a channel worth charting by default."""
    return any(sub in key for sub in DEFAULT_SELECT_KEYS)


def describe_header(header: str, rules: Sequence[AliasRule] = ALIAS_RULES) -> HeaderDescriptor:
    """Classify a single header."""
    key = compact(header)
    rule = match_alias(key, rules, header_words(header))
    return HeaderDescriptor(
        raw_name=header,
        key=key,
        display_name=rule.canonical_name if rule else header,
        is_time_candidate=bool(TIME_COLUMN_PATTERN.search(header)),
        default_checked=is_default_channel(key) or bool(rule and rule.default_select),
    )


def classify_headers(
    headers: Sequence[str],
    time_column: Optional[str] = None,
    rules: Sequence[AliasRule] = ALIAS_RULES
) -> list[ChannelEntry]:
    """
    Build the channel list offered for selection.

    Args:
        headers: Record set headers in file order
        time_column: The x column, which is never offered as a channel
        rules: Alias table

    Returns:
        One ChannelEntry per remaining header, in file order
    """
    entries = []
    for header in headers:
        if header == time_column:
            continue
        desc = describe_header(header, rules)
        entries.append(ChannelEntry(
            header=header,
            display_name=desc.display_name,
            default_checked=desc.default_checked,
        ))
    return entries


def unique_display_names(entries: Sequence[ChannelEntry]) -> dict[str, str]:
    """
    Map header -> display name, falling back to the raw header when two
    headers resolve to the same canonical name.
    """
    counts: dict[str, int] = {}
    for entry in entries:
        counts[entry.display_name] = counts.get(entry.display_name, 0) + 1
    return {
        e.header: e.display_name if counts[e.display_name] == 1 else f"{e.display_name} [{e.header}]"
        for e in entries
    }
