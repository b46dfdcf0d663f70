"""
tabular_config -- YAML decode profiles.

A profile pins down everything about a CSV layout that the target dataclass
does not: header presence, framing options and per-field overrides.

    profile = load_profile("prices.yaml")
    rows = decode_rows_from_path(
        "prices.csv", profile.has_header, list[Price],
        options=profile.reader, overrides=profile.columns,
    )
"""

from tabular_config.loader import load_profile, parse_profile
from tabular_config.schema import DecodeProfile

__all__ = ["DecodeProfile", "load_profile", "parse_profile"]
