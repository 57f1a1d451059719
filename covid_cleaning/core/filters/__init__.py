"""
Shared scope predicates for raw observations.
"""

from .scope_filters import (
    apply_filters,
    country_scope,
    has_date,
    has_location_key,
    has_population,
    in_window,
    is_country_key,
    is_country_level,
    is_sub_national,
)

__all__ = [
    "apply_filters",
    "country_scope",
    "has_date",
    "has_location_key",
    "has_population",
    "in_window",
    "is_country_key",
    "is_country_level",
    "is_sub_national",
]
