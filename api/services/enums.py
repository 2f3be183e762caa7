"""
Bidirectional lookup tables between the relational storage form of enum
columns (``IMMEDIATE``) and the external form used in canonical text, index
metadata and filters (``immediate``).

Unknown values raise ``UnknownEnumValue`` in both directions. Silently
defaulting would hide data-entry bugs behind a plausible-looking value.
"""

from typing import Dict, List

from api.errors import UnknownEnumValue


class EnumMapping:
    """One-to-one mapping between storage and external enum values."""

    def __init__(self, name: str, storage_to_external: Dict[str, str]):
        self.name = name
        self._to_external = dict(storage_to_external)
        self._to_storage = {v: k for k, v in self._to_external.items()}
        if len(self._to_storage) != len(self._to_external):
            raise ValueError(f"{name} mapping is not one-to-one")

    def to_external(self, value: str) -> str:
        """Convert a stored value (e.g. ``WITHIN_WEEK``) to its external form."""
        try:
            return self._to_external[value]
        except (KeyError, TypeError):
            raise UnknownEnumValue(self.name, value)

    def to_storage(self, value: str) -> str:
        """Convert an external value (case-insensitive) to its stored form."""
        if not isinstance(value, str):
            raise UnknownEnumValue(self.name, value)
        try:
            return self._to_storage[value.strip().lower()]
        except KeyError:
            raise UnknownEnumValue(self.name, value)

    def normalize(self, value: str) -> str:
        """Validate an external value and return its canonical lowercase form."""
        return self.to_external(self.to_storage(value))

    @property
    def external_values(self) -> List[str]:
        return list(self._to_storage)


AVAILABILITY = EnumMapping(
    "availability",
    {
        "IMMEDIATE": "immediate",
        "WITHIN_WEEK": "within_week",
        "WITHIN_MONTH": "within_month",
        "NOT_AVAILABLE": "not_available",
    },
)

EXPERIENCE_LEVEL = EnumMapping(
    "experience_level",
    {
        "ENTRY": "entry",
        "MID": "mid",
        "SENIOR": "senior",
        "LEAD": "lead",
    },
)

EMPLOYMENT_TYPE = EnumMapping(
    "employment_type",
    {
        "FULL_TIME": "full_time",
        "PART_TIME": "part_time",
        "CONTRACT": "contract",
        "INTERNSHIP": "internship",
    },
)

JOB_STATUS = EnumMapping(
    "job_status",
    {
        "ACTIVE": "active",
        "INACTIVE": "inactive",
        "FILLED": "filled",
    },
)
