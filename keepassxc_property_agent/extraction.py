"""Turn KeePassXC ``get-logins`` responses into properties.

A ``get-logins`` reply is untyped nested JSON::

    {
        "entries": [
            {
                "name": "billing database",
                "login": "billing",
                "password": "...",
                "group": "Work",
                "stringFields": [
                    {"KPH: property: db.url": "jdbc:postgresql://db/billing"},
                    {"KPH: property: db.password": " secret123 "}
                ]
            }
        ]
    }

Parsing is best effort: values of the wrong shape are skipped or become
None, never an exception. Every string field whose name starts with the
property prefix becomes one property, with the prefix removed and the key and
value trimmed.

See the KeePassXC browser protocol documentation for the message format:
https://github.com/keepassxreboot/keepassxc-browser/blob/develop/keepassxc-protocol.md
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import structlog

log = structlog.get_logger(__name__)


def string_value(raw: Any) -> str | None:
    """Convert a raw value to a string, keeping None as None."""
    if raw is None:
        return None
    return str(raw)


@dataclass(frozen=True)
class KeepassEntry:
    """One entry returned by KeePassXC.

    ``string_fields`` keeps the order fields were received in; a field name
    seen twice keeps the later value.
    """

    name: str | None = None
    login: str | None = None
    password: str | None = field(default=None, repr=False)
    group: str | None = None
    string_fields: Mapping[str, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "string_fields", MappingProxyType(dict(self.string_fields)))

    @classmethod
    def parse(cls, raw: Mapping[Any, Any]) -> "KeepassEntry":
        """Parse an entry from a raw ``get-logins`` entry mapping.

        Args:
            raw: One element of the ``entries`` list

        Returns:
            The parsed entry
        """
        string_fields: dict[str, str] = {}
        raw_fields = raw.get("stringFields")
        if isinstance(raw_fields, list | tuple):
            for raw_field in raw_fields:
                if not isinstance(raw_field, Mapping):
                    continue
                for key, value in raw_field.items():
                    if key is not None and value is not None:
                        string_fields[str(key)] = str(value)

        return cls(
            name=string_value(raw.get("name")),
            login=string_value(raw.get("login")),
            password=string_value(raw.get("password")),
            group=string_value(raw.get("group")),
            string_fields=string_fields,
        )


def parse_entries(response: Mapping[Any, Any] | None) -> list[KeepassEntry]:
    """Parse the ``entries`` list of a ``get-logins`` response.

    Returns an empty list when the response is missing, has no entries or
    the entries value is not a list. Non-mapping list items are skipped.
    """
    if not isinstance(response, Mapping):
        return []

    raw_entries = response.get("entries")
    if not isinstance(raw_entries, list | tuple):
        log.debug("no_entries_in_response")
        return []

    return [KeepassEntry.parse(raw) for raw in raw_entries if isinstance(raw, Mapping)]


def extract_properties(response: Mapping[Any, Any] | None, property_prefix: str) -> list[tuple[str, Any]]:
    """Extract prefixed string fields as ``(key, value)`` pairs.

    Args:
        response: Raw ``get-logins`` response, or None if nothing matched
        property_prefix: Exact, case-sensitive string field name prefix

    Returns:
        Properties in entry and field order; duplicates are not removed
    """
    if response is None:
        log.info("entry_not_found")
        return []

    properties: list[tuple[str, Any]] = []
    for entry in parse_entries(response):
        for field_name, raw_value in entry.string_fields.items():
            if not field_name.startswith(property_prefix):
                continue

            key = field_name[len(property_prefix) :].strip()
            value: Any = raw_value.strip() if isinstance(raw_value, str) else raw_value
            if value is not None:
                properties.append((key, value))

    return properties


class EntryExtractor:
    """Extracts properties using a fixed property prefix."""

    def __init__(self, property_prefix: str) -> None:
        self.property_prefix = property_prefix

    def extract(self, response: Mapping[Any, Any] | None) -> list[tuple[str, Any]]:
        return extract_properties(response, self.property_prefix)
