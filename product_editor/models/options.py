"""Selectable option sets.

Options arrive from several places (meta enums, catalog YAML, hydrated
products, the countries endpoint) in different shapes. They are normalized
into ``Option`` once, when the option set is built.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from product_editor.core.calculators import derive_size_code

FALLBACK_ENUMS: dict[str, tuple[str, ...]] = {
    "ProductStatus": ("active", "inactive", "archived"),
    "ProductCondition": ("NEW", "USED", "RECONDITIONED"),
    "WeightUnit": ("g", "kg", "lb"),
    "LengthUnit": ("mm", "cm", "inch"),
}

SIZE_PLACEHOLDER = "—"
OTHER_COUNTRY = "OT"


@dataclass(frozen=True)
class Option:
    """A selectable value with its display label."""

    value: str
    label: str


def labelize(value: Any) -> str:
    """Turn an enum constant into a display label (``"in_stock"`` -> ``"In Stock"``)."""
    words = str(value or "").replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def normalize_option(item: Any) -> Option:
    """Normalize a string, pair, mapping or Option into an Option.

    Raises:
        TypeError: If the item has none of the supported shapes
    """
    if isinstance(item, Option):
        return item
    if isinstance(item, str):
        return Option(value=item, label=item)
    if isinstance(item, Mapping):
        value = item.get("value", item.get("code", ""))
        label = item.get("label", item.get("text", item.get("name", value)))
        return Option(value=str(value), label=str(label))
    if isinstance(item, (tuple, list)) and len(item) == 2:
        return Option(value=str(item[0]), label=str(item[1]))
    raise TypeError(f"Unsupported option shape: {item!r}")


def normalize_options(items: Iterable[Any] | None) -> tuple[Option, ...]:
    """Normalize a sequence of raw options, dropping duplicates by value."""
    seen: set[str] = set()
    result: list[Option] = []
    for item in items or ():
        option = normalize_option(item)
        if option.value in seen:
            continue
        seen.add(option.value)
        result.append(option)
    return tuple(result)


def enum_options(values: Iterable[Any]) -> tuple[Option, ...]:
    """Build labelized options from raw enum constants."""
    return tuple(Option(value=str(v), label=labelize(v)) for v in values)


@dataclass(frozen=True)
class MetaEnums:
    """Option sets driven by the backend's product meta enums."""

    statuses: tuple[Option, ...]
    conditions: tuple[Option, ...]
    weight_units: tuple[Option, ...]
    length_units: tuple[Option, ...]

    @classmethod
    def from_response(
        cls,
        data: Mapping[str, Any] | None,
        fallbacks: Mapping[str, Iterable[str]] | None = None,
    ) -> "MetaEnums":
        """Build option sets from a meta-enums response.

        Absent or empty entries fall back to hardcoded defaults.
        """
        data = data or {}
        defaults = {**FALLBACK_ENUMS, **(fallbacks or {})}

        def pick(key: str) -> tuple[Option, ...]:
            values = data.get(key) or defaults[key]
            return enum_options(values)

        return cls(
            statuses=pick("ProductStatus"),
            conditions=pick("ProductCondition"),
            weight_units=pick("WeightUnit"),
            length_units=pick("LengthUnit"),
        )

    @classmethod
    def fallback(cls) -> "MetaEnums":
        return cls.from_response(None)

    @property
    def default_status(self) -> str:
        return self.statuses[0].value if self.statuses else "active"

    @property
    def default_condition(self) -> str:
        return self.conditions[0].value if self.conditions else "NEW"

    def default_dimension_unit(self, preferred: str = "inch") -> str:
        values = [o.value for o in self.length_units]
        if preferred in values:
            return preferred
        return values[0] if values else preferred


class SizeCatalog:
    """Size options keyed by size code.

    New sizes derive their code from the label and are de-duplicated by code
    (case-insensitive) or by label.
    """

    def __init__(self, options: Iterable[Any] | None = None) -> None:
        self._options: list[Option] = list(normalize_options(options or ()))

    @property
    def options(self) -> tuple[Option, ...]:
        return tuple(self._options)

    def find(self, code: str | None = None, text: str | None = None) -> Option | None:
        """Find a size by code or label (case-insensitive)."""
        code_key = (code or "").strip().casefold()
        text_key = (text or "").strip().casefold()
        for option in self._options:
            if code_key and option.value.casefold() == code_key:
                return option
            if text_key and option.label.casefold() == text_key:
                return option
        return None

    def add(self, text: str | None) -> Option | None:
        """Add a size by label, returning the new or already existing option.

        Returns:
            The option, or None for a blank label
        """
        label = (text or "").strip()
        if not label:
            return None
        code = derive_size_code(label)
        existing = self.find(code=code, text=label)
        if existing is not None:
            return existing
        option = Option(value=code, label=label)
        self._options.append(option)
        return option

    def merge(self, code: str | None, text: str | None) -> None:
        """Register a size seen on a hydrated variant."""
        code = (code or "").strip()
        text = (text or "").strip()
        if not code and (not text or text == SIZE_PLACEHOLDER):
            return
        if self.find(code=code, text=text) is None:
            self._options.append(Option(value=code or derive_size_code(text), label=text or code))


class ColorCatalog:
    """Colour labels, de-duplicated case-insensitively."""

    def __init__(self, colors: Iterable[str] | None = None) -> None:
        self._colors: list[str] = []
        for color in colors or ():
            self.add(color)

    @property
    def options(self) -> tuple[Option, ...]:
        return tuple(Option(value=c, label=c) for c in self._colors)

    def add(self, text: str | None) -> str | None:
        label = (text or "").strip()
        if not label:
            return None
        for color in self._colors:
            if color.casefold() == label.casefold():
                return color
        self._colors.append(label)
        return label


def country_options(data: Any) -> tuple[Option, ...]:
    """Normalize a countries listing into origin options.

    Accepts ``[{"cca2": "US", "name": {"common": "United States"}}, ...]``;
    labels read ``"United States (US)"``, sorted, with an "Other" entry last.
    """
    items: list[Option] = []
    if isinstance(data, list):
        for entry in data:
            if not isinstance(entry, Mapping):
                continue
            code = str(entry.get("cca2") or "").upper()
            common = (entry.get("name") or {}).get("common") if isinstance(entry.get("name"), Mapping) else None
            label = f"{common} ({code})" if common else code
            if code and label:
                items.append(Option(value=code, label=label))
    items.sort(key=lambda o: o.label.casefold())
    if not any(o.value == OTHER_COUNTRY for o in items):
        items.append(Option(value=OTHER_COUNTRY, label=f"Other ({OTHER_COUNTRY})"))
    return tuple(items)


@dataclass
class CategoryCatalog:
    """Category names known to the editor."""

    names: list[str] = field(default_factory=list)

    @property
    def options(self) -> tuple[Option, ...]:
        return tuple(Option(value=n, label=n) for n in self.names)

    def add(self, name: str | None) -> str | None:
        label = (name or "").strip()
        if not label:
            return None
        if label not in self.names:
            self.names.append(label)
        return label
