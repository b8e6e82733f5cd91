"""Built-in example programs for demonstrating weakest preconditions."""

from __future__ import annotations

from typing import List, NamedTuple


class PresetExample(NamedTuple):
    name: str
    description: str
    code: str
    postcondition: str


DEFAULT_PRESETS: List[PresetExample] = [
    PresetExample(
        "Maximum of two",
        "Stores the larger of x1 and x2 in max",
        "if (x1 >= x2) { max := x1 } else { max := x2 }",
        "max > 100",
    ),
    PresetExample(
        "Chained assignments",
        "Pushes a condition back through a chain of assignments",
        "x := x + 10; y := x + 1",
        "y == x - 9 && x > 15",
    ),
    PresetExample(
        "Quadratic root (simplified)",
        "Computes a root of a quadratic equation when the discriminant is non-negative",
        "if (d >= 0) { root := (-b + d) / (2 * a) } else { root := -999 }",
        "root != -999",
    ),
    PresetExample(
        "Guarded division",
        "Shows the definedness condition generated for division",
        "if (y != 0) { result := x / y } else { result := 0 }",
        "result > 5",
    ),
    PresetExample(
        "Simple assignment",
        "The base case: substitution into the postcondition",
        "x := 2 * x + 5",
        "x > 15",
    ),
]


def get_default_presets() -> List[PresetExample]:
    return list(DEFAULT_PRESETS)


def get_preset(name: str) -> PresetExample:
    """Look up a preset by name, ignoring case. Raises KeyError if unknown."""
    wanted = name.strip().lower()
    for preset in DEFAULT_PRESETS:
        if preset.name.lower() == wanted:
            return preset
    raise KeyError(name)
