"""
Console rendering for adservice.

The CLI prints rights tables, capability descriptors and directory objects
as indented "key: value" blocks; `-json` output bypasses this module.
"""

import datetime
from typing import Any, Callable, Dict, List

PrintFunc = Callable[..., Any]

# Keys that read better spelled out
REMAP = {
    "": "(Global)",
    "dn": "Distinguished Name",
    "sid": "Object SID",
    "guid": "Object GUID",
}


def to_pascal_case(snake_str: str) -> str:
    """
    Convert a snake_case name to PascalCase.

    Example:
        >>> to_pascal_case("write_property")
        "WriteProperty"
    """
    return "".join(part.title() for part in snake_str.split("_"))


def _scalar(value: Any) -> str:
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def _lines(data: Dict[str, Any], indent: int, padding: int) -> List[str]:
    lines: List[str] = []
    prefix = "  " * indent

    for key, value in data.items():
        if value is None:
            continue

        label = f"{prefix}{REMAP.get(key, key)}"

        if isinstance(value, dict):
            lines.append(label)
            lines.extend(_lines(value, indent + 1, padding))
        elif isinstance(value, (list, tuple)) and value and isinstance(value[0], dict):
            lines.append(label)
            for item in value:
                lines.extend(_lines(item, indent + 1, padding))
        elif isinstance(value, (list, tuple)):
            separator = "\n" + " " * padding + "  "
            lines.append(f"{label.ljust(padding)}: {separator.join(_scalar(v) for v in value)}")
        else:
            lines.append(f"{label.ljust(padding)}: {_scalar(value)}")

    return lines


def pretty_print(
    data: Dict[str, Any], indent: int = 0, padding: int = 40, print_func: PrintFunc = print
) -> None:
    """
    Print a nested dictionary as aligned "key: value" lines.

    Nested dictionaries and lists of dictionaries are indented below their
    key; other lists are printed one value per line. None values are skipped.

    Args:
        data: Dictionary to print
        indent: Initial indentation level
        padding: Column at which values start
        print_func: Output function
    """
    for line in _lines(data, indent, padding):
        print_func(line)
