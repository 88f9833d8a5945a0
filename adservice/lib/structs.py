"""
Bit-field base type for adservice.

Rights masks, ACE flags and protocol flags all end up in log lines, JSON
output and error messages; this base gives them PascalCase names.
"""

import enum
from typing import List

from adservice.lib.formatting import to_pascal_case


class IntFlag(enum.IntFlag):
    """IntFlag that renders as "WriteProperty, Delete" rather than a repr."""

    def to_list(self) -> List["IntFlag"]:
        """
        Split the value into its single-bit members, in definition order.

        Composite members such as GENERIC_WRITE are never returned, so every
        bit is reported once.
        """
        if not self._value_:
            return []

        return [
            flag
            for flag in self.__class__
            if flag.value
            and flag.value & (flag.value - 1) == 0
            and flag.value & self._value_
        ]

    def to_str_list(self) -> List[str]:
        return [to_pascal_case(flag.name) for flag in self.to_list() if flag.name is not None]

    def __str__(self) -> str:
        # A single named member, including composites like GENERIC_ALL
        if self.name is not None and "|" not in self.name:
            return to_pascal_case(self.name)

        if not self._value_:
            return ""

        names = self.to_str_list()
        if not names:
            return repr(self._value_)
        return ", ".join(names)

    def __repr__(self) -> str:
        return str(self)
