"""
Value and Domain

Initial value of a fit parameter together with the range it may take.
"""

import re
from collections import OrderedDict
from enum import Enum

import numpy as np


class DomainKind(Enum):
    Free = "free"
    Fixed = "fixed"
    RangeWithMin = "range_with_min"
    RangeWithMax = "range_with_max"
    RangeClosed = "range_closed"


class ValueAndDomain:
    """
    Parameter value and its domain, bounds are inclusive.

    Free:          -inf < x < inf
    Fixed:         x == value
    RangeWithMin:  min <= x
    RangeWithMax:  x <= max
    RangeClosed:   min <= x <= max
    """

    def __init__(self, value, kind=DomainKind.Free, min=None, max=None):
        self.value = float(value)
        self.kind = kind
        self.min = None if min is None else float(min)
        self.max = None if max is None else float(max)

    @classmethod
    def free(cls, value):
        return cls(value, DomainKind.Free)

    @classmethod
    def fixed(cls, value):
        return cls(value, DomainKind.Fixed)

    @classmethod
    def range_with_min(cls, value, min):
        return cls(value, DomainKind.RangeWithMin, min=min)

    @classmethod
    def range_with_max(cls, value, max):
        return cls(value, DomainKind.RangeWithMax, max=max)

    @classmethod
    def range_closed(cls, value, min, max):
        return cls(value, DomainKind.RangeClosed, min=min, max=max)

    def __eq__(self, other):
        if not isinstance(other, ValueAndDomain):
            return NotImplemented
        return (self.value, self.kind, self.min, self.max) == (other.value, other.kind, other.min, other.max)

    def __repr__(self):
        if self.kind is DomainKind.Free:
            return f"ValueAndDomain({self.value})"
        if self.kind is DomainKind.Fixed:
            return f"ValueAndDomain(=={self.value})"
        if self.kind is DomainKind.RangeWithMin:
            return f"ValueAndDomain({self.value} >= {self.min})"
        if self.kind is DomainKind.RangeWithMax:
            return f"ValueAndDomain({self.value} <= {self.max})"
        return f"ValueAndDomain({self.min} <= {self.value} <= {self.max})"

    def contains(self, value):
        if self.kind is DomainKind.Free:
            return True
        if self.kind is DomainKind.Fixed:
            return self.value == value
        if self.kind is DomainKind.RangeWithMin:
            return self.min <= value
        if self.kind is DomainKind.RangeWithMax:
            return value <= self.max
        return self.min <= value <= self.max

    def get_randomized(self, initial_values_random_scale, rng=None):
        """
        Random value near the initial one.

        The initial value is multiplied by a uniform factor from
        [1/scale, scale]; for range domains draws are repeated until
        the result is inside the domain.
        """
        if self.kind is DomainKind.Fixed:
            return self.value
        rng = rng if rng is not None else np.random.default_rng()
        low, high = 1. / initial_values_random_scale, initial_values_random_scale
        if self.kind is DomainKind.Free:
            return self.value * rng.uniform(low, high)
        while True:
            new_value = self.value * rng.uniform(low, high)
            if self.contains(new_value):
                return new_value

    @classmethod
    def parse(cls, text):
        """
        Parse one `name=value` entry.

        Accepted forms:
            name=value          free
            name==value         fixed
            name=value<max      range with max
            name=value>min      range with min
            min<name=value<max  closed range

        Returns:
        --------
        tuple : (name, ValueAndDomain)
        """
        parts = [p.strip() for p in re.split(r"([<>])", text.strip())]

        def split_name_value(part, fixed_allowed=False):
            pieces = [p.strip() for p in part.split("=")]
            if len(pieces) == 2 and pieces[0] and pieces[1]:
                return pieces[0], pieces[1], False
            if fixed_allowed and len(pieces) == 3 and pieces[0] and pieces[1] == "" and pieces[2]:
                return pieces[0], pieces[2], True
            raise ValueError(f"can't parse `{text}` as `name=value` or `name==value`")

        def parse_float(value_text, what):
            try:
                return float(value_text)
            except ValueError:
                raise ValueError(f"can't parse {what} `{value_text}` in `{text}` as float") from None

        if len(parts) == 1:
            name, value_text, is_fixed = split_name_value(parts[0], fixed_allowed=True)
            value = parse_float(value_text, "value")
            return name, (cls.fixed(value) if is_fixed else cls.free(value))
        if len(parts) == 3 and parts[1] == "<":
            name, value_text, _ = split_name_value(parts[0])
            return name, cls.range_with_max(parse_float(value_text, "value"), parse_float(parts[2], "max"))
        if len(parts) == 3 and parts[1] == ">":
            name, value_text, _ = split_name_value(parts[0])
            return name, cls.range_with_min(parse_float(value_text, "value"), parse_float(parts[2], "min"))
        if len(parts) == 5 and parts[1] == "<" and parts[3] == "<":
            name, value_text, _ = split_name_value(parts[2])
            return name, cls.range_closed(
                parse_float(value_text, "value"),
                parse_float(parts[0], "min"),
                parse_float(parts[4], "max"),
            )
        raise ValueError(
            f"can't parse `{text}`, expected `name=value`, `name==value`, `name=value<max`, "
            f"`name=value>min` or `min<name=value<max`"
        )


def parse_initial_values(text):
    """
    Parse comma separated `ValueAndDomain` entries.

    Returns:
    --------
    OrderedDict : name -> ValueAndDomain, in the order of appearance
    """
    result = OrderedDict()
    for part in text.strip().strip(",").split(","):
        part = part.strip()
        if not part:
            continue
        name, vad = ValueAndDomain.parse(part)
        if name in result:
            raise ValueError(f"`{name}` is given more than once")
        result[name] = vad
    return result
