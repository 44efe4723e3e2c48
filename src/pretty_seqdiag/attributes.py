from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import ClassVar, Protocol

from .statements import AttributeValue

# ============================================================================
# Attribute configuration
#
# Every configurable entity (diagram, node, edge, group) declares four
# disjoint tables mapping an attribute name to the field it sets:
#
#   boolean_attributes  -- anything but "false"/"none" means True
#   enum_attributes     -- value must be one of the declared candidates
#   integer_attributes  -- value must already be a numeric literal
#   string_attributes   -- any defined value, stored as str
#
# Lookups follow that priority order. Unknown names and mistyped values are
# reported through logging and leave the entity untouched.
# ============================================================================

log = logging.getLogger(__name__)

FALSE_TOKENS = frozenset({"false", "none"})


class Assignment(Protocol):
    name: str
    value: AttributeValue


def to_bool(value: AttributeValue) -> bool:
    """Interpret an attribute value as a flag. Bare flags (None) are True."""
    if value is None:
        return True
    return str(value).lower() not in FALSE_TOKENS


def is_number(value: AttributeValue) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Configurable:
    """Mixin giving an entity name-keyed, type-checked attribute setters."""

    __slots__ = ()

    boolean_attributes: ClassVar[dict[str, str]] = {}
    # name -> (field, candidates)
    enum_attributes: ClassVar[dict[str, tuple[str, tuple[str, ...]]]] = {}
    integer_attributes: ClassVar[dict[str, str]] = {}
    string_attributes: ClassVar[dict[str, str]] = {}

    def set_attribute(self, name: str, value: AttributeValue) -> bool:
        """Apply one attribute. Returns False (after logging) if it was rejected."""
        entity = type(self).__name__

        if name in self.boolean_attributes:
            setattr(self, self.boolean_attributes[name], to_bool(value))
            return True

        if name in self.enum_attributes:
            field_name, candidates = self.enum_attributes[name]
            if value in candidates:
                setattr(self, field_name, value)
                return True
            log.warning(
                "%s: unknown value %r for attribute %r (expected one of: %s)",
                entity, value, name, ", ".join(candidates),
            )
            return False

        if name in self.integer_attributes:
            if is_number(value):
                setattr(self, self.integer_attributes[name], value)
                return True
            log.warning("%s: attribute %r requires a number, got %r", entity, name, value)
            return False

        if name in self.string_attributes:
            if value is not None:
                setattr(self, self.string_attributes[name], str(value))
                return True
            log.warning("%s: attribute %r requires a value", entity, name)
            return False

        log.warning("%s: unknown attribute %r", entity, name)
        return False

    def set_attributes(self, assignments: Iterable[Assignment]) -> None:
        """Apply assignments in order; a later assignment of the same name wins."""
        for assignment in assignments:
            self.set_attribute(assignment.name, assignment.value)
