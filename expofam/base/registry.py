"""
Registry of exponential families.

Maps a family tag (the standard distribution class name, e.g. ``"Gamma"``)
and the standard distribution class itself to the family's singleton
capability object. Entities resolve their family once at construction, so
hot paths never look it up again.

Families register themselves on import of :mod:`expofam.distributions`,
which :mod:`expofam` imports eagerly.
"""

from typing import Dict, List, Type, TypeVar, Union

from expofam.base.family import ExponentialFamily
from expofam.errors import UnknownFamily

F = TypeVar("F", bound=ExponentialFamily)

_FAMILIES: Dict[str, ExponentialFamily] = {}
_BY_DISTRIBUTION: Dict[type, ExponentialFamily] = {}


def register_family(cls: Type[F]) -> Type[F]:
    """
    Class decorator: instantiate a family and register it under its tag.

    Raises
    ------
    ValueError
        If another family already uses the tag.
    """
    family = cls()
    existing = _FAMILIES.get(family.name)
    if existing is not None and type(existing) is not cls:
        raise ValueError(f"Family tag {family.name!r} is already registered")
    _FAMILIES[family.name] = family
    _BY_DISTRIBUTION[family.distribution_type] = family
    return cls


def get_family(tag: Union[str, type, ExponentialFamily]) -> ExponentialFamily:
    """
    Resolve a family from its tag, its standard distribution class, or the
    family object itself.

    Raises
    ------
    UnknownFamily
        If nothing is registered under ``tag``.
    """
    if isinstance(tag, ExponentialFamily):
        return tag
    if isinstance(tag, type):
        if issubclass(tag, ExponentialFamily):
            return get_family(tag.name)
        try:
            return _BY_DISTRIBUTION[tag]
        except KeyError:
            raise UnknownFamily(f"No family registered for {tag.__name__}") from None
    try:
        return _FAMILIES[tag]
    except (KeyError, TypeError):
        raise UnknownFamily(f"No family registered under tag {tag!r}") from None


def family_of(distribution) -> ExponentialFamily:
    """Family of a standard distribution instance."""
    return get_family(type(distribution))


def is_registered(tag: Union[str, type]) -> bool:
    """Check whether ``tag`` resolves to a family."""
    try:
        get_family(tag)
    except UnknownFamily:
        return False
    return True


def registered_families() -> List[str]:
    """Sorted list of registered tags."""
    return sorted(_FAMILIES)


__all__ = [
    "register_family",
    "get_family",
    "family_of",
    "is_registered",
    "registered_families",
]
