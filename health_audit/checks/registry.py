"""
Registry of check classes by name.
"""

from typing import Dict, List, Type

from ..audit.aggregator import register_description

CHECK_REGISTRY: Dict[str, type] = {}


def register_check(cls: Type) -> Type:
    """Class decorator adding a check and its summary description."""
    if not cls.name:
        raise ValueError(f"{cls.__name__} has no check name")
    if cls.name in CHECK_REGISTRY and CHECK_REGISTRY[cls.name] is not cls:
        raise ValueError(f"check {cls.name} is already registered")
    CHECK_REGISTRY[cls.name] = cls
    register_description(cls.name, cls.description)
    return cls


def get_check(name: str):
    """Instantiate the check registered under name."""
    try:
        return CHECK_REGISTRY[name]()
    except KeyError:
        raise KeyError(f"unknown check '{name}'") from None


def list_checks() -> List[str]:
    return sorted(CHECK_REGISTRY)
