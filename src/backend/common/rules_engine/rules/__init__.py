from ..registry import RuleRegistry
from . import address, geometry, identification

# Registration order is evaluation order.
RULE_MODULES = (identification, address, geometry)


def build_registry() -> RuleRegistry:
    registry = RuleRegistry()
    for module in RULE_MODULES:
        module.register(registry)
    return registry


__all__ = [
    "RULE_MODULES",
    "build_registry",
]
