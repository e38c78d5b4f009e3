"""Schema declarations for provider resources."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, List


class AttributeType(str, Enum):
    """Value types an attribute can hold."""
    STRING = "string"
    BOOL = "bool"
    INT64 = "int64"
    LIST = "list"
    SET = "set"
    OBJECT = "object"
    LIST_NESTED = "list_nested"
    SET_NESTED = "set_nested"


class PlanModifier(str, Enum):
    """How the host should treat changes to an attribute."""
    REQUIRES_REPLACE = "requires_replace"
    REQUIRES_REPLACE_IF_CONFIGURED = "requires_replace_if_configured"
    USE_STATE_FOR_UNKNOWN = "use_state_for_unknown"


@dataclass
class Attribute:
    """A single schema attribute."""
    type: AttributeType
    description: str = ""
    required: bool = False
    optional: bool = False
    computed: bool = False
    sensitive: bool = False
    plan_modifiers: List[PlanModifier] = field(default_factory=list)
    element_type: Optional[AttributeType] = None
    attribute_types: Dict[str, AttributeType] = field(default_factory=dict)
    nested_attributes: Dict[str, 'Attribute'] = field(default_factory=dict)

    def __post_init__(self):
        if self.required and (self.optional or self.computed):
            raise ValueError("A required attribute cannot also be optional or computed")
        if not (self.required or self.optional or self.computed):
            raise ValueError("An attribute must be required, optional or computed")

    @property
    def forces_replacement(self) -> bool:
        return any(
            modifier in (PlanModifier.REQUIRES_REPLACE, PlanModifier.REQUIRES_REPLACE_IF_CONFIGURED)
            for modifier in self.plan_modifiers
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render the attribute for schema output."""
        result: Dict[str, Any] = {
            'type': self.type.value,
            'description': self.description,
            'required': self.required,
            'optional': self.optional,
            'computed': self.computed,
        }

        if self.sensitive:
            result['sensitive'] = True
        if self.plan_modifiers:
            result['plan_modifiers'] = [modifier.value for modifier in self.plan_modifiers]
        if self.element_type:
            result['element_type'] = self.element_type.value
        if self.attribute_types:
            result['attribute_types'] = {name: t.value for name, t in self.attribute_types.items()}
        if self.nested_attributes:
            result['nested_attributes'] = {
                name: attribute.to_dict() for name, attribute in self.nested_attributes.items()
            }

        return result


@dataclass
class Schema:
    """Schema of a resource or of the provider itself."""
    description: str
    attributes: Dict[str, Attribute] = field(default_factory=dict)

    def replacement_attributes(self) -> List[str]:
        """Names of top-level attributes whose change forces a new resource."""
        return [name for name, attribute in self.attributes.items() if attribute.forces_replacement]

    def required_attributes(self) -> List[str]:
        return [name for name, attribute in self.attributes.items() if attribute.required]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'attributes': {name: attribute.to_dict() for name, attribute in self.attributes.items()}
        }
