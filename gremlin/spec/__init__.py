"""GremlinSpec model, predicate algebra and flow extraction."""

from .errors import SpecValidationError
from .flows import Flow, extract_flows, shortest_path, terminal_states
from .models import (
    GremlinSpec,
    Platform,
    Property,
    PropertyType,
    SpecMetadata,
    State,
    Transition,
    TransitionEvent,
    TransitionEventType,
    Variable,
    VariableType,
    create_spec,
    create_state,
    create_transition,
    ensure_valid_spec,
    touch_spec,
    validate_spec,
)
from .predicates import (
    Action,
    And,
    Assign,
    Clear,
    Comparison,
    ComparisonOp,
    Decrement,
    ElementExists,
    ElementVisible,
    FieldValue,
    Increment,
    InState,
    Literal,
    LiteralValue,
    Not,
    Or,
    Pop,
    Predicate,
    Push,
    Sequence,
    VariableRef,
    VariableValue,
    action_from_dict,
    action_to_dict,
    format_predicate,
    predicate_from_dict,
    predicate_to_dict,
)
from .refs import ElementKind, ElementRef, ScreenshotRef

__all__ = [
    # Models
    "GremlinSpec",
    "Platform",
    "Property",
    "PropertyType",
    "SpecMetadata",
    "State",
    "Transition",
    "TransitionEvent",
    "TransitionEventType",
    "Variable",
    "VariableType",
    "ElementKind",
    "ElementRef",
    "ScreenshotRef",
    "SpecValidationError",
    # Factories and validation
    "create_spec",
    "create_state",
    "create_transition",
    "touch_spec",
    "validate_spec",
    "ensure_valid_spec",
    # Predicates and actions
    "Action",
    "And",
    "Assign",
    "Clear",
    "Comparison",
    "ComparisonOp",
    "Decrement",
    "ElementExists",
    "ElementVisible",
    "FieldValue",
    "Increment",
    "InState",
    "Literal",
    "LiteralValue",
    "Not",
    "Or",
    "Pop",
    "Predicate",
    "Push",
    "Sequence",
    "VariableRef",
    "VariableValue",
    "action_from_dict",
    "action_to_dict",
    "format_predicate",
    "predicate_from_dict",
    "predicate_to_dict",
    # Flows
    "Flow",
    "extract_flows",
    "shortest_path",
    "terminal_states",
]
