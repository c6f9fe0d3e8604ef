# marketplace/forms/validation.py
"""
Compile a field registry into a reusable validator.

    validate = compile_validator(USER_FORM_FIELDS)
    errors = validate({"email": "nope", ...})   # {"email": "Invalid email", ...}

A submission is acceptable iff the returned mapping is empty. Each field
reports at most one error: the first rule that fails.
"""
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from marketplace.forms.fields import (
    EmailFormat,
    EqualsField,
    FieldDescriptor,
    MaxLength,
    MinLength,
    Required,
    Rule,
)

ValidationResult = Dict[str, str]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+\Z")

# rule name -> key looked up in FieldDescriptor.error_messages
MESSAGE_KEYS = {
    "required":   "requiredError",
    "email":      "emailError",
    "min_length": "lengthError",
    "max_length": "lengthError",
    "equals":     "passwordError",
}


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def rule_passes(rule: Rule, value: Optional[str], values: Mapping[str, Optional[str]]) -> bool:
    if isinstance(rule, Required):
        return not _is_blank(value)
    if isinstance(rule, EmailFormat):
        return bool(EMAIL_PATTERN.match(value or ""))
    if isinstance(rule, MinLength):
        return len(value or "") >= rule.limit
    if isinstance(rule, MaxLength):
        return len(value or "") <= rule.limit
    if isinstance(rule, EqualsField):
        if rule.other not in values:
            return False
        other = values[rule.other]
        # an empty reference is reported on its own field
        if _is_blank(other):
            return True
        return value == other
    raise TypeError(f"Unknown rule: {rule!r}")


def default_message(descriptor: FieldDescriptor, rule: Rule) -> str:
    if isinstance(rule, Required):
        return f"{descriptor.label} is required"
    if isinstance(rule, EmailFormat):
        return "invalid email"
    if isinstance(rule, MinLength):
        return f"{descriptor.label} must be at least {rule.limit} characters"
    if isinstance(rule, MaxLength):
        return f"{descriptor.label} must be at most {rule.limit} characters"
    return "fields do not match"


def message_for(descriptor: FieldDescriptor, rule: Rule) -> str:
    custom = descriptor.error_messages.get(MESSAGE_KEYS[rule.name])
    return custom or default_message(descriptor, rule)


class Validator:
    """Pure, re-entrant validator built once from a registry."""

    def __init__(self, fields: Sequence[FieldDescriptor]):
        names = [f.name for f in fields]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate field names in registry: {names}")
        self.fields: Tuple[FieldDescriptor, ...] = tuple(fields)
        self._plan: Tuple[Tuple[FieldDescriptor, Tuple[Rule, ...]], ...] = tuple(
            (f, f.rules()) for f in self.fields
        )

    def __call__(self, values: Mapping[str, Optional[str]]) -> ValidationResult:
        errors: ValidationResult = {}
        for descriptor, rules in self._plan:
            value = values.get(descriptor.name)
            if not descriptor.required and _is_blank(value):
                continue
            for rule in rules:
                if not rule_passes(rule, value, values):
                    errors[descriptor.name] = message_for(descriptor, rule)
                    break
        return errors


def compile_validator(fields: Sequence[FieldDescriptor]) -> Validator:
    return Validator(fields)


def describe_fields(fields: Sequence[FieldDescriptor]) -> List[Dict[str, Any]]:
    """JSON-ready registry description for clients."""
    described = []
    for f in fields:
        described.append(
            {
                "name": f.name,
                "type": f.input_kind.value,
                "label": f.label,
                "placeholder": f.placeholder,
                "required": f.required,
                "minLength": f.min_length,
                "maxLength": f.max_length,
                "equals": f.cross_field_equals,
                "rules": [r.name for r in f.rules()],
                "messages": dict(f.error_messages),
            }
        )
    return described
