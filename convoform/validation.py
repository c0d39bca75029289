"""JSON Schema validation for the conversation creation form.

The rules are declared once in ``CONVERSATION_SCHEMA`` and evaluated with
jsonschema's Draft 7 validator. Raw jsonschema errors are translated into one
:class:`~convoform.types.ErrorKind` per failing field:

- ``title``: empty or absent -> REQUIRED, shorter than 3 -> MIN_LENGTH,
  longer than 255 -> MAX_LENGTH. Both boundaries are inclusive.
- ``body``: empty or absent -> REQUIRED.
- ``tags``: never validated.

Validation is pure. Every call starts from scratch, never reads cached
results and never mutates the state it is given.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

import jsonschema
from jsonschema import Draft7Validator

from convoform.types import ErrorKind, FormField

if TYPE_CHECKING:
    from convoform.state_machine import FormState

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255

CONVERSATION_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "minLength": TITLE_MIN_LENGTH,
            "maxLength": TITLE_MAX_LENGTH,
        },
        "body": {"type": "string", "minLength": 1},
    },
    "required": [FormField.TITLE.value, FormField.BODY.value],
}

ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.REQUIRED: "This field is required",
    ErrorKind.MIN_LENGTH: f"Length must be at least {TITLE_MIN_LENGTH}",
    ErrorKind.MAX_LENGTH: f"Length must be at most {TITLE_MAX_LENGTH}",
}

# jsonschema keyword -> error kind
_KEYWORD_TO_KIND: Dict[str, ErrorKind] = {
    "required": ErrorKind.REQUIRED,
    "type": ErrorKind.REQUIRED,
    "minLength": ErrorKind.MIN_LENGTH,
    "maxLength": ErrorKind.MAX_LENGTH,
}

# Stable ordering of the returned mapping
_FIELD_ORDER = (FormField.TITLE, FormField.BODY)
_FIELD_NAMES = frozenset(f.value for f in FormField)


def error_message(kind: ErrorKind) -> str:
    """Return the display message for an error kind.

    Examples:
        >>> error_message(ErrorKind.MIN_LENGTH)
        'Length must be at least 3'
    """
    return ERROR_MESSAGES[kind]


@dataclass(frozen=True)
class ValidationResult:
    """Result of one validation pass.

    Attributes:
        errors: One error kind per failing field (empty if valid)

    Examples:
        >>> result = ValidationResult(errors={FormField.TITLE: ErrorKind.REQUIRED})
        >>> result.is_valid
        False
        >>> result.messages()
        {'title': 'This field is required'}
    """
    errors: Dict[FormField, ErrorKind]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def messages(self) -> Dict[str, str]:
        """Display message per failing field, keyed by field name."""
        return {f.value: error_message(kind) for f, kind in self.errors.items()}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "isValid": self.is_valid,
            "errors": {f.value: kind.value for f, kind in self.errors.items()},
        }


class ValidationEngine:
    """Validates form values against a Draft 7 JSON Schema.

    Attributes:
        schema: The JSON Schema definition to validate against
        validator: The underlying jsonschema validator instance
    """

    def __init__(self, schema: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the engine.

        Args:
            schema: Schema to use, defaults to ``CONVERSATION_SCHEMA``

        Raises:
            jsonschema.SchemaError: If the provided schema is invalid
        """
        self.schema = schema if schema is not None else CONVERSATION_SCHEMA
        Draft7Validator.check_schema(self.schema)
        self.validator = Draft7Validator(self.schema)

    def validate(self, state: "FormState") -> ValidationResult:
        """Run a full validation pass over the form state.

        Args:
            state: The form state to check; it is only read

        Returns:
            ValidationResult holding the complete error set
        """
        instance = self._to_instance(state)

        found: Dict[FormField, ErrorKind] = {}
        for error in self.validator.iter_errors(instance):
            for form_field, kind in self._translate_error(error):
                # first matching rule wins
                found.setdefault(form_field, kind)

        errors = {f: found[f] for f in _FIELD_ORDER if f in found}
        if errors:
            logger.debug("Validation failed: %s", {f.value: k.value for f, k in errors.items()})
        else:
            logger.debug("Validation passed")
        return ValidationResult(errors=errors)

    @staticmethod
    def _to_instance(state: "FormState") -> Dict[str, Any]:
        """Build the JSON instance; empty values are left out so they hit ``required``."""
        instance: Dict[str, Any] = {}
        if state.title:
            instance[FormField.TITLE.value] = state.title
        if state.body:
            instance[FormField.BODY.value] = state.body
        return instance

    @staticmethod
    def _translate_error(error: jsonschema.ValidationError):
        """Yield (field, kind) pairs for a jsonschema error.

        Errors on properties the form does not know about are dropped.
        """
        kind = _KEYWORD_TO_KIND.get(error.validator)
        if kind is None:
            return

        if error.validator == "required":
            instance = error.instance if isinstance(error.instance, dict) else {}
            for name in error.validator_value:
                if name not in instance and name in _FIELD_NAMES:
                    yield FormField(name), kind
            return

        if error.path:
            try:
                yield FormField(str(error.path[0])), kind
            except ValueError:
                return


_default_engine = ValidationEngine()


def validate(state: "FormState") -> Dict[FormField, ErrorKind]:
    """Compute the error set for a form state.

    Returns a new mapping containing only the fields that failed; a fully
    valid form yields an empty mapping.

    Examples:
        >>> from convoform.state_machine import FormState
        >>> validate(FormState(title="Hi", body="<p>content</p>"))
        {<FormField.TITLE: 'title'>: <ErrorKind.MIN_LENGTH: 'min_length'>}
    """
    return dict(_default_engine.validate(state).errors)


__all__ = [
    "TITLE_MIN_LENGTH",
    "TITLE_MAX_LENGTH",
    "CONVERSATION_SCHEMA",
    "ERROR_MESSAGES",
    "error_message",
    "ValidationEngine",
    "ValidationResult",
    "validate",
]
