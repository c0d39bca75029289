"""convoform: submission engine for the conversation creation form.

convoform provides:
- A pure validation pass producing the complete field error set
- An immutable form state updated only through an explicit transition function
- A controller that validates, then issues exactly one remote mutation call,
  and surfaces the created record or a single human-readable failure
- An event stream of every transition

Basic usage:
    >>> from convoform import FormConfig, SubmissionController
    >>> controller = SubmissionController(
    ...     FormConfig(collective_id="col_1", on_success=lambda record: None),
    ...     client=None,
    ... )
    >>> controller.state.submitting
    False
"""

__version__ = "0.1.0"
__author__ = "convoform Team"

# Version info
VERSION = (0, 1, 0)

# Core exports
from convoform.controller import FormConfig, SubmissionController
from convoform.validation import validate

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormConfig",
    "SubmissionController",
    "validate",
]
