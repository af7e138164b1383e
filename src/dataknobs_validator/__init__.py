"""Rule-based validation of dataclass records.

Rules are declared in field metadata and checked by a ``Validator``:

- **Declarations**: ``field("required,between=3|20", name="username")``
- **Validator**: walks records, nested records and collections
- **Errors**: an ordered, serializable collection of ``FieldError``
- **Translator**: fills error messages from per-locale YAML catalogs

Example:
    ```python
    from dataclasses import dataclass
    from dataknobs_validator import Validator, field

    @dataclass
    class Signup:
        username: str = field("required,alphaDash,between=3|20", name="username")
        email: str = field("required,email", name="email")
        age: int = field("omitempty,gte=13", name="age", default=0)

    errors = Validator().validate(Signup(username="x", email="bad"))
    if errors:
        print(errors.to_list())
    ```
"""

from dataknobs_validator.cache import FieldDescriptor, TypeFieldCache, TypeFields
from dataknobs_validator.config import ValidatorConfig
from dataknobs_validator.errors import Errors, FieldError
from dataknobs_validator.evaluators import (
    Evaluator,
    EvaluatorKind,
    RuleRegistry,
    default_registry,
)
from dataknobs_validator.exceptions import (
    CoercionError,
    ConfigurationError,
    EvaluationError,
    RuleParseError,
    TranslationError,
    UnsupportedTypeError,
    UsageError,
    ValidatorError,
)
from dataknobs_validator.fields import field
from dataknobs_validator.kinds import Kind
from dataknobs_validator.rules import ParsedRules, RuleDescriptor, parse_rules
from dataknobs_validator.translator import Translator
from dataknobs_validator.validator import Validator, default_validator, validate

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Validation
    "Validator",
    "default_validator",
    "validate",
    "field",
    # Configuration
    "ValidatorConfig",
    # Errors
    "Errors",
    "FieldError",
    # Exceptions
    "ValidatorError",
    "UsageError",
    "UnsupportedTypeError",
    "RuleParseError",
    "EvaluationError",
    "CoercionError",
    "ConfigurationError",
    "TranslationError",
    # Rules
    "Evaluator",
    "EvaluatorKind",
    "RuleRegistry",
    "default_registry",
    "RuleDescriptor",
    "ParsedRules",
    "parse_rules",
    # Cache
    "FieldDescriptor",
    "TypeFieldCache",
    "TypeFields",
    "Kind",
    # Translation
    "Translator",
]
