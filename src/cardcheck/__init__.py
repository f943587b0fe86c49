"""cardcheck: validation and scoring engine for A2A agent cards.

Example:
    >>> from cardcheck import ValidationOptions, validate_card
    >>> result = validate_card(card, ValidationOptions(schema_only=True))
    >>> result.scoring_result.compliance.total
    100.0
"""

from cardcheck.config import ProbeOptions, ValidationOptions
from cardcheck.models.constants import VALIDATOR_VERSION
from cardcheck.models.enums import ValidationStrictness
from cardcheck.models.results import ValidationResult
from cardcheck.validator import CardValidator, validate_card, validate_card_async

__version__ = VALIDATOR_VERSION

__all__ = [
    "CardValidator",
    "ProbeOptions",
    "ValidationOptions",
    "ValidationResult",
    "ValidationStrictness",
    "__version__",
    "validate_card",
    "validate_card_async",
]
