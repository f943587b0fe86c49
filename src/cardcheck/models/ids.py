"""ULID-based identifiers for validation runs.

Every ``CardValidator.validate`` call gets a fresh ULID that is bound to the
logger as ``validation_id``, so the events of concurrent validations can be
told apart. The id never appears in the result, which keeps results
deterministic.
"""

from ulid import ULID


def generate_validation_id() -> str:
    """Generate a new 26-character ULID string.

    Example:
        >>> len(generate_validation_id())
        26
    """
    return str(ULID())
