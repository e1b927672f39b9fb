"""Exceptions raised by the waterfall engine.

Schema problems (missing hurdle rate, negative money, duplicate tier order)
surface as pydantic's ``ValidationError`` when a scenario is built. Both that
and the errors below are ``ValueError`` subclasses, so callers can catch
either one.
"""


class WaterfallValidationError(ValueError):
    """Raised when engine inputs are malformed. Nothing is computed."""
    pass


class SensitivityValidationError(WaterfallValidationError):
    """Raised when a sensitivity sweep range or step count is invalid."""
    pass
