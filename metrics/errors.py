"""Errors raised while turning records into samples"""


class PromError(Exception):
    """Base class for extraction errors"""

    def __init__(self, msg: str):
        super().__init__(msg)
        self.msg = msg

    def __str__(self) -> str:
        return self.msg


class NotARecordError(PromError, TypeError):
    """Raised when the input is not a field-bearing record"""


class ValueCoercionError(PromError, ValueError):
    """Raised when a metric field cannot be read as a float or a boolean"""

    def __init__(self, field_name: str, value: str):
        super().__init__(
            f"Metric field '{field_name}' has unusable value '{value}': "
            "must be parseable as a float or a boolean"
        )
        self.field_name = field_name
        self.value = value
