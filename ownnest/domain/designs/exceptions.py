"""Design domain specific exceptions."""


class DesignError(Exception):
    """Base class for design domain errors."""


class DesignValidationError(DesignError):
    """Raised when a design record is missing a required field."""

    def __init__(self, fields: list[str]) -> None:
        super().__init__(f"required fields are empty: {', '.join(fields)}")
        self.fields = fields
