# ltr/errors.py
"""
Error taxonomy for the trainer.

ConfigurationError  unknown reader / model / algorithm / measure name or a
                      malformed option. Fatal: raised before any training.
NumericDomainError  a value outside the domain of a numeric function
                      (e.g. logit outside (0, 1)). Recovered locally.
DataShapeError      records of one query disagree on feature dimensions.
                      Fatal for that query only.
"""


class LtrError(Exception):
    """Base class for all toolkit errors."""


class ConfigurationError(LtrError):

    def __init__(self, option: str, value, choices=None):
        self.option = option
        self.value = value
        self.choices = list(choices) if choices is not None else []
        message = f"Invalid {option}: {value!r}"
        if self.choices:
            message += f"; select one of {', '.join(map(str, self.choices))}"
        super().__init__(message)


class NumericDomainError(LtrError, ValueError):
    pass


class DataShapeError(LtrError, ValueError):
    pass
