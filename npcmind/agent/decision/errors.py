class DecisionError(Exception):
    """Base class for recoverable decision-engine failures."""


class ModelClientError(DecisionError):
    """The model call failed (transport error, timeout, rejected request)."""


class MissingCredentialsError(ModelClientError):
    """No API key could be resolved for the model service."""
