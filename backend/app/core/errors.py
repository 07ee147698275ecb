"""Error taxonomy shared by the services and the API layer.

Request validation errors are raised by pydantic / FastAPI
(``RequestValidationError``) and never reach the services.
"""


class WizardError(Exception):
    """Base class for failures of an upstream-backed component."""


class ExtractionError(WizardError):
    """Content-extraction API failure. Non-fatal to character generation."""


class GenerationError(WizardError):
    """Language-model call, JSON parse or character validation failure."""


class ImageError(WizardError):
    """Image API call, timeout or response-shape failure."""


class ConfigurationError(WizardError):
    """A required credential is missing.

    Always chained as the cause of the component error so that the client
    only ever sees a generic server error.
    """
