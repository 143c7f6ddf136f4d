class ConfigurationError(ValueError):
    """Raised when declared tracers, auxiliary fields or forcings are inconsistent.

    Always raised while a model is being built or validated, never from inside
    a tendency evaluation.
    """
