"""
Domain exceptions raised by the services and translated to HTTP errors by the routes.
"""


class NotFoundError(LookupError):
    """The record doesn't exist or belongs to another user."""


class GenerationError(RuntimeError):
    """The language model reply could not be used."""
