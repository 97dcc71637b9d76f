"""Exception hierarchy shared by the Postforge pipeline.

Domain code raises these exceptions; :mod:`postforge.api.main` translates
them into HTTP responses with fixed, client-safe messages.  The messages
carried by the exceptions themselves are meant for the server log.
"""


class PostforgeError(Exception):
    """Base class for every error raised by the rendering pipeline."""


class ValidationError(PostforgeError):
    """User input failed validation.

    The message is safe to display to the client as-is.
    """


class MissingFieldError(ValidationError):
    """A required field of a generate request is absent or empty."""


class InvalidFilenameError(ValidationError):
    """A file name does not match the generated-image naming pattern."""


class ImageNotFoundError(PostforgeError):
    """The named image does not exist in the public directory."""


class RenderFailure(PostforgeError):
    """The headless browser could not produce a capture."""


class DeleteFailure(PostforgeError):
    """The file system refused to remove an existing image."""
