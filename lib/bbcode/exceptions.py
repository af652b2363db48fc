"""
BBCode renderer exceptions

This module defines the exception hierarchy for the BBCode renderer.
Malformed markup never raises: these exceptions only cover a broken
tag table and render callbacks failing in strict mode.
"""


class BBCodeError(Exception):
    """
    Base exception for all BBCode renderer errors.

    Catch this to handle any renderer error generically.
    """

    pass


class BBCodeConfigError(BBCodeError):
    """
    Exception raised when a tag rule table is invalid.

    This exception is raised at construction time when:
    - A rule is neither a template string, a callable nor a rule object
    - A rule object has no usable body
    - A tag name contains characters outside of [A-Za-z0-9_-]
    - A handler reference cannot be imported

    Args:
        message: Description of the configuration error
    """

    pass


class BBCodeRenderError(BBCodeError):
    """
    Exception raised when a render callback fails in strict mode.

    Args:
        message: Description of the failure
        tagName: Name of the tag being rendered
        originalError: The exception raised by the callback
    """

    def __init__(self, message: str, tagName: str, originalError: Exception | None = None):
        """
        Initialize BBCodeRenderError with message, tag name and original error.

        Args:
            message: Description of the failure
            tagName: Name of the tag being rendered
            originalError: The exception raised by the callback
        """
        super().__init__(message)
        self.tagName = tagName
        self.originalError = originalError
