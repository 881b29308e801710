#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the page2mhtml library.

This module defines specialized exception classes for the error conditions
that can occur while writing an MHTML archive. The encoder is a pure,
deterministic transform: every error below is either an invalid argument or
a caller that broke one of the archive preconditions. None of them are
transient and none are retried.

Exception Hierarchy
-------------------
- Page2MhtmlError (base exception)

  - ValidationError (parameter/option validation)
    - InvalidOptionsError (wrong options class for encoder)
    - InvalidBoundaryError (empty or non RFC 2046 boundary)

  - ContractViolationError (caller broke an archive precondition)
    - MissingContentIdError (frame absent from the content-id table)
    - ArchiveStateError (header/parts/footer called out of order)
    - BoundaryCollisionError (encoded body contains the delimiter)
    - DuplicateFrameOwnerError (one frame resolved for two owner elements)

"""

from typing import Any


class Page2MhtmlError(Exception):
    """Base exception class for all page2mhtml-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(Page2MhtmlError):
    """Exception raised for invalid input parameters or options.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    Attributes
    ----------
    parameter_name : str or None
        The name of the problematic parameter
    parameter_value : any
        The value that caused the error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class InvalidOptionsError(ValidationError):
    """Exception raised when an incorrect options class is provided.

    Parameters
    ----------
    component_name : str
        Name of the component that received invalid options
    expected_type : type
        The expected options class type
    received_type : type
        The actual options class type that was received
    message : str, optional
        Custom error message. If not provided, generates a helpful message

    """

    def __init__(
        self,
        component_name: str,
        expected_type: type,
        received_type: type,
        message: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the invalid options error."""
        if message is None:
            message = (
                f"{component_name} expected options of type '{expected_type.__name__}' "
                f"but received '{received_type.__name__}'."
            )
        super().__init__(
            message, parameter_name="options", parameter_value=received_type, original_error=original_error
        )
        self.component_name = component_name
        self.expected_type = expected_type
        self.received_type = received_type


class InvalidBoundaryError(ValidationError):
    """Exception raised for an empty or malformed multipart boundary.

    Parameters
    ----------
    message : str
        Description of the boundary problem
    boundary : str, optional
        The rejected boundary value

    """

    def __init__(self, message: str, boundary: str | None = None, original_error: Exception | None = None):
        """Initialize the boundary error."""
        super().__init__(message, parameter_name="boundary", parameter_value=boundary, original_error=original_error)
        self.boundary = boundary


class ContractViolationError(Page2MhtmlError):
    """Base exception for broken caller preconditions.

    Output produced after one of these conditions would be a corrupt archive
    that readers cannot tell apart from a valid one, so the session must be
    abandoned rather than recovered.
    """

    pass


class MissingContentIdError(ContractViolationError):
    """Exception raised when a frame has no entry in the content-id table.

    Parameters
    ----------
    frame_id : int
        The frame that was looked up
    message : str, optional
        Custom error message

    Attributes
    ----------
    frame_id : int
        The frame that was looked up

    """

    def __init__(self, frame_id: int, message: str | None = None):
        """Initialize the error for the missing frame."""
        if message is None:
            message = f"Frame {frame_id!r} has no entry in the content-id table"
        super().__init__(message)
        self.frame_id = frame_id


class ArchiveStateError(ContractViolationError):
    """Exception raised when archive phases are invoked out of order.

    Parameters
    ----------
    message : str
        Description of the ordering violation
    phase : str, optional
        Session phase at the time of the call ("new", "parts", "closed")

    """

    def __init__(self, message: str, phase: str | None = None):
        """Initialize the state error with the current phase."""
        super().__init__(message)
        self.phase = phase


class BoundaryCollisionError(ContractViolationError):
    """Exception raised when an encoded part body contains the delimiter line.

    Parameters
    ----------
    boundary : str
        The colliding boundary
    url : str
        Content-Location of the offending resource

    """

    def __init__(self, boundary: str, url: str):
        """Initialize the collision error."""
        super().__init__(f"Body of resource {url!r} contains the multipart delimiter for boundary {boundary!r}")
        self.boundary = boundary
        self.url = url


class DuplicateFrameOwnerError(ContractViolationError):
    """Exception raised when two frame-owner elements resolve to the same frame.

    Each nested frame is hosted by exactly one owner element. A second owner
    pointing at an already claimed frame means the resolver matched the wrong
    frame, typically because two frames share a URL.

    Parameters
    ----------
    frame_id : int
        The frame claimed twice
    tag_name : str
        Name of the second owner element

    """

    def __init__(self, frame_id: int, tag_name: str):
        """Initialize the error for the doubly claimed frame."""
        super().__init__(f"Frame {frame_id!r} is already hosted by another element; <{tag_name}> cannot host it too")
        self.frame_id = frame_id
        self.tag_name = tag_name
