"""Exceptions raised by the productivity report generator."""


class ReportGenerationError(Exception):
    """The workbook could not be rendered or saved.

    Raised from the underlying exception; no partial file is left behind.
    """


class MalformedPayloadError(ValueError):
    """The productivity API answered with a body we cannot interpret."""
