"""Exception classes for question bank clients."""


class BankError(Exception):
    """Base question bank exception."""

    def __init__(self, message: str, endpoint: str | None = None):
        self.message = message
        self.endpoint = endpoint
        super().__init__(message)


class SearchError(BankError):
    """Search endpoint unreachable or returned an unusable response."""

    pass


class UploadError(BankError):
    """Screenshot could not be decoded or stored."""

    pass


class SubmitError(BankError):
    """Question or paper submission was not accepted."""

    pass
