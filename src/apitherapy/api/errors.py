class APIError(Exception):
    def __init__(self, code: str, message: str, http_status: int = 400, details: dict = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details


class NotFoundError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__("NOT_FOUND", message, 404, details)


# Session-specific
class SummaryNotAvailableError(NotFoundError):
    def __init__(self):
        super().__init__("No finalized session summary is available", {"step": "summary"})
