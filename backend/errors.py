"""Errors surfaced to API callers."""


class ServiceError(Exception):
    """Base error carrying the HTTP status a route should answer with."""
    status_code = 500

    def __init__(self, message, error=None, status_code=None):
        super().__init__(message)
        self.message = message
        self.error = error
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        body = {"success": False, "message": self.message}
        if self.error:
            body["error"] = self.error
        return body


class MissingApiKeyError(ServiceError):
    status_code = 400

    def __init__(self, provider):
        super().__init__(f"{provider} API key is missing. Please add it to your .env file.")
        self.provider = provider


class ProviderError(ServiceError):
    """An upstream vendor API answered with an error or could not be reached."""
    status_code = 500


class NotFoundError(ServiceError):
    status_code = 404


class ValidationError(ServiceError):
    status_code = 400
