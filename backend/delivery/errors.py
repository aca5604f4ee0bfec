"""Delivery failures that map onto an HTTP status and a public message."""


class DeliveryError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotEntitled(DeliveryError):
    status_code = 403


class NotFound(DeliveryError):
    status_code = 404


class BadRequest(DeliveryError):
    status_code = 400
