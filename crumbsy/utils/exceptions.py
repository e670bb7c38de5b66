STATUS_BY_CODE = {
    "NOT_FOUND": 404,
    "VALIDATION_ERROR": 422,
    "AUTH_FAILED": 401,
    "FORBIDDEN": 403,
    "USER_EXISTS": 409,
    "USERNAME_TAKEN": 409,
}


class ServiceError(Exception):
    def __init__(self, code="SERVICE_ERROR", message="Service error", details=None, status=None):
        self.code = code
        self.message = message
        self.details = details or {}
        self.status = status or STATUS_BY_CODE.get(code, 400)
        super().__init__(message)


class OrderNotFound(ServiceError):
    def __init__(self, order_id):
        super().__init__(
            code="NOT_FOUND",
            message="Order not found",
            details={"order_id": order_id},
        )


class InvalidStatus(ServiceError):
    def __init__(self, status):
        super().__init__(
            code="VALIDATION_ERROR",
            message=f"Unknown order status '{status}'",
            details={"field": "status"},
        )
