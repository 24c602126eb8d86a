"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Caller identity
  4xxx: Order
  6xxx: Chunk / settlement
  7xxx: Pool / admin
  9xxx: System

Lock contention and lost reservation races are not errors; they surface as
PairingOutcome values instead.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Caller identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1010, "Admin role required", 403)


# --- 4xxx: Order ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class PurchaseOutOfRangeError(AppError):
    def __init__(self, amount: int, minimum: int, maximum: int) -> None:
        super().__init__(
            4010,
            f"Purchase of {amount} cents outside allowed range [{minimum}, {maximum}]",
            422,
        )


class UnknownPlanError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4011, f"Unknown investment plan: {detail}", 422)


class OrderNotRevokedError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4012, f"Order {order_id} in status {status} is not revoked", 422)


# --- 6xxx: Chunk / settlement ---

class ChunkNotFoundError(AppError):
    def __init__(self, chunk_id: str) -> None:
        super().__init__(6001, f"Chunk not found: {chunk_id}", 404)


class NotOrderOwnerError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(6002, f"Caller does not own order {order_id}", 403)


# --- 7xxx: Pool / admin ---

class InvalidPoolBalanceError(AppError):
    def __init__(self, balance: int) -> None:
        super().__init__(7001, f"Pool balance must be >= 0, got {balance}", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
