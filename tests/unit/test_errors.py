"""Tests for tm_common.errors and tm_common.response."""

from src.tm_common.errors import (
    AdminRequiredError,
    AppError,
    ChunkNotFoundError,
    InvalidPoolBalanceError,
    NotOrderOwnerError,
    OrderNotFoundError,
    OrderNotRevokedError,
    PurchaseOutOfRangeError,
    UnknownPlanError,
)
from src.tm_common.response import (
    ApiResponse,
    error_response,
    request_id_var,
    success_response,
)


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_custom_http_status(self) -> None:
        err = AppError(code=4004, message="missing", http_status=404)
        assert err.http_status == 404

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestSpecificErrors:
    def test_order_not_found(self) -> None:
        err = OrderNotFoundError("ord-1")
        assert err.code == 4004
        assert err.http_status == 404
        assert "ord-1" in err.message

    def test_purchase_out_of_range(self) -> None:
        err = PurchaseOutOfRangeError(100, 50_000, 500_000)
        assert err.code == 4010
        assert err.http_status == 422
        assert "50000" in err.message
        assert "500000" in err.message

    def test_unknown_plan(self) -> None:
        err = UnknownPlanError("7 days")
        assert err.code == 4011
        assert "7 days" in err.message

    def test_order_not_revoked(self) -> None:
        err = OrderNotRevokedError("ord-1", "ACTIVE")
        assert err.code == 4012
        assert "ACTIVE" in err.message

    def test_chunk_not_found(self) -> None:
        err = ChunkNotFoundError("chk-1")
        assert err.code == 6001
        assert err.http_status == 404

    def test_not_owner(self) -> None:
        err = NotOrderOwnerError("ord-1")
        assert err.code == 6002
        assert err.http_status == 403

    def test_admin_required(self) -> None:
        err = AdminRequiredError()
        assert err.code == 1010
        assert err.http_status == 403

    def test_invalid_pool_balance(self) -> None:
        err = InvalidPoolBalanceError(-5)
        assert err.code == 7001
        assert "-5" in err.message


class TestApiResponse:
    def test_success_response(self) -> None:
        resp = success_response({"id": "ord-1"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "ord-1"}

    def test_error_response(self) -> None:
        resp = error_response(4004, "Order not found")
        assert resp.code == 4004
        assert resp.data is None

    def test_request_id_generated(self) -> None:
        a, b = ApiResponse(), ApiResponse()
        assert a.request_id.startswith("req_")
        assert a.request_id != b.request_id

    def test_request_id_follows_bound_request(self) -> None:
        token = request_id_var.set("req_fixed")
        try:
            assert success_response().request_id == "req_fixed"
        finally:
            request_id_var.reset(token)
