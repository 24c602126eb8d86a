"""End-to-end HTTP tests through the FastAPI app."""
from httpx import AsyncClient

from src.tm_gateway.auth.jwt_handler import ADMIN_ROLE, create_access_token
from tests.functional.seed import POOL_OPENING


def _auth(user_id: str, role: str = "user") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role=role)}"}


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_orders_require_a_token(client: AsyncClient, database: None) -> None:
    resp = await client.post("/api/v1/orders", json={"principal": 100_000, "duration_days": 4})
    assert resp.status_code == 401


async def test_purchase_settle_and_audit(client: AsyncClient, database: None) -> None:
    created = await client.post(
        "/api/v1/orders",
        json={"principal": 100_000, "duration_days": 4},
        headers=_auth("alice"),
    )
    assert created.status_code == 201
    body = created.json()
    assert body["code"] == 0
    order_id = body["data"]["order"]["id"]
    assert body["data"]["pairing"]["outcome"] == "NO_COUNTERPARTY"

    pool = await client.get("/api/v1/pool", headers=_auth("alice"))
    assert pool.json()["data"]["balance"] == POOL_OPENING - 100_000

    seeded = await client.post(
        "/api/v1/admin/sellers",
        json={"owner_id": "bob", "target_payout": 130_000},
        headers=_auth("root", ADMIN_ROLE),
    )
    assert seeded.status_code == 201
    assert seeded.json()["data"]["pairing"] == "PARTIAL"
    seller_id = seeded.json()["data"]["order_id"]

    buying = await client.get(f"/api/v1/orders/{order_id}/chunks/buying", headers=_auth("alice"))
    chunks = buying.json()["data"]["items"]
    assert [c["amount"] for c in chunks] == [100_000]
    chunk_id = chunks[0]["id"]

    paid = await client.post(f"/api/v1/chunks/{chunk_id}/paid", headers=_auth("alice"))
    assert paid.json()["data"]["chunk"]["status"] == "PAYMENT_MADE"

    received = await client.post(f"/api/v1/chunks/{chunk_id}/received", headers=_auth("bob"))
    data = received.json()["data"]
    assert data["chunk"]["status"] == "RECEIVED"
    assert data["buyer_activated"] is True
    assert data["seller_closed"] is False

    order = await client.get(f"/api/v1/orders/{order_id}", headers=_auth("alice"))
    assert order.json()["data"]["status"] == "ACTIVE"
    assert order.json()["data"]["target_payout"] == 130_000

    balance = await client.get(f"/api/v1/orders/{seller_id}/balance", headers=_auth("bob"))
    assert balance.json()["data"]["remaining_to_receive"] == 30_000

    audit = await client.get("/api/v1/admin/invariants", headers=_auth("root", ADMIN_ROLE))
    assert audit.json()["data"] == {"ok": True, "violations": []}


async def test_purchase_out_of_range(client: AsyncClient, database: None) -> None:
    resp = await client.post(
        "/api/v1/orders",
        json={"principal": 1_000, "duration_days": 4},
        headers=_auth("alice"),
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == 4010
    assert resp.headers["X-Request-ID"] == resp.json()["request_id"]


async def test_other_users_order_is_forbidden(client: AsyncClient, database: None) -> None:
    created = await client.post(
        "/api/v1/orders",
        json={"principal": 100_000, "plan": "95% in 12 Days"},
        headers=_auth("alice"),
    )
    order_id = created.json()["data"]["order"]["id"]

    resp = await client.get(f"/api/v1/orders/{order_id}", headers=_auth("mallory"))
    assert resp.status_code == 403
    assert resp.json()["code"] == 6002

    listed = await client.get("/api/v1/orders", headers=_auth("alice"))
    assert [o["id"] for o in listed.json()["data"]["items"]] == [order_id]


async def test_admin_surface_requires_admin(client: AsyncClient, database: None) -> None:
    resp = await client.put("/api/v1/admin/pool", json={"balance": 10}, headers=_auth("alice"))
    assert resp.status_code == 403
    assert resp.json()["code"] == 1010


async def test_admin_pool_and_sweeps(client: AsyncClient, database: None) -> None:
    admin = _auth("root", ADMIN_ROLE)
    resp = await client.put("/api/v1/admin/pool", json={"balance": 42}, headers=admin)
    assert resp.json()["data"]["balance"] == 42

    sweep = await client.post("/api/v1/admin/sweeps/timeout", headers=admin)
    assert sweep.json()["data"]["sweep"] == "timeout"

    unknown = await client.post("/api/v1/admin/sweeps/vacuum", headers=admin)
    assert unknown.status_code == 422


async def test_reinstate_non_revoked_order(client: AsyncClient, database: None) -> None:
    created = await client.post(
        "/api/v1/orders",
        json={"principal": 100_000, "duration_days": 4},
        headers=_auth("alice"),
    )
    order_id = created.json()["data"]["order"]["id"]

    resp = await client.post(
        f"/api/v1/admin/orders/{order_id}/reinstate", headers=_auth("root", ADMIN_ROLE)
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == 4012
