"""
Integration tests for the HTTP API
"""

import pytest
import uuid
from fastapi import status

from kitchenflow.models.order import OrderStatus
from kitchenflow.models.ticket import Station, TicketStatus


@pytest.fixture
def headers(test_tenant):
    return {"X-Tenant-ID": str(test_tenant.id)}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "healthy"


def test_order_to_ready_end_to_end(client, headers, make_order, menu):
    order = make_order([menu["hot"]])

    response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "accepted"}, headers=headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "accepted"
    assert "acceptedAt" in data["timestamps"]
    assert data["version"] == 2

    # Dispatch runs as a background task after the response
    tickets = client.get("/api/v1/kds/tickets", headers=headers).json()
    assert len(tickets) == 1
    ticket = tickets[0]
    assert ticket["status"] == "queued"
    assert ticket["station"] == "hot"
    assert ticket["order_id"] == str(order.id)

    for next_status in ("cooking", "ready"):
        response = client.patch(
            f"/api/v1/kds/tickets/{ticket['id']}/status", json={"status": next_status}, headers=headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == next_status

    order_data = client.get(f"/api/v1/orders/{order.id}", headers=headers).json()
    assert order_data["status"] == "ready"
    assert "readyAt" in order_data["timestamps"]


def test_completing_order_clears_kds_board(client, headers, make_order, menu):
    order = make_order([menu["bar"]])
    client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "accepted"}, headers=headers)
    ticket = client.get("/api/v1/kds/tickets", headers=headers).json()[0]
    for next_status in ("cooking", "ready"):
        client.patch(f"/api/v1/kds/tickets/{ticket['id']}/status", json={"status": next_status}, headers=headers)

    for next_status in ("served", "completed"):
        response = client.patch(
            f"/api/v1/orders/{order.id}/status", json={"status": next_status}, headers=headers
        )
        assert response.status_code == status.HTTP_200_OK

    assert client.get("/api/v1/kds/tickets", headers=headers).json() == []
    bumped = client.get(f"/api/v1/kds/tickets/{ticket['id']}", headers=headers).json()
    assert bumped["status"] == "bumped"
    assert bumped["bumped_at"] is not None


def test_invalid_order_transition_returns_409(client, headers, make_order):
    order = make_order()

    response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "served"}, headers=headers)

    assert response.status_code == status.HTTP_409_CONFLICT
    assert "placed" in response.json()["detail"]


def test_stale_order_version_returns_409(client, headers, make_order):
    order = make_order()

    first = client.patch(
        f"/api/v1/orders/{order.id}/status", json={"status": "accepted", "version": 1}, headers=headers
    )
    second = client.patch(
        f"/api/v1/orders/{order.id}/status", json={"status": "canceled", "version": 1}, headers=headers
    )

    assert first.status_code == status.HTTP_200_OK
    assert second.status_code == status.HTTP_409_CONFLICT


def test_same_status_is_accepted(client, headers, make_order):
    order = make_order(status=OrderStatus.ACCEPTED)

    response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "accepted"}, headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["version"] == 1


def test_unknown_order_returns_404(client, headers):
    response = client.get(f"/api/v1/orders/{uuid.uuid4()}", headers=headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_other_tenant_order_returns_404(client, make_order, other_tenant, headers):
    order = make_order(tenant=other_tenant)

    assert client.get(f"/api/v1/orders/{order.id}", headers=headers).status_code == status.HTTP_404_NOT_FOUND
    response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "accepted"}, headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_missing_tenant_context_returns_400(client, make_order):
    order = make_order()

    response = client.get(f"/api/v1/orders/{order.id}")

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_tenant_resolved_from_host(client, make_order, test_tenant):
    order = make_order()

    response = client.get(f"/api/v1/orders/{order.id}", headers={"host": "saffron-admin.example.com"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["tenant_id"] == str(test_tenant.id)


def test_ticket_skip_returns_409(client, headers, store, make_order):
    order = make_order(status=OrderStatus.ACCEPTED)
    ticket = store.create("kdsTicket", {
        "tenant_id": order.tenant_id,
        "order_id": order.id,
        "station": Station.HOT,
        "status": TicketStatus.QUEUED,
        "ticket_items": [],
    })

    response = client.patch(f"/api/v1/kds/tickets/{ticket.id}/status", json={"status": "bumped"}, headers=headers)

    assert response.status_code == status.HTTP_409_CONFLICT


def test_ticket_priority_and_board_filters(client, headers, store, make_order):
    order = make_order(status=OrderStatus.ACCEPTED)
    hot = store.create("kdsTicket", {
        "tenant_id": order.tenant_id, "order_id": order.id,
        "station": Station.HOT, "status": TicketStatus.QUEUED, "ticket_items": [],
    })
    bar = store.create("kdsTicket", {
        "tenant_id": order.tenant_id, "order_id": order.id,
        "station": Station.BAR, "status": TicketStatus.QUEUED, "ticket_items": [],
    })

    response = client.patch(f"/api/v1/kds/tickets/{bar.id}/priority", json={"priority": True}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["priority"] is True

    board = client.get("/api/v1/kds/tickets", headers=headers).json()
    assert [t["id"] for t in board] == [str(bar.id), str(hot.id)]

    hot_only = client.get("/api/v1/kds/tickets", params={"station": "hot"}, headers=headers).json()
    assert [t["id"] for t in hot_only] == [str(hot.id)]

    invalid = client.get("/api/v1/kds/tickets", params={"station": "grill"}, headers=headers)
    assert invalid.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_current_tenant(client, test_tenant):
    response = client.get("/api/v1/tenant/current", headers={"host": "saffron.example.com:8090"})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["brand_key"] == "saffron"
    assert data["tenant_id"] == str(test_tenant.id)
    assert data["slug"] == "saffron"


def test_current_tenant_unknown_host(client, test_tenant):
    response = client.get("/api/v1/tenant/current", headers={"host": "nobody.example.com"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
