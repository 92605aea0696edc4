"""Integration tests for offline payment approval and rejection"""

from fastapi.testclient import TestClient
from ravehub_gateway.infrastructure.database.models import TicketTransaction
from ravehub_gateway.infrastructure.database.repositories import InstallmentRepository

APPROVE_URL = "/v1/tickets/approve-offline"
ADMIN = "ops@ravehub.test"


def test_approve_requires_admin_token(client: TestClient, make_transaction):
    transaction = make_transaction()

    response = client.post(APPROVE_URL, json={"transactionId": transaction.id})
    assert response.status_code == 401

    response = client.post(
        APPROVE_URL,
        json={"transactionId": transaction.id},
        headers={"Authorization": "Bearer wrong-token"},
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid admin token"}


def test_approve_requires_transaction_id(client: TestClient, admin_headers):
    response = client.post(APPROVE_URL, json={"adminNotes": "paid in cash"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Transaction ID is required"}
    assert response.headers["X-Robots-Tag"] == "noindex"


def test_approve_unknown_transaction(client: TestClient, admin_headers):
    response = client.post(APPROVE_URL, json={"transactionId": "missing"}, headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "Transaction not found"}


def test_approve_installment_transaction(client: TestClient, db, make_transaction, admin_headers, revalidation_mock):
    transaction = make_transaction(payment_type="installment", installments=3)

    response = client.post(
        APPROVE_URL,
        json={"transactionId": transaction.id, "adminNotes": "Transfer verified"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Transaction approved successfully"}
    assert response.headers["X-Robots-Tag"] == "noindex"

    db.expire_all()
    stored = db.get(TicketTransaction, transaction.id)
    assert stored.payment_status == "approved"
    assert stored.reviewed_by == ADMIN
    assert stored.admin_notes == "Transfer verified"

    schedule = InstallmentRepository(db).list_for_transaction(transaction.id)
    assert schedule[0].status == "paid"
    assert schedule[0].admin_approved is True
    assert schedule[0].approved_by == ADMIN
    assert [inst.status for inst in schedule[1:]] == ["pending", "pending"]

    revalidation_mock.assert_awaited_once_with("evt-ultra-2025")


def test_approve_already_approved_transaction(client: TestClient, db, make_transaction, admin_headers):
    transaction = make_transaction(payment_type="installment", installments=3, payment_status="approved")

    response = client.post(APPROVE_URL, json={"transactionId": transaction.id}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Transaction is not pending approval"}

    db.expire_all()
    first = InstallmentRepository(db).get_installment(transaction.id, 1)
    assert first.status == "pending"
    assert first.admin_approved is False


def test_reject_offline_payment(client: TestClient, db, make_transaction, admin_headers, revalidation_mock):
    transaction = make_transaction(payment_type="installment", installments=3)

    response = client.put(
        APPROVE_URL,
        json={"transactionId": transaction.id, "adminNotes": "Proof unreadable"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Transaction rejected"

    db.expire_all()
    stored = db.get(TicketTransaction, transaction.id)
    assert stored.payment_status == "rejected"
    assert stored.reviewed_by == ADMIN
    assert stored.admin_notes == "Proof unreadable"
    assert all(inst.status == "pending" for inst in InstallmentRepository(db).list_for_transaction(transaction.id))
    revalidation_mock.assert_not_awaited()


def test_reject_twice(client: TestClient, make_transaction, admin_headers):
    transaction = make_transaction()

    assert client.put(APPROVE_URL, json={"transactionId": transaction.id}, headers=admin_headers).status_code == 200
    response = client.put(APPROVE_URL, json={"transactionId": transaction.id}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Transaction is not pending approval"}


def test_list_pending_transactions(client: TestClient, make_transaction, admin_headers):
    pending = make_transaction()
    make_transaction(payment_status="approved")

    response = client.get("/v1/admin/transactions?status=pending", headers=admin_headers)

    assert response.status_code == 200
    ids = [t["id"] for t in response.json()["transactions"]]
    assert ids == [pending.id]


def test_list_transactions_requires_admin(client: TestClient):
    assert client.get("/v1/admin/transactions").status_code == 401
