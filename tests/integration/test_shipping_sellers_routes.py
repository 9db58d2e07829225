from marketplace.errors import UpstreamFailure

SENDER = {"city": "Austin", "state": "TX", "zip": "73301"}


def test_shipping_rates_legacy_path(wired_client, shippo):
    r = wired_client.post("/shippingRates", json={"zipCode": "10001", "senderAddress": SENDER})
    assert r.status_code == 200
    assert r.json() == [{"object_id": "rate_1", "amount": "7.50", "provider": "USPS"}]


def test_shipping_rates_bad_zip_is_400_without_shippo_call(wired_client, shippo):
    r = wired_client.post("/shippingRates", json={"zipCode": "123", "senderAddress": SENDER})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid destination ZIP code"}
    shippo.create_shipment.assert_not_called()


def test_shippo_get_rates_relays_collaborator_status(wired_client, shippo):
    shippo.create_shipment.side_effect = UpstreamFailure("address_to: zip is invalid", status_code=422)
    r = wired_client.post("/shippoGetRates", json={"address_from": {}, "address_to": {}, "parcels": [{}]})
    assert r.status_code == 422
    assert r.json() == {"error": "address_to: zip is invalid"}


def test_shippo_create_label(wired_client, shippo):
    r = wired_client.post("/shippoCreateLabel", json={"rateObjectId": "rate_1"})
    assert r.status_code == 200
    assert r.json()["label_url"] == "https://shippo.test/label.pdf"


def test_shippo_create_label_error_transaction(wired_client, shippo):
    shippo.purchase_label.return_value = {"status": "ERROR", "messages": [{"text": "Rate expired"}]}
    r = wired_client.post("/shippoCreateLabel", json={"rateObjectId": "rate_1"})
    assert r.status_code == 400
    assert r.json() == {"error": "Rate expired"}


def test_create_connected_account_route(wired_client, gateway, monkeypatch):
    saved = {}
    monkeypatch.setattr("marketplace.sellers.service.repository.get_stripe_account_id", lambda db, uid: saved.get(uid))
    monkeypatch.setattr(
        "marketplace.sellers.service.repository.save_stripe_account_id",
        lambda db, uid, acct, email: saved.__setitem__(uid, acct),
    )

    first = wired_client.post("/createConnectedAccount", json={"userId": "u1", "email": "s@example.com"})
    second = wired_client.post("/createConnectedAccount", json={"userId": "u1", "email": "s@example.com"})

    assert first.status_code == second.status_code == 200
    assert first.json()["accountId"] == second.json()["accountId"] == "acct_test_new"
    assert gateway.create_express_account.call_count == 1


def test_create_connected_account_missing_fields(wired_client, gateway):
    r = wired_client.post("/createConnectedAccount", json={"userId": "u1"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing userId or email"}


def test_check_seller_status_route(wired_client, monkeypatch):
    monkeypatch.setattr("marketplace.sellers.service.repository.get_stripe_account_id", lambda db, uid: "acct_test_existing")
    r = wired_client.post("/checkSellerStatus", json={"userId": "u1"})
    assert r.status_code == 200
    assert r.json()["connected"] is True
    assert r.json()["payoutsEnabled"] is False


def test_check_seller_status_database_failure(wired_client, monkeypatch):
    def _boom(db, uid):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr("marketplace.sellers.service.repository.get_stripe_account_id", _boom)
    r = wired_client.post("/checkSellerStatus", json={"userId": "u1"})
    assert r.status_code == 500
    assert r.json() == {"error": "database unavailable"}
