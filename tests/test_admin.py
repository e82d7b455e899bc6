from decimal import Decimal


def upload(client, path, content, headers, filename="data.csv"):
    return client.post(path, files={"file": (filename, content, "text/csv")}, headers=headers)


def test_import_items(client, auth_headers):
    content = b"code,name,unit_price\nPEN,Pen,25.00\nBK,\"Book, ruled\",120.5\n"

    response = upload(client, "/admin/import-items", content, auth_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["imported_count"] == 2
    items = client.get("/api/items", headers=auth_headers).json()
    assert {i["code"]: i["name"] for i in items} == {"BK": "Book, ruled", "PEN": "Pen"}


def test_import_skips_existing_keys(client, auth_headers):
    client.post("/api/items", json={"code": "PEN", "name": "Pen", "unit_price": "25"}, headers=auth_headers)
    content = b"code,name,unit_price\nPEN,Other pen,1\nRUL,Ruler,40\n"

    response = upload(client, "/admin/import-items", content, auth_headers)

    assert response.json()["imported_count"] == 1
    assert response.json()["skipped_count"] == 1
    assert client.get("/api/items/PEN", headers=auth_headers).json()["name"] == "Pen"


def test_import_customers_reports_bad_rows(client, auth_headers):
    content = (
        b"account_no,name,address,phone,units_consumed\n"
        b"C001,Jane,Street 1,0771,120\n"
        b"C002,Ravi,Street 2,0772,-5\n"
    )

    response = upload(client, "/admin/import-customers", content, auth_headers)

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["imported_count"] == 0
    assert response.json()["errors"][0].startswith("Row 3")
    assert client.get("/api/customers", headers=auth_headers).json() == []


def test_import_with_missing_columns(client, auth_headers):
    response = upload(client, "/admin/import-customers", b"account_no,name\nC1,Jane\n", auth_headers)

    assert response.status_code == 422


def test_import_rejects_non_csv_upload(client, auth_headers):
    response = upload(client, "/admin/import-items", b"x", auth_headers, filename="items.xlsx")

    assert response.status_code == 400


def test_dashboard(client, auth_headers):
    client.post(
        "/api/customers",
        json={"account_no": "C001", "name": "Jane", "address": "St", "phone": "1", "units_consumed": 120},
        headers=auth_headers,
    )
    client.post("/api/bills/calculate", json={"account_no": "C001"}, headers=auth_headers)

    stats = client.get("/admin/dashboard", headers=auth_headers).json()

    assert stats["customer_count"] == 1
    assert stats["item_count"] == 0
    assert stats["bill_count"] == 1
    assert Decimal(str(stats["billed_total"])) == Decimal("1610.00")
    assert stats["recent_bills"][0]["account_no"] == "C001"
