"""
Tests for the Recipient Duplicate Detection API endpoints.
"""
import pytest
from fastapi.testclient import TestClient

from recipient_dedupe import config
from recipient_dedupe.main import app

client = TestClient(app)

JOHN = {
    "id": "1",
    "name": "John Smith",
    "address1": "123 Main St",
    "city": "Boston",
    "state": "MA",
    "zip": "02101",
}
JOHN_AGAIN = {**JOHN, "id": "2", "address1": "123 Main Street"}
JANE = {
    "id": "3",
    "name": "Jane Doe",
    "address1": "456 Oak Avenue",
    "city": "Chicago",
    "state": "IL",
    "zip": "60601",
}

CSV_CONTENT = (
    "Recipient,Street,Town,State,Postal\n"
    "John Smith,123 Main St,Boston,MA,02101\n"
    "John Smith,123 Main Street,Boston,MA,02101\n"
    "Jane Doe,456 Oak Avenue,Chicago,IL,60601\n"
)

VCARD_CONTENT = (
    "BEGIN:VCARD\nVERSION:3.0\nFN:John Smith\nADR:;;123 Main St;Boston;MA;02101;US\nEND:VCARD\n"
    "BEGIN:VCARD\nVERSION:3.0\nFN:John Smith\nADR:;;123 Main Street;Boston;MA;02101;\nEND:VCARD\n"
    "BEGIN:VCARD\nVERSION:3.0\nFN:No Address\nEMAIL:nobody@example.com\nEND:VCARD\n"
    "BEGIN:VCARD\nVERSION:3.0\nEMAIL:noname@example.com\nEND:VCARD\n"
)


def test_root():
    response = client.get("/")

    assert response.status_code == 200
    assert "running" in response.json()["message"]


def test_health_check():
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == config.API_VERSION


def test_scan_recipients():
    response = client.post("/api/recipients/duplicates", json={"recipients": [JOHN, JOHN_AGAIN, JANE]})

    assert response.status_code == 200
    body = response.json()
    assert body["stats"]["total_recipients"] == 3
    assert body["stats"]["exact_matches"] == 1
    assert len(body["matches"]) == 1

    match = body["matches"][0]
    assert match["match_type"] == "exact"
    assert match["confidence"] == 100
    assert {match["recipient1"]["id"], match["recipient2"]["id"]} == {"1", "2"}
    assert [[r["id"] for r in group] for group in body["groups"]] == [["1", "2"]]


def test_scan_recipients_tolerates_missing_fields():
    response = client.post(
        "/api/recipients/duplicates",
        json={"recipients": [{"id": "1", "name": "John Smith"}, {"id": 2, "name": None}]},
    )

    assert response.status_code == 200
    assert response.json()["matches"] == []


def test_scan_recipients_tolerates_missing_id():
    response = client.post(
        "/api/recipients/duplicates",
        json={"recipients": [JOHN, JOHN_AGAIN, {"name": "Bad Record"}, {"id": None, "name": "Other Record"}]},
    )

    assert response.status_code == 200
    matches = response.json()["matches"]
    assert len(matches) == 1
    assert {matches[0]["recipient1"]["id"], matches[0]["recipient2"]["id"]} == {"1", "2"}


def test_scan_recipients_rejects_too_many(monkeypatch):
    monkeypatch.setattr(config, "MAX_SCAN_RECIPIENTS", 2)

    response = client.post("/api/recipients/duplicates", json={"recipients": [JOHN, JOHN_AGAIN, JANE]})

    assert response.status_code == 413


def test_check_pair():
    response = client.post("/api/recipients/duplicates/check", json={"recipient1": JOHN, "recipient2": JOHN_AGAIN})

    assert response.status_code == 200
    assert response.json()["match"]["match_reasons"][0] == "Identical names"


def test_check_pair_without_match():
    response = client.post("/api/recipients/duplicates/check", json={"recipient1": JOHN, "recipient2": JANE})

    assert response.status_code == 200
    assert response.json()["match"] is None


def test_group_matches():
    john_three = {**JOHN, "id": "4"}
    matches = [
        {"recipient1": JOHN, "recipient2": JOHN_AGAIN, "match_type": "possible",
         "match_reasons": ["Same city"], "confidence": 45},
        {"recipient1": JOHN_AGAIN, "recipient2": john_three, "match_type": "possible",
         "match_reasons": ["Same city"], "confidence": 45},
    ]

    response = client.post("/api/recipients/duplicates/groups", json={"matches": matches})

    assert response.status_code == 200
    groups = response.json()["groups"]
    assert len(groups) == 1
    assert {r["id"] for r in groups[0]} == {"1", "2", "4"}


def test_find_duplicates_in_csv_file():
    response = client.post(
        "/api/find-duplicates",
        files={"file": ("recipients.csv", CSV_CONTENT.encode("utf-8"), "text/csv")},
        data={
            "name_column": "Recipient",
            "address1_column": "Street",
            "city_column": "Town",
            "state_column": "State",
            "zip_column": "Postal",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["stats"]["total_recipients"] == 3
    assert len(body["matches"]) == 1

    match = body["matches"][0]
    assert match["recipient1"]["id"] == "row-2"
    assert match["recipient2"]["id"] == "row-3"
    assert match["recipient1"]["zip"] == "02101"
    assert "Same ZIP code" in match["match_reasons"]


def test_find_duplicates_requires_name_column():
    response = client.post(
        "/api/find-duplicates",
        files={"file": ("recipients.csv", CSV_CONTENT.encode("utf-8"), "text/csv")},
    )

    assert response.status_code == 400
    assert "name_column" in response.json()["detail"]


def test_find_duplicates_unknown_column():
    response = client.post(
        "/api/find-duplicates",
        files={"file": ("recipients.csv", CSV_CONTENT.encode("utf-8"), "text/csv")},
        data={"name_column": "Recipient", "city_column": "City"},
    )

    assert response.status_code == 400
    assert "'City' not found" in response.json()["detail"]


def test_import_vcard():
    response = client.post(
        "/api/recipients/import/vcard",
        files={"file": ("contacts.vcf", VCARD_CONTENT.encode("utf-8"), "text/vcard")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total_contacts"] == 4
    assert len(body["parsed"]["valid"]) == 3
    assert len(body["parsed"]["invalid"]) == 1
    assert body["validation_errors"] == [
        {"index": 3, "name": "No Address", "error": "Address or city is required for mail recipients"}
    ]
    assert [r["id"] for r in body["recipients"]] == ["vcard-1", "vcard-2"]
    assert body["recipients"][1]["country"] == config.DEFAULT_COUNTRY
    assert len(body["duplicates"]) == 1
    assert body["duplicates"][0]["match_type"] == "exact"


@pytest.mark.parametrize("content, detail", [(b"   ", "empty"), (b"hello", "Invalid vCard format")])
def test_import_vcard_rejects_bad_content(content, detail):
    response = client.post(
        "/api/recipients/import/vcard",
        files={"file": ("contacts.vcf", content, "text/vcard")},
    )

    assert response.status_code == 400
    assert detail in response.json()["detail"]
