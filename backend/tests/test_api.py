import os
import sys
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from servicemarket.data import SUBURBS
from servicemarket.main import app
from servicemarket.services.randomizer import AttributeRandomizer
from servicemarket.services.seed_store import SeedStore
from servicemarket.services.seeder import run_seed

client = TestClient(app)


@pytest.fixture
def seeded_db(tmp_path, monkeypatch):
    db_path = str(tmp_path / "marketplace.sqlite3")
    run_seed(SeedStore(db_path=db_path), randomizer=AttributeRandomizer(seed=21))
    monkeypatch.setenv("SEED_DB_PATH", db_path)
    return db_path


def test_health_ok():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_list_providers_includes_profiles(seeded_db):
    response = client.get("/providers")
    assert response.status_code == 200
    payload = response.json()
    assert len(payload) == len(SUBURBS)
    assert all(item["user"]["role"] == "PROVIDER" for item in payload)
    assert all(item["profile"]["user_id"] == item["user"]["id"] for item in payload)


def test_list_listings_and_filter_by_suburb(seeded_db):
    response = client.get("/listings")
    assert response.status_code == 200
    assert len(response.json()) == len(SUBURBS) * 3

    manly = client.get("/listings", params={"suburb": "Manly"})
    assert manly.status_code == 200
    payload = manly.json()
    assert len(payload) == 3
    assert {item["location"]["address"] for item in payload} == {"Manly"}


def test_filter_by_category(seeded_db):
    all_listings = client.get("/listings").json()
    category = all_listings[0]["category"]
    response = client.get("/listings", params={"category": category})
    assert response.status_code == 200
    payload = response.json()
    assert payload
    assert {item["category"] for item in payload} == {category}


def test_listing_detail_and_availability(seeded_db):
    listing = client.get("/listings").json()[0]

    detail = client.get(f"/listings/{listing['id']}")
    assert detail.status_code == 200
    assert detail.json()["title"] == listing["title"]

    availability = client.get(f"/listings/{listing['id']}/availability")
    assert availability.status_code == 200
    slots = availability.json()
    assert len(slots) == 8
    starts = [datetime.fromisoformat(slot["starts_at"]) for slot in slots]
    assert starts == sorted(starts)
    assert all(slot["listing_id"] == listing["id"] for slot in slots)


def test_unknown_listing_returns_404(seeded_db):
    assert client.get("/listings/lst_missing").status_code == 404
    assert client.get("/listings/lst_missing/availability").status_code == 404


def test_missing_database_returns_503_without_creating_it(tmp_path, monkeypatch):
    db_path = tmp_path / "data" / "marketplace.sqlite3"
    monkeypatch.setenv("SEED_DB_PATH", str(db_path))
    response = client.get("/listings")
    assert response.status_code == 503
    assert "scripts/seed.py" in response.json()["detail"]
    assert not db_path.parent.exists()
