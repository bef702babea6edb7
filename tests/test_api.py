import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import init_db
from main import app, get_db


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    testing_session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def override_get_db():
        db = testing_session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        engine.dispose()


def _create_category(client: TestClient, name: str, is_income: bool = False) -> int:
    resp = client.post("/categories", json={"name": name, "is_income": is_income})
    assert resp.status_code == 200
    return int(resp.json()["rows"][0][0])


def test_records_table_resolves_category_names(client: TestClient) -> None:
    housing = _create_category(client, "Housing")

    created = client.post(
        "/records",
        json={
            "date": "2024-03-10",
            "category_id": housing,
            "description": "Rent",
            "amount_cents": -120000,
        },
    )
    assert created.status_code == 200

    table = client.get("/records").json()

    assert table["columns"] == ["ID", "Date", "Category", "Description", "Amount"]
    assert table["rows"] == [["1", "2024-03-10", "Housing", "Rent", "$-1200.00"]]


def test_records_query_params_build_filters(client: TestClient) -> None:
    food = _create_category(client, "Food")
    salary = _create_category(client, "Salary", is_income=True)
    for day, category_id, amount in [
        ("2024-01-05", food, -1250),
        ("2024-02-05", food, -800),
        ("2024-02-28", salary, 300000),
    ]:
        client.post(
            "/records",
            json={"date": day, "category_id": category_id, "amount_cents": amount},
        )

    feb = client.get("/records", params={"start": "2024-02-01", "end": "2024-02-29"})
    only_food = client.get("/records", params={"category": [food]})
    inverted = client.get("/records", params={"min": "5", "max": "3"})

    assert [row[1] for row in feb.json()["rows"]] == ["2024-02-28", "2024-02-05"]
    assert {row[2] for row in only_food.json()["rows"]} == {"Food"}
    assert inverted.json()["rows"] == []


def test_bad_filter_value_is_a_client_error(client: TestClient) -> None:
    assert client.get("/records", params={"min": "cheap"}).status_code == 400
    assert client.get("/records", params={"start": "someday"}).status_code == 400
    assert client.get("/records", params={"period": "fortnight"}).status_code == 400


def test_year_summary_has_thirteen_columns_and_totals(client: TestClient) -> None:
    food = _create_category(client, "Food")
    for day, amount in [("2024-03-10", 500), ("2024-03-20", 300), ("2024-07-01", -100)]:
        client.post(
            "/records",
            json={"date": day, "category_id": food, "amount_cents": amount},
        )

    table = client.get("/summary/2024").json()

    assert len(table["columns"]) == 13
    assert table["rows"][0][0] == "Food"
    assert table["rows"][0][3] == "$8.00"
    assert table["rows"][0][7] == "$-1.00"
    assert table["rows"][0][1] == "$0.00"
    assert table["totals"][3] == "$8.00"

    single = client.get(f"/summary/2024/categories/{food}").json()
    assert single["rows"] == table["rows"]


def test_investments_and_categories_tables(client: TestClient) -> None:
    _create_category(client, "Salary", is_income=True)
    client.post(
        "/investments",
        json={"date": "2024-05-02", "code": "VAS", "unit_price_cents": 150, "qty": 10},
    )

    categories = client.get("/categories").json()
    investments = client.get("/investments", params={"code": "VAS"}).json()

    assert categories["rows"] == [["1", "Salary", "Income", ""]]
    assert investments["rows"] == [
        ["1", "2024-05-02", "VAS", "$1.50", "10.0", "$15.00"]
    ]


def test_update_and_delete_missing_rows(client: TestClient) -> None:
    resp = client.post(
        "/records/42",
        json={"date": "2024-01-01", "category_id": 1, "amount_cents": 1},
    )
    assert resp.status_code == 404
    assert client.post("/investments/42/delete").status_code == 404
    assert client.post("/categories/42/delete").status_code == 404


def test_category_not_found_differs_from_refusal(client: TestClient) -> None:
    food = _create_category(client, "Food")
    _create_category(client, "Rent")
    client.post(
        "/records",
        json={"date": "2024-03-10", "category_id": food, "amount_cents": -250},
    )

    missing_update = client.post("/categories/42", json={"name": "Travel"})
    renamed_to_taken = client.post(f"/categories/{food}", json={"name": "rent"})
    in_use = client.post(f"/categories/{food}/delete")

    assert missing_update.status_code == 404
    assert renamed_to_taken.status_code == 400
    assert in_use.status_code == 400
    assert "used by 1 record" in in_use.json()["detail"]


def test_duplicate_category_is_rejected(client: TestClient) -> None:
    _create_category(client, "Food")

    resp = client.post("/categories", json={"name": "food"})

    assert resp.status_code == 400
    assert "already exists" in resp.json()["detail"]


def test_records_export_csv(client: TestClient) -> None:
    food = _create_category(client, "Food")
    client.post(
        "/records",
        json={
            "date": "2024-03-10",
            "category_id": food,
            "description": "=HYPERLINK()",
            "amount_cents": -250,
        },
    )

    resp = client.get("/records/export.csv")

    assert resp.status_code == 200
    lines = resp.text.splitlines()
    assert lines[0] == "ID,Date,Category,Description,Amount"
    assert lines[1] == "1,2024-03-10,Food,\t=HYPERLINK(),$-2.50"


def test_non_finite_cost_bounds_are_rejected(client: TestClient) -> None:
    assert client.get("/records", params={"min": "inf"}).status_code == 400
    assert client.get("/records", params={"max": "nan"}).status_code == 400
    assert client.get("/investments", params={"max": "-Infinity"}).status_code == 400


def test_infinite_quantity_is_rejected_and_listing_survives(
    client: TestClient,
) -> None:
    resp = client.post(
        "/investments",
        content='{"date": "2024-05-02", "code": "VAS", '
        '"unit_price_cents": 150, "qty": Infinity}',
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 422
    listing = client.get("/investments")
    assert listing.status_code == 200
    assert listing.json()["rows"] == []


def test_records_filter_by_category_name(client: TestClient) -> None:
    food = _create_category(client, "Food")
    rent = _create_category(client, "Rent")
    for category_id, amount in ((food, -250), (rent, -90000)):
        client.post(
            "/records",
            json={
                "date": "2024-03-10",
                "category_id": category_id,
                "amount_cents": amount,
            },
        )

    by_name = client.get("/records", params={"category": "food"}).json()
    unknown = client.get("/records", params={"category": "Travel"})

    assert [row[2] for row in by_name["rows"]] == ["Food"]
    assert unknown.status_code == 400
    assert "Unknown category" in unknown.json()["detail"]


def test_category_names_and_investment_codes(client: TestClient) -> None:
    _create_category(client, "rent")
    _create_category(client, "Food")
    for code in ("VGS", "VAS", "VGS"):
        client.post(
            "/investments",
            json={
                "date": "2024-05-02",
                "code": code,
                "unit_price_cents": 150,
                "qty": 1.0,
            },
        )

    assert client.get("/categories/names").json() == {"names": ["Food", "rent"]}
    assert client.get("/investments/codes").json() == {"codes": ["VAS", "VGS"]}
