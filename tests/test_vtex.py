import json

import pytest
import requests

from fetchers import FETCHERS
from fetchers import vtex
from fetchers.vtex import (
    CONNECTION_ERROR_MESSAGE,
    CatalogConnectionError,
    best_installments,
    build_search_url,
    fetch_products,
    fetch_records,
    normalize_record,
    normalize_records,
    resize_url,
)

from .conftest import FakeResponse, FakeSession, vtex_record

RAW = "https://api.allorigins.win/raw"
CORS = "https://corsproxy.io/"
WRAPPED = "https://api.allorigins.win/get"


def test_search_url_shape():
    assert build_search_url("1970") == (
        "https://www.pardo.com.ar/api/catalog_system/pub/products/search"
        "?fq=productClusterIds:1970&_from=0&_to=49"
    )


def test_strategy_urls_wrap_encoded_target():
    target = build_search_url("1970")
    urls = [s.build_url(target) for s in vtex.STRATEGIES]
    assert urls[0].startswith(RAW + "?url=https%3A%2F%2Fwww.pardo.com.ar%2Fapi")
    assert urls[1].startswith(CORS + "?https%3A%2F%2F")
    assert urls[2].startswith(WRAPPED + "?url=https%3A%2F%2F")
    assert "fq%3DproductClusterIds%3A1970%26_from%3D0%26_to%3D49" in urls[0]


def test_second_strategy_wins_and_third_is_never_called():
    records = [vtex_record()]
    session = FakeSession([
        (RAW, FakeResponse(status_code=500)),
        (CORS, FakeResponse(json_data=records)),
        (WRAPPED, AssertionError("should not be reached")),
    ])
    assert fetch_records("1970", session=session) == records
    assert session.called(RAW)
    assert not session.called(WRAPPED)


def test_wrapped_strategy_parses_contents_string():
    records = [vtex_record()]
    session = FakeSession([
        (RAW, requests.ConnectionError("reset by peer")),
        (CORS, FakeResponse(json_data=[])),
        (WRAPPED, FakeResponse(json_data={"contents": json.dumps(records)})),
    ])
    assert fetch_records("1970", session=session) == records
    assert len(session.calls) == 3


def test_malformed_bodies_fall_through():
    session = FakeSession([
        (RAW, FakeResponse(status_code=200)),  # not JSON
        (CORS, FakeResponse(json_data={"error": "blocked"})),
        (WRAPPED, FakeResponse(json_data={"contents": "<html>nope</html>"})),
    ])
    with pytest.raises(CatalogConnectionError):
        fetch_records("1970", session=session)


def test_all_strategies_empty_or_failing_is_one_connectivity_error():
    session = FakeSession([
        (RAW, FakeResponse(json_data=[])),
        (CORS, requests.Timeout("slow")),
        (WRAPPED, FakeResponse(json_data={"contents": "[]"})),
    ])
    with pytest.raises(CatalogConnectionError) as info:
        fetch_records("1970", session=session)
    assert str(info.value) == CONNECTION_ERROR_MESSAGE


@pytest.mark.parametrize(
    "plans, expected",
    [
        ([{"NumberOfInstallments": 12, "InterestRate": 0},
          {"NumberOfInstallments": 6, "InterestRate": 0},
          {"NumberOfInstallments": 3, "InterestRate": 10}], 12),
        ([{"NumberOfInstallments": 3, "InterestRate": 10}], 3),
        ([{"NumberOfInstallments": 1, "InterestRate": 0},
          {"NumberOfInstallments": 18, "InterestRate": 35}], 1),
        ([], 0),
        (None, 0),
    ],
)
def test_best_installments(plans, expected):
    assert best_installments(plans) == expected


def test_normalize_record_fields():
    product = normalize_record(vtex_record(price=150000, list_price=180000))
    assert product.id == "101"
    assert product.name == "Heladera No Frost"
    assert product.sku == "SKU-101"
    assert product.price == 150000
    assert product.list_price == 180000
    assert product.installments == 12
    assert product.free_shipping is True
    assert product.pickup is True
    assert product.bank_promo == ""


def test_free_shipping_threshold():
    assert normalize_record(vtex_record(price=50000)).free_shipping is False
    assert normalize_record(vtex_record(price=100000)).free_shipping is False
    assert normalize_record(vtex_record(price=100001)).free_shipping is True


def test_record_without_plans_has_no_installments():
    assert normalize_record(vtex_record(plans=[])).installments == 0


def test_preferred_seller_is_chosen_over_first():
    sellers = [
        {"sellerId": "marketplace", "commertialOffer": {"Price": 10, "ListPrice": 10, "Installments": []}},
        {"sellerId": "1", "commertialOffer": {"Price": 20, "ListPrice": 25, "Installments": []}},
    ]
    assert normalize_record(vtex_record(sellers=sellers)).price == 20


def test_first_seller_when_preferred_missing():
    sellers = [
        {"sellerId": "a", "commertialOffer": {"Price": 10, "ListPrice": 10, "Installments": []}},
        {"sellerId": "b", "commertialOffer": {"Price": 20, "ListPrice": 20, "Installments": []}},
    ]
    assert normalize_record(vtex_record(sellers=sellers)).price == 10


def test_image_goes_through_resize_proxy_without_query():
    product = normalize_record(vtex_record(product_id="77"))
    assert product.image_url == (
        "https://wsrv.nl/?url=https%3A%2F%2Fpardo.vteximg.com.br%2Farquivos%2Fids%2F77%2Ffoto.jpg"
        "&output=jpg&w=1000&h=1000"
    )
    assert "v%3D6381" not in product.image_url


def test_no_image_gives_empty_url():
    assert normalize_record(vtex_record(images=[])).image_url == ""
    assert resize_url("") == ""


def test_malformed_records_are_dropped_not_fatal():
    records = [
        vtex_record(product_id="1", item_id="A"),
        {"productId": "2", "items": []},
        {"productId": "3"},
        "not a record",
        vtex_record(product_id="4", item_id="D", sellers=[]),
        vtex_record(product_id="5", item_id="E"),
    ]
    products = normalize_records(records)
    assert [p.id for p in products] == ["1", "5"]


@pytest.mark.parametrize("bad", [float("inf"), float("-inf"), float("nan"), "inf", "Infinity"])
def test_non_finite_price_drops_only_that_record(bad):
    records = [vtex_record(product_id="1", item_id="A"), vtex_record(product_id="2", item_id="B", price=bad)]
    assert [p.id for p in normalize_records(records)] == ["1"]


def test_non_finite_installments_drop_only_that_record():
    plans = [{"NumberOfInstallments": float("inf"), "InterestRate": 0}]
    records = [vtex_record(product_id="1", item_id="A"), vtex_record(product_id="2", item_id="B", plans=plans)]
    assert [p.id for p in normalize_records(records)] == ["1"]


def test_overflowing_json_number_is_dropped():
    raw = json.loads('{"Price": 1e400}')
    sellers = [{"sellerId": "1", "commertialOffer": {"Price": raw["Price"], "ListPrice": 0, "Installments": []}}]
    records = [vtex_record(product_id="1", item_id="A"), vtex_record(product_id="2", item_id="B", sellers=sellers)]
    assert [p.id for p in normalize_records(records)] == ["1"]


def test_duplicate_ids_keep_first():
    records = [vtex_record(product_id="1", item_id="A"), vtex_record(product_id="1", item_id="B")]
    assert [p.sku for p in normalize_records(records)] == ["A"]


def test_batch_of_only_malformed_records_is_empty_not_error():
    assert normalize_records([{}, {"items": None}]) == []


def test_fetch_products_extracts_id_and_normalizes():
    session = FakeSession([(RAW, FakeResponse(json_data=[vtex_record()]))])
    products = fetch_products("https://www.pardo.com.ar/1970?map=productClusterIds", session=session)
    assert [p.sku for p in products] == ["SKU-101"]
    assert "productClusterIds%3A1970" in session.calls[0]


def test_registry_exposes_sources():
    assert set(FETCHERS) == {"vtex", "demo"}
    assert FETCHERS["demo"]("anything")[0].sku == "86QNED85SQA"
