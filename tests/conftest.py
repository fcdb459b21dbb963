from io import BytesIO
from typing import Any, List, Tuple

import pytest
from PIL import Image

_NO_JSON = object()


class FakeResponse:
    def __init__(self, status_code: int = 200, json_data: Any = _NO_JSON, content: bytes = b""):
        self.status_code = status_code
        self._json = json_data
        self.content = content

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._json is _NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeSession:
    """Stands in for requests.Session: routes by URL prefix and records every call."""

    def __init__(self, routes: List[Tuple[str, Any]] | None = None):
        self.routes = list(routes or [])
        self.calls: List[str] = []
        self.headers = {}

    def get(self, url: str, **kwargs):
        self.calls.append(url)
        for prefix, outcome in self.routes:
            if url.startswith(prefix):
                if isinstance(outcome, BaseException):
                    raise outcome
                return outcome
        return FakeResponse(status_code=404)

    def called(self, prefix: str) -> bool:
        return any(u.startswith(prefix) for u in self.calls)


def png_bytes(size=(400, 300), color=(10, 120, 200, 255)) -> bytes:
    buf = BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


def vtex_record(
    product_id: str = "101",
    name: str = "Heladera No Frost",
    item_id: str = "SKU-101",
    price: float = 150000,
    list_price: float = 180000,
    plans: list | None = None,
    sellers: list | None = None,
    images: list | None = None,
) -> dict:
    if plans is None:
        plans = [
            {"NumberOfInstallments": 12, "InterestRate": 0},
            {"NumberOfInstallments": 6, "InterestRate": 0},
            {"NumberOfInstallments": 3, "InterestRate": 10},
        ]
    if sellers is None:
        sellers = [{
            "sellerId": "1",
            "commertialOffer": {"Price": price, "ListPrice": list_price, "Installments": plans},
        }]
    if images is None:
        images = [{"imageUrl": f"https://pardo.vteximg.com.br/arquivos/ids/{product_id}/foto.jpg?v=6381"}]
    return {
        "productId": product_id,
        "productName": name,
        "items": [{"itemId": item_id, "images": images, "sellers": sellers}],
    }


@pytest.fixture
def white_photo() -> Image.Image:
    return Image.new("RGBA", (400, 300), (255, 255, 255, 255))


@pytest.fixture
def blue_photo() -> Image.Image:
    return Image.new("RGBA", (800, 600), (10, 120, 200, 255))
