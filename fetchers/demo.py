# fetchers/demo.py
from core.models import Product

DEMO_PRODUCT = Product(
    id="demo-lg-86",
    name="Smart TV 86” UHD 4K Qned LG 86QNED85SQA",
    price=6199999,
    list_price=0,
    image_url="https://images.fravega.com/f500/1d04400f0896024927500589d8544d65.jpg",
    installments=12,
    free_shipping=False,
    sku="86QNED85SQA",
    bank_promo="10% OFF 1 PAGO DÉBITO",
    pickup=True,
)


def fetch_products(identifier: str = "", session=None) -> list[Product]:
    """The built-in reference record; ignores the identifier."""
    return [DEMO_PRODUCT]
