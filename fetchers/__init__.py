# fetchers/__init__.py
from . import demo
from . import vtex

FETCHERS = {
    "vtex": vtex.fetch_products,
    "demo": demo.fetch_products,
}
