import pytest

from pricing import discounted_price, order_total, promotion_applies
from stock import normalize_image_path, retrieved_copy, split_list, stock_status


@pytest.mark.parametrize("quantity,threshold,expected", [
    (150, 100, "in-stock"),
    (101, 100, "in-stock"),
    (100, 100, "low-stock"),
    (1, 100, "low-stock"),
    (0, 100, "out-of-stock"),
    (-3, 0, "out-of-stock"),
    (1, 0, "in-stock"),
])
def test_stock_status(quantity, threshold, expected):
    assert stock_status(quantity, threshold) == expected


def test_image_paths_are_made_relative():
    assert normalize_image_path("C:\\photos\\dress.jpg") == "uploads/inventory/dress.jpg"
    assert normalize_image_path("/tmp/upload/dress.jpg") == "uploads/inventory/dress.jpg"
    assert normalize_image_path("uploads/inventory/1700-dress.jpg") == "uploads/inventory/1700-dress.jpg"
    assert normalize_image_path("dress.jpg") == "uploads/inventory/dress.jpg"


def test_split_list():
    assert split_list("S, M ,L") == ["S", "M", "L"]
    assert split_list("S,,M,") == ["S", "M"]
    assert split_list(["Red", " Blue "]) == ["Red", "Blue"]
    assert split_list(None) == []


def test_retrieved_copy_defaults_gender_and_prices():
    item = {
        "inventoryID": 3, "ItemName": "Scarf", "Category": "Accessories", "Brand": "Zara",
        "Style": "Formal", "image": "uploads/inventory/scarf.png", "Gender": None, "unitPrice": 0,
    }
    staged = retrieved_copy(item, 5)
    assert staged["retrievedQuantity"] == 5
    assert staged["Gender"] == "Unisex"
    assert staged["Sizes"] == [] and staged["Colors"] == []
    assert staged["unitPrice"] is None and staged["finalPrice"] is None


def test_flat_discount_clamps_at_zero():
    assert discounted_price(50, "flat", discount_value=15) == 35
    assert discounted_price(10, "flat", discount_value=25) == 0


def test_percentage_discount():
    assert discounted_price(50, "percentage", discount_percentage=20) == 40.00
    assert discounted_price(19.99, "percentage", discount_percentage=15) == 16.99
    assert discounted_price(50, "percentage", discount_percentage=100) == 0


def test_discount_without_unit_price():
    assert discounted_price(None, "flat", discount_value=5) == 0


def test_promotion_applies_by_product_or_gender():
    product = {"_id": "abc", "Gender": "Women"}
    assert promotion_applies({"applicableProducts": ["abc"], "applicableCategories": []}, product)
    assert promotion_applies({"applicableProducts": [], "applicableCategories": ["Women"]}, product)
    assert not promotion_applies({"applicableProducts": ["xyz"], "applicableCategories": ["Men"]}, product)


def test_order_total():
    items = [{"price": 19.99, "quantity": 2}, {"price": 45.5, "quantity": 1}]
    assert order_total(items) == 85.48
    assert order_total([]) == 0
