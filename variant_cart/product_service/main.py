# variant_cart/product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    1: {
        "id": 1,
        "name": "Keyboard",
        "base_price": 19999,
        "currency": "USD",
        "features": [
            {
                "id": 10,
                "name": "layout",
                "type": "single_select",
                "required": True,
                "values": [
                    {"id": 100, "key": "us", "text": "US"},
                    {"id": 101, "key": "de", "text": "DE", "additional_price": 500, "stock": 4, "decreases_stock": True},
                ],
            },
            {
                "id": 11,
                "name": "switches",
                "type": "single_select",
                "required": False,
                "index": 1,
                "values": [
                    {"id": 110, "key": "red", "text": "Red"},
                    {"id": 111, "key": "brown", "text": "Brown", "additional_price": 1000},
                ],
            },
        ],
    },
    2: {"id": 2, "name": "Mouse", "base_price": 4950, "currency": "USD", "features": []},
}

OVERRIDES = {
    1: [
        {"kind": "group", "bind": [[10, "de"], [11, "brown"]], "additional_price": 1200, "stock": 2},
        {"kind": "feature", "bind": [[11, "brown"]], "additional_price": 900, "stock": 10},
    ],
}


@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@app.get("/products/{product_id}/overrides")
def get_overrides(product_id: int):
    if product_id not in PRODUCTS:
        raise HTTPException(status_code=404, detail="Product not found")
    return OVERRIDES.get(product_id, [])
