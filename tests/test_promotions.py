from bson import ObjectId


def promotion_payload(**overrides):
    payload = {
        "promotionID": 1,
        "type": "Flash Sale",
        "discountType": "percentage",
        "discountPercentage": 20,
        "validUntil": "2030-12-31T00:00:00",
        "promoCode": "SPRING20",
        "applicableProducts": [],
        "applicableCategories": [],
    }
    payload.update(overrides)
    return payload


def create(client, **overrides):
    res = client.post("/api/promotions", json=promotion_payload(**overrides))
    assert res.status_code == 201, res.text
    return res.json()["data"]


def test_create_and_fetch_populated(client, make_retrieved):
    staged = make_retrieved()
    create(client, applicableProducts=[staged["id"]])
    data = client.get("/api/promotions/1").json()["data"]
    assert data["promoCode"] == "SPRING20"
    assert data["applicableProducts"][0]["ItemName"] == "Classic T-Shirt"
    assert data["isActive"] is True
    assert data["usageCount"] == 0
    listed = client.get("/api/promotions").json()["data"]
    assert listed[0]["applicableProducts"][0]["id"] == staged["id"]


def test_discount_fields_are_exclusive(client):
    res = client.post("/api/promotions", json=promotion_payload(discountValue=5))
    assert res.status_code == 400
    assert "Only one of discountValue or discountPercentage" in " ".join(res.json()["errors"])

    res = client.post("/api/promotions", json=promotion_payload(discountType="flat"))
    assert res.status_code == 400

    res = client.post(
        "/api/promotions",
        json=promotion_payload(discountPercentage=None, discountType="percentage", discountValue=10),
    )
    assert res.status_code == 400

    assert create(client, discountType="flat", discountPercentage=None, discountValue=10)["discountValue"] == 10


def test_create_rejects_unknown_products(client):
    res = client.post("/api/promotions", json=promotion_payload(applicableProducts=[str(ObjectId())]))
    assert res.status_code == 400
    assert "do not exist" in res.json()["message"]
    res = client.post("/api/promotions", json=promotion_payload(applicableProducts=["garbage"]))
    assert res.status_code == 400


def test_create_rejects_duplicates(client):
    create(client)
    assert client.post("/api/promotions", json=promotion_payload()).status_code == 400
    assert client.post("/api/promotions", json=promotion_payload(promotionID=2)).status_code == 400
    assert client.post("/api/promotions", json=promotion_payload(promotionID=2, promoCode="OTHER")).status_code == 201


def test_update_revalidates_merged_document(client):
    create(client)
    res = client.put("/api/promotions/1", json={"discountValue": 5})
    assert res.status_code == 400

    res = client.put("/api/promotions/1", json={"discountType": "flat", "discountValue": 5})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["discountType"] == "flat"
    assert data["discountValue"] == 5
    assert data["discountPercentage"] is None

    assert client.put("/api/promotions/1", json={"applicableProducts": [str(ObjectId())]}).status_code == 400
    assert client.put("/api/promotions/9", json={"isActive": False}).status_code == 404


def test_delete(client, db):
    create(client)
    res = client.delete("/api/promotions/1")
    assert res.status_code == 200
    assert res.json()["data"]["promoCode"] == "SPRING20"
    assert client.delete("/api/promotions/1").status_code == 404
    assert db["promotion"].count_documents({}) == 0


def test_check_percentage_discount(client, make_retrieved):
    staged = make_retrieved()
    create(client, applicableProducts=[staged["id"]])
    res = client.get(f"/api/promotions/check/1/{staged['id']}")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data == {
        "originalPrice": 50,
        "discountedPrice": 40.0,
        "promotion": "SPRING20",
        "product": "Classic T-Shirt",
    }


def test_check_matches_gender_categories(client, make_retrieved):
    staged = make_retrieved(Gender="Women")
    create(client, applicableCategories=["Women"], discountType="flat",
           discountPercentage=None, discountValue=80)
    data = client.get(f"/api/promotions/check/1/{staged['id']}").json()["data"]
    assert data["discountedPrice"] == 0


def test_check_not_applicable_or_missing(client, make_retrieved):
    staged = make_retrieved(Gender="Men")
    create(client, applicableCategories=["Women"])
    assert client.get(f"/api/promotions/check/1/{staged['id']}").status_code == 400
    assert client.get(f"/api/promotions/check/2/{staged['id']}").status_code == 404
    assert client.get(f"/api/promotions/check/1/{ObjectId()}").status_code == 404


def test_apply_writes_final_price(client, make_retrieved, db):
    staged = make_retrieved()
    create(client, applicableProducts=[staged["id"]])
    res = client.post(f"/api/promotions/apply/1/{staged['id']}")
    assert res.status_code == 200
    assert res.json()["data"]["finalPrice"] == 40.0
    assert db["retrievedinventory"].find_one({"_id": ObjectId(staged["id"])})["finalPrice"] == 40.0
