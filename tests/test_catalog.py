from catalog import effective_price


def create(client, headers, **fields):
    response = client.post("/api/products", json=fields, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()


def test_list_products_is_public_and_empty(client):
    response = client.get("/api/products")
    assert response.status_code == 200
    assert response.json() == []


def test_non_admin_cannot_create_product(client, customer, shirt):
    _, headers = customer
    response = client.post("/api/products", json=shirt, headers=headers)
    assert response.status_code == 403
    assert response.json() == {"message": "Admin access required"}
    assert client.get("/api/products").json() == []


def test_anonymous_cannot_create_product(client, shirt):
    assert client.post("/api/products", json=shirt).status_code == 401


def test_admin_creates_product_and_it_is_listed(client, admin, shirt):
    _, headers = admin
    response = client.post("/api/products", json=shirt, headers=headers)
    assert response.status_code == 201
    created = response.json()
    assert created["name"] == "T"
    assert created["discount"] == 0
    assert created["status"] == "active"
    assert created["effective_price"] == 10

    listed = client.get("/api/products").json()
    assert [p["id"] for p in listed] == [created["id"]]


def test_get_product(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **shirt)
    response = client.get(f"/api/products/{created['id']}")
    assert response.status_code == 200
    assert response.json()["sizes"] == ["M"]


def test_get_unknown_product_is_not_found(client):
    response = client.get("/api/products/64b7f0c2a1b2c3d4e5f60718")
    assert response.status_code == 404
    assert response.json() == {"message": "Product not found"}


def test_get_malformed_id_is_not_found(client):
    assert client.get("/api/products/not-an-id").status_code == 404


def test_list_is_newest_first(client, admin, shirt):
    _, headers = admin
    first = create(client, headers, **dict(shirt, name="First"))
    second = create(client, headers, **dict(shirt, name="Second"))
    third = create(client, headers, **dict(shirt, name="Third"))
    listed = [p["id"] for p in client.get("/api/products").json()]
    assert listed == [third["id"], second["id"], first["id"]]


def test_create_rejects_negative_price(client, admin, shirt):
    _, headers = admin
    response = client.post("/api/products", json=dict(shirt, price=-1), headers=headers)
    assert response.status_code == 400
    assert "price" in response.json()["message"]


def test_create_rejects_discount_out_of_range(client, admin, shirt):
    _, headers = admin
    assert client.post("/api/products", json=dict(shirt, discount=101), headers=headers).status_code == 400
    assert client.post("/api/products", json=dict(shirt, discount=-5), headers=headers).status_code == 400


def test_create_rejects_negative_stock(client, admin, shirt):
    _, headers = admin
    assert client.post("/api/products", json=dict(shirt, stock=-2), headers=headers).status_code == 400


def test_create_rejects_non_finite_price(client, admin):
    _, headers = admin
    body = '{"name": "T", "price": 1e400, "stock": 5, "category": "Shirts"}'
    response = client.post("/api/products", content=body, headers={**headers, "Content-Type": "application/json"})
    assert response.status_code == 400
    assert "price" in response.json()["message"]

    listed = client.get("/api/products")
    assert listed.status_code == 200
    assert listed.json() == []


def test_create_rejects_non_finite_discount(client, admin):
    _, headers = admin
    body = '{"name": "T", "price": 10, "discount": 1e400, "category": "Shirts"}'
    response = client.post("/api/products", content=body, headers={**headers, "Content-Type": "application/json"})
    assert response.status_code == 400


def test_create_rejects_blank_name(client, admin, shirt):
    _, headers = admin
    assert client.post("/api/products", json=dict(shirt, name="   "), headers=headers).status_code == 400


def test_colors_and_sizes_behave_as_sets(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **dict(shirt, colors=["black", "red", "black"], sizes=["M", "M"]))
    assert created["colors"] == ["black", "red"]
    assert created["sizes"] == ["M"]


def test_update_discount_to_zero_is_applied(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **dict(shirt, discount=25))
    assert created["effective_price"] == 7.5

    response = client.put(f"/api/products/{created['id']}", json={"discount": 0}, headers=headers)

    assert response.status_code == 200
    assert response.json()["discount"] == 0
    assert client.get(f"/api/products/{created['id']}").json()["discount"] == 0


def test_update_stock_to_zero_is_applied(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **shirt)
    response = client.put(f"/api/products/{created['id']}", json={"stock": 0}, headers=headers)
    assert response.json()["stock"] == 0


def test_update_leaves_other_fields_untouched(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **dict(shirt, description="Soft cotton", discount=10))

    updated = client.put(f"/api/products/{created['id']}", json={"price": 20}, headers=headers).json()

    assert updated["price"] == 20
    assert updated["description"] == "Soft cotton"
    assert updated["discount"] == 10
    assert updated["colors"] == ["black"]
    assert updated["effective_price"] == 18


def test_update_null_means_unchanged(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **shirt)
    updated = client.put(f"/api/products/{created['id']}", json={"name": None, "stock": 9}, headers=headers).json()
    assert updated["name"] == "T"
    assert updated["stock"] == 9


def test_update_without_fields_is_rejected(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **shirt)
    response = client.put(f"/api/products/{created['id']}", json={}, headers=headers)
    assert response.status_code == 400


def test_update_validates_ranges(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **shirt)
    response = client.put(f"/api/products/{created['id']}", json={"discount": 150}, headers=headers)
    assert response.status_code == 400


def test_update_rejects_non_finite_price(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **shirt)
    response = client.put(
        f"/api/products/{created['id']}",
        content='{"price": 1e400}',
        headers={**headers, "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert client.get("/api/products").json()[0]["price"] == 10


def test_update_unknown_product_is_not_found(client, admin):
    _, headers = admin
    response = client.put("/api/products/64b7f0c2a1b2c3d4e5f60718", json={"price": 3}, headers=headers)
    assert response.status_code == 404


def test_non_admin_cannot_update_or_delete(client, admin, customer, shirt):
    _, admin_headers = admin
    _, headers = customer
    created = create(client, admin_headers, **shirt)
    assert client.put(f"/api/products/{created['id']}", json={"price": 1}, headers=headers).status_code == 403
    assert client.delete(f"/api/products/{created['id']}", headers=headers).status_code == 403


def test_delete_product(client, admin, shirt):
    _, headers = admin
    created = create(client, headers, **shirt)

    response = client.delete(f"/api/products/{created['id']}", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Product deleted successfully"}
    assert client.get(f"/api/products/{created['id']}").status_code == 404
    assert client.delete(f"/api/products/{created['id']}", headers=headers).status_code == 404


def test_effective_price():
    assert effective_price(100, 0) == 100
    assert effective_price(100, 15) == 85
    assert effective_price(19.99, 100) == 0
    assert effective_price(0, 50) == 0
