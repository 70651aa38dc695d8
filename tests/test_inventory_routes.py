"""
tests/test_inventory_routes.py -- Public browsing, staff management, JSON listing.

Coverage:
  - Classification grid: populated, empty, unknown
  - Vehicle detail: found, malformed id, missing id
  - Add classification / add vehicle / edit / update / delete as staff
  - Placeholder images when the form omits them
  - GET /inv/getInventory/{id} JSON rows and error envelope
"""

from __future__ import annotations

from fastapi.testclient import TestClient

PLACEHOLDER = "/images/vehicles/no-image.png"


def _vehicle_form(classification_id: int, **overrides) -> dict:
    form = {
        "classification_id": str(classification_id),
        "inv_make": "Ford",
        "inv_model": "Bronco",
        "inv_year": "2020",
        "inv_description": "Trail rated.",
        "inv_image": "",
        "inv_thumbnail": "",
        "inv_price": "35999.99",
        "inv_miles": "1200",
        "inv_color": "Blue",
    }
    form.update(overrides)
    return form


class TestBrowse:
    def test_classification_grid(self, web_client: TestClient, seed) -> None:
        resp = web_client.get(f"/inv/type/{seed.suv_id}")
        assert resp.status_code == 200
        assert "SUV vehicles" in resp.text
        assert "Jeep Wrangler" in resp.text
        assert "$28,045.00" in resp.text
        assert f'href="/inv/detail/{seed.vehicle_id}"' in resp.text

    def test_empty_classification(self, web_client: TestClient, seed) -> None:
        resp = web_client.get(f"/inv/type/{seed.truck_id}")
        assert resp.status_code == 200
        assert "Sorry, no matching vehicles could be found." in resp.text

    def test_unknown_classification_is_friendly_404(self, web_client: TestClient) -> None:
        resp = web_client.get("/inv/type/9999")
        assert resp.status_code == 404
        assert "that vehicle classification does not exist" in resp.text

    def test_nav_lists_classifications(self, web_client: TestClient, seed) -> None:
        resp = web_client.get("/")
        for name in ("SUV", "Sedan", "Truck"):
            assert name in resp.text
        assert f'href="/inv/type/{seed.sedan_id}"' in resp.text

    def test_saved_marker_for_logged_in_user(self, web_client: TestClient, seed, login_as) -> None:
        seed.inventory.add_favorite(seed.client_id, seed.vehicle_id)
        login_as(seed.client_token)
        resp = web_client.get(f"/inv/type/{seed.suv_id}")
        assert 'class="saved"' in resp.text


class TestDetail:
    def test_detail(self, web_client: TestClient, seed) -> None:
        resp = web_client.get(f"/inv/detail/{seed.vehicle_id}")
        assert resp.status_code == 200
        assert "2019 Jeep Wrangler" in resp.text
        assert "$28,045.00" in resp.text
        assert "41,205" in resp.text
        # Anonymous visitors get no favorites button
        assert "Save to favorites" not in resp.text

    def test_malformed_id(self, web_client: TestClient) -> None:
        resp = web_client.get("/inv/detail/abc")
        assert resp.status_code == 400
        assert "The vehicle ID is not valid" in resp.text

    def test_non_ascii_digit_id(self, web_client: TestClient) -> None:
        # "\u00b2" (superscript two) is a digit to str.isdigit() but not to int()
        resp = web_client.get("/inv/detail/%C2%B2")
        assert resp.status_code == 400
        assert "The vehicle ID is not valid" in resp.text

    def test_missing_vehicle(self, web_client: TestClient) -> None:
        resp = web_client.get("/inv/detail/9999")
        assert resp.status_code == 404
        assert "could not find that vehicle" in resp.text

    def test_logged_in_user_can_save(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.client_token)
        resp = web_client.get(f"/inv/detail/{seed.vehicle_id}")
        assert f'action="/account/favorites/{seed.vehicle_id}"' in resp.text


class TestAddClassification:
    def test_success(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        resp = web_client.post("/inv/add-classification", data={"classification_name": "Coupe"})
        assert resp.status_code == 303
        assert resp.headers["location"] == "/inv/"
        page = web_client.get("/inv/")
        assert "The Coupe classification was successfully added." in page.text
        assert "Coupe" in [c.classification_name for c in seed.inventory.list_classifications()]

    def test_rejects_spaces(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        resp = web_client.post("/inv/add-classification", data={"classification_name": "SUV 2"})
        assert resp.status_code == 400
        assert "must not contain spaces or special characters" in resp.text
        assert 'value="SUV 2"' in resp.text

    def test_duplicate_name(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.admin_token)
        resp = web_client.post("/inv/add-classification", data={"classification_name": "SUV"})
        assert resp.status_code == 409
        assert "That classification already exists." in resp.text
        assert len(seed.inventory.list_classifications()) == 3


class TestAddInventory:
    def test_form_lists_classifications(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        resp = web_client.get("/inv/add-inventory")
        assert resp.status_code == 200
        assert f'<option value="{seed.suv_id}"' in resp.text

    def test_success_uses_placeholder_images(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        resp = web_client.post("/inv/add-inventory", data=_vehicle_form(seed.truck_id))
        assert resp.status_code == 303
        assert resp.headers["location"] == "/inv/"
        assert "The 2020 Ford Bronco was successfully added." in web_client.get("/inv/").text

        (bronco,) = seed.inventory.list_by_classification(seed.truck_id)
        assert bronco.inv_image == PLACEHOLDER
        assert bronco.inv_thumbnail == PLACEHOLDER
        assert bronco.inv_price == 35999.99
        assert bronco.classification_name == "Truck"

    def test_invalid_year_keeps_input(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        resp = web_client.post("/inv/add-inventory", data=_vehicle_form(seed.truck_id, inv_year="1899"))
        assert resp.status_code == 400
        assert "Invalid year." in resp.text
        assert 'value="Bronco"' in resp.text
        assert f'<option value="{seed.truck_id}" selected>' in resp.text
        assert seed.inventory.list_by_classification(seed.truck_id) == []

    def test_unknown_classification(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        resp = web_client.post("/inv/add-inventory", data=_vehicle_form(9999))
        assert resp.status_code == 400
        assert "Please choose an existing classification." in resp.text


class TestEditAndUpdate:
    def test_edit_form_prefilled(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        resp = web_client.get(f"/inv/edit/{seed.vehicle_id}")
        assert resp.status_code == 200
        assert "Edit 2019 Jeep Wrangler" in resp.text
        assert 'value="Wrangler"' in resp.text
        assert f'name="inv_id" value="{seed.vehicle_id}"' in resp.text

    def test_edit_missing_vehicle(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        assert web_client.get("/inv/edit/9999").status_code == 404

    def test_update_success(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        form = _vehicle_form(seed.suv_id, inv_make="Jeep", inv_model="Cherokee", inv_image="/i.jpg", inv_thumbnail="/t.jpg")
        form["inv_id"] = str(seed.vehicle_id)
        resp = web_client.post("/inv/update/", data=form)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/inv/"
        assert "The Jeep Cherokee was successfully updated." in web_client.get("/inv/").text

        vehicle = seed.inventory.get_vehicle(seed.vehicle_id)
        assert vehicle.inv_model == "Cherokee"
        assert vehicle.inv_image == "/i.jpg"

    def test_update_invalid_rerenders(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        form = _vehicle_form(seed.suv_id, inv_price="-5")
        form["inv_id"] = str(seed.vehicle_id)
        resp = web_client.post("/inv/update/", data=form)
        assert resp.status_code == 400
        assert "Price must be a positive number." in resp.text
        assert seed.inventory.get_vehicle(seed.vehicle_id).inv_model == "Wrangler"

    def test_update_bad_id(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        form = _vehicle_form(seed.suv_id)
        form["inv_id"] = "abc"
        assert web_client.post("/inv/update/", data=form).status_code == 400

    def test_update_non_ascii_digit_id(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        form = _vehicle_form(seed.suv_id)
        form["inv_id"] = "\u00b2"
        resp = web_client.post("/inv/update/", data=form)
        assert resp.status_code == 400
        assert "The vehicle ID is not valid" in resp.text

    def test_update_missing_vehicle(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.employee_token)
        form = _vehicle_form(seed.suv_id)
        form["inv_id"] = "9999"
        resp = web_client.post("/inv/update/", data=form)
        assert resp.status_code == 404
        assert "Sorry, the update failed." in resp.text


class TestDelete:
    def test_confirm_page(self, web_client: TestClient, seed, login_as) -> None:
        login_as(seed.admin_token)
        resp = web_client.get(f"/inv/delete/{seed.vehicle_id}")
        assert resp.status_code == 200
        assert f'action="/inv/delete/{seed.vehicle_id}"' in resp.text

    def test_delete_then_delete_again(self, web_client: TestClient, seed, login_as) -> None:
        seed.inventory.add_favorite(seed.client_id, seed.vehicle_id)
        login_as(seed.admin_token)

        resp = web_client.post(f"/inv/delete/{seed.vehicle_id}")
        assert resp.status_code == 303
        assert resp.headers["location"] == "/inv/"
        assert "The deletion was successful." in web_client.get("/inv/").text
        assert seed.inventory.get_vehicle(seed.vehicle_id) is None
        assert seed.inventory.get_favorites(seed.client_id) == []

        resp = web_client.post(f"/inv/delete/{seed.vehicle_id}")
        assert resp.status_code == 303
        assert resp.headers["location"] == "/inv/"
        assert "Sorry, the delete failed." in web_client.get("/inv/").text


class TestInventoryJson:
    def test_rows_for_classification(self, web_client: TestClient, seed) -> None:
        resp = web_client.get(f"/inv/getInventory/{seed.suv_id}")
        assert resp.status_code == 200
        (row,) = resp.json()
        assert row["inv_id"] == seed.vehicle_id
        assert row["inv_make"] == "Jeep"
        assert row["classification_name"] == "SUV"
        assert "account_password" not in row

    def test_empty_classification(self, web_client: TestClient, seed) -> None:
        assert web_client.get(f"/inv/getInventory/{seed.truck_id}").json() == []

    def test_unknown_classification_error_envelope(self, web_client: TestClient) -> None:
        resp = web_client.get("/inv/getInventory/9999")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "classification_not_found"

    def test_non_numeric_id_is_json_validation_error(self, web_client: TestClient) -> None:
        resp = web_client.get("/inv/getInventory/abc")
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"
