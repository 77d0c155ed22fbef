from app.utils.helpers import to_local, utcnow


def _visitor_with_visit(client, headers, documento):
    visitor_id = client.post("/api/visitantes", json={"nombre": "Eva", "documento": documento},
                             headers=headers).get_json()["data"]["id"]
    client.post("/api/visitantes/registrar-acceso", json={"visitanteId": visitor_id},
                headers=headers)
    return visitor_id


def test_list_records_filters(client, auth_headers):
    first = _visitor_with_visit(client, auth_headers, "10")
    _visitor_with_visit(client, auth_headers, "20")

    everything = client.get("/api/entradas-salidas", headers=auth_headers).get_json()["data"]
    exits = client.get("/api/entradas-salidas?tipo=SALIDA", headers=auth_headers).get_json()["data"]
    mine = client.get(f"/api/entradas-salidas?persona_id={first}",
                      headers=auth_headers).get_json()["data"]
    limited = client.get("/api/entradas-salidas?limit=1", headers=auth_headers).get_json()["data"]

    assert len(everything) == 4
    assert {r["tipo"] for r in exits} == {"SALIDA"}
    assert len(exits) == 2
    assert {r["personaId"] for r in mine} == {first}
    assert len(limited) == 1
    assert everything[0]["documento"] in ("10", "20")


def test_list_records_by_local_date(client, auth_headers, app):
    _visitor_with_visit(client, auth_headers, "30")
    today = to_local(utcnow(), app.config["TIMEZONE"]).date().isoformat()

    same_day = client.get(f"/api/entradas-salidas?fecha={today}", headers=auth_headers)
    other_day = client.get("/api/entradas-salidas?fecha=2001-01-01", headers=auth_headers)

    assert len(same_day.get_json()["data"]) == 2
    assert other_day.get_json()["data"] == []


def test_list_records_rejects_bad_filters(client, auth_headers):
    assert client.get("/api/entradas-salidas?tipo=VISITA", headers=auth_headers).status_code == 400
    assert client.get("/api/entradas-salidas?fecha=19-10-2026", headers=auth_headers).status_code == 400


def test_today_records(client, auth_headers):
    _visitor_with_visit(client, auth_headers, "40")

    resp = client.get("/api/entradas-salidas/hoy", headers=auth_headers)

    assert resp.status_code == 200
    assert sorted(r["tipo"] for r in resp.get_json()["data"]) == ["ENTRADA", "SALIDA"]


def test_list_records_rejects_negative_limit(client, auth_headers):
    resp = client.get("/api/entradas-salidas?limit=-1", headers=auth_headers)

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False
