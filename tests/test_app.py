import pytest

import app as app_module
import fetcher
import reference


@pytest.fixture
def client(monkeypatch, tables):
    monkeypatch.setattr(app_module, "_tables", tables)
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


@pytest.fixture
def profile(monkeypatch, document):
    requested = []

    def fake_fetch(uid):
        requested.append(uid)
        return document

    monkeypatch.setattr(fetcher, "fetch_profile", fake_fetch)
    return requested


@pytest.fixture
def unavailable(monkeypatch):
    monkeypatch.setattr(fetcher, "fetch_profile", lambda uid: None)


def test_index_searches_default_uid(client, profile):
    resp = client.get("/")
    assert resp.status_code == 200
    assert profile == [app_module.DEFAULT_UID]
    html = resp.get_data(as_text=True)
    assert "Traveler" in html
    assert "胡桃" in html
    assert "33.1%" in html


def test_index_with_uid_and_bad_char_index(client, profile):
    resp = client.get("/?uid=123&char=99")
    assert resp.status_code == 200
    assert profile == ["123"]
    assert "胡桃" in resp.get_data(as_text=True)


def test_index_not_found(client, unavailable):
    resp = client.get("/?uid=123")
    assert resp.status_code == 200
    assert app_module.NOT_FOUND_MESSAGE in resp.get_data(as_text=True)


def test_index_blank_uid_skips_search(client, profile):
    resp = client.get("/?uid=")
    assert resp.status_code == 200
    assert profile == []


def test_hidden_showcase_is_not_found(client, monkeypatch, document):
    del document["avatarInfoList"]
    monkeypatch.setattr(fetcher, "fetch_profile", lambda uid: document)
    resp = client.get("/api/profile/123")
    assert resp.status_code == 404


def test_api_profile(client, profile):
    resp = client.get("/api/profile/801630705")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["uid"] == "801630705"
    assert body["player"]["nickname"] == "Traveler"
    char = body["characters"][0]
    assert char["element"] == "炎"
    assert char["theme_color"] == "#FF5C5C"
    assert [a["slot"] for a in char["artifacts"]][0] == "EQUIP_BRACER"


def test_api_profile_not_found(client, unavailable):
    resp = client.get("/api/profile/123")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": app_module.NOT_FOUND_MESSAGE}


def test_api_profile_blank_uid(client, profile):
    resp = client.get("/api/profile/%20")
    assert resp.status_code == 400
    assert profile == []


def test_reference_tables_load_once(monkeypatch):
    calls = []

    def fake_load():
        calls.append(1)
        return reference.ReferenceTables.empty()

    monkeypatch.setattr(app_module, "_tables", None)
    monkeypatch.setattr(reference, "load_reference_tables", fake_load)
    first = app_module.get_reference_tables()
    assert app_module.get_reference_tables() is first
    assert calls == [1]


def test_selector_links_encode_uid(client, profile):
    resp = client.get("/", query_string={"uid": "a&b#c"})
    assert profile == ["a&b#c"]
    html = resp.get_data(as_text=True)
    assert "uid=a%26b%23c" in html
    assert "?uid=a&b" not in html


def test_templates_resolve_from_app_folder():
    loader = app_module.app.jinja_loader
    assert {"base.html", "index.html", "character.html"} <= set(loader.list_templates())
