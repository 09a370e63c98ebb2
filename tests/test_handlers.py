import pytest

from restgen import Generator, Pipeline, PipelineError, chain, merge_fields, order_by, paginate
from conftest import Animal, Owner, db, owner_animals


@pytest.fixture
def api(app, owners, animals):
    resolver = chain(order_by(Animal.id), paginate())
    owners.handlers(merge=merge_fields("name")).register(app, "/owners")
    animals.associated_handlers(owner_animals, resolver=resolver, merge=merge_fields("name")).register(
        app, "/owners/<owner>/animals", owners.fetch()
    )
    animals.handlers(resolver=resolver, merge=merge_fields("name")).register(app, "/animals")
    return app


def test_routes(api):
    rules = {(rule.rule, method) for rule in api.url_map.iter_rules() for method in rule.methods}

    assert ("/owners", "GET") in rules
    assert ("/owners", "POST") in rules
    assert ("/owners/<owner>", "GET") in rules
    assert ("/owners/<owner>", "PUT") in rules
    assert ("/owners/<owner>", "DELETE") in rules
    assert ("/owners/<owner>/animals/<animal>", "PUT") in rules


def test_list(api, client):
    resp = client.get("/animals", query_string={"limit": 2})

    assert resp.status_code == 200
    assert [animal["name"] for animal in resp.get_json()] == ["Alfred", "Bella"]


def test_list_associated(api, client):
    resp = client.get("/owners/1/animals", query_string={"limit": 2})

    assert resp.status_code == 200
    assert [animal["name"] for animal in resp.get_json()] == ["Alfred", "Bella"]


def test_list_associated_unknown_parent(api, client):
    resp = client.get("/owners/99/animals")

    assert resp.status_code == 404


def test_create_then_fetch(api, client):
    resp = client.post("/owners", json={"name": "Fred"})

    assert resp.status_code == 201
    created = resp.get_json()
    assert created["name"] == "Fred"

    resp = client.get(f"/owners/{created['id']}")
    assert resp.status_code == 200
    assert resp.get_json() == created


def test_create_invalid(api, client):
    resp = client.post("/owners", json={"name": 12})

    assert resp.status_code == 400
    assert resp.get_json() == {"message": "validation errors", "errors": {"name": "invalid string type"}}


def test_create_associated(api, client):
    resp = client.post("/owners/2/animals", json={"name": "Eddie", "species": "cat", "age": 2})

    assert resp.status_code == 201
    animal_id = resp.get_json()["id"]
    assert resp.get_json()["owner_id"] == 2

    resp = client.get(f"/owners/2/animals/{animal_id}")
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "Eddie"


def test_fetch_associated_scoping(api, client):
    assert client.get("/owners/1/animals/1").status_code == 200
    assert client.get("/owners/1/animals/3").status_code == 404
    assert client.get("/owners/2/animals/3").status_code == 200
    assert client.get("/owners/99/animals/1").status_code == 404


def test_update(api, client):
    resp = client.put("/animals/1", json={"name": "changed"})

    assert resp.status_code == 200
    assert resp.get_json()["name"] == "changed"

    animal = client.get("/animals/1").get_json()
    assert animal["name"] == "changed"
    assert animal["species"] == "dog"
    assert animal["age"] == 3


def test_update_not_found(api, client):
    assert client.put("/animals/99", json={"name": "changed"}).status_code == 404


def test_update_associated_scoping(api, client):
    resp = client.put("/owners/1/animals/3", json={"name": "changed"})

    assert resp.status_code == 404
    with api.app_context():
        assert db.session.get(Animal, 3).name == "Charlie"


def test_delete(api, client):
    resp = client.delete("/animals/2")

    assert resp.status_code == 204
    assert resp.data == b""
    assert client.get("/animals/2").status_code == 404
    assert client.delete("/animals/2").status_code == 404


def test_delete_associated(api, client):
    assert client.delete("/owners/1/animals/4").status_code == 404
    assert client.delete("/owners/2/animals/4").status_code == 204
    assert client.get("/owners/2/animals/4").status_code == 404


def test_register_requires_parent_fetch(app, animals):
    # the association stages read "owner", the parent fetch stage must be registered first
    with pytest.raises(PipelineError):
        animals.associated_handlers(owner_animals).register(app, "/owners/<owner>/animals")


def test_pipelines(owners):
    pipelines = owners.handlers().pipelines()

    assert [len(pipeline) for pipeline in pipelines.values()] == [1, 2, 2, 3, 2]
    assert all(isinstance(pipeline, Pipeline) for pipeline in pipelines.values())


def test_register_blueprint(app, client):
    from flask import Blueprint

    bp = Blueprint("api", __name__, url_prefix="/api")
    Generator(db, Owner, "owner").handlers().register(bp, "/owners")
    app.register_blueprint(bp)

    resp = client.get("/api/owners/1")
    assert resp.status_code == 200
    assert resp.get_json() == {"id": 1, "name": "Kenneth"}


def test_create_out_of_range_integer(api, client):
    resp = client.post("/animals", json={"name": "Eddie", "age": 10**20})

    assert resp.status_code == 500
    assert "message" in resp.get_json()
    # the session was rolled back and can be used by the next request
    assert len(client.get("/animals").get_json()) == 4


def test_update_associated_default_merge(app, client, owners, animals):
    animals.associated_handlers(owner_animals).register(app, "/owners/<owner>/animals", owners.fetch())

    resp = client.put("/owners/1/animals/1", json={"owner_id": 2, "age": 4})

    assert resp.status_code == 200
    assert resp.get_json()["owner_id"] == 1
    assert resp.get_json()["age"] == 4
    assert client.get("/owners/1/animals/1").status_code == 200
    assert client.get("/owners/2/animals/1").status_code == 404


def test_fetch_malformed_id(api, client):
    assert client.get("/animals/1_0").status_code == 404
    assert client.get("/owners/1/animals/0001").status_code == 200
