import os
import pytest
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from restgen import RestGen, Generator, Association, Pipeline, RequestContext, Store, load_fixture

db = SQLAlchemy()
FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


class Owner(db.Model):
    __tablename__ = "owners"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String)
    animals = db.relationship("Animal", back_populates="owner")


class Animal(db.Model):
    __tablename__ = "animals"
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("owners.id"))
    owner = db.relationship("Owner", back_populates="animals")
    name = db.Column(db.String)
    species = db.Column(db.String)
    age = db.Column(db.Integer)


owner_animals = Association("owner", "animals")


@pytest.fixture
def app():
    app = Flask("restgen_tests")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://", TESTING=True)
    db.init_app(app)
    RestGen(app)
    with app.app_context():
        db.create_all()
        store = Store(db)
        load_fixture(store, Owner, os.path.join(FIXTURES, "owners.json"))
        load_fixture(store, Animal, os.path.join(FIXTURES, "animals.json"))
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return Store(db)


@pytest.fixture
def owners(app):
    return Generator(db, Owner, "owner")


@pytest.fixture
def animals(app):
    return Generator(db, Animal, "animal")


@pytest.fixture
def run(app):
    """
    Run stages for a mocked request, the context can be seeded with values (like a preceding fetch would)

        ctx, response = run(animals.fetch(), params={"animal": "1"})
    """

    def run_stages(*stages, method="GET", data=None, params=None, values=None, query_string=None):
        values = values or {}
        with app.test_request_context("/", method=method, data=data, content_type="application/json", query_string=query_string):
            ctx = RequestContext(params=params or {})
            for key, value in values.items():
                ctx.set(key, value)
            response = Pipeline(*stages, initial=values.keys())(ctx)
        return ctx, response

    return run_stages
