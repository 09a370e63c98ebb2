#!/usr/bin/env python
#
# Owners and their animals:
#
#   /owners                         GET, POST
#   /owners/<owner>                 GET, PUT, DELETE
#   /owners/<owner>/animals         GET, POST
#   /owners/<owner>/animals/<animal> GET, PUT, DELETE
#   /animals                        GET (with search, pagination and X-Total-Count)
#
# run:
# $ python demo.py
import os
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from restgen import RestGen, Generator, Association, Pipeline, load_fixture
from restgen import chain, fields, search, total_count, order_by, paginate, merge_fields, MergeError

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


def merge_animals(src, dest):
    """When performing a PUT, we need to merge the input data with the existing data"""
    if src.age is not None and src.age < 0:
        raise MergeError("age can't be negative")
    dest.name = src.name
    dest.species = src.species
    dest.age = src.age


def create_api(app):
    owners = Generator(db, Owner, "owner")
    animals = Generator(db, Animal, "animal")

    owners.handlers(merge=merge_fields("name")).register(app, "/owners")
    animals.associated_handlers(owner_animals, merge=merge_animals).register(app, "/owners/<owner>/animals", owners.fetch())

    # Manually created pipeline: search the animals, set the total count header, paginate the results
    # and only return the id, name and species
    resolver = chain(
        search(Animal.name), total_count(animals.store), order_by(Animal.id), paginate(20), fields(Animal.name, Animal.species)
    )
    app.add_url_rule("/animals", endpoint="animals", view_func=Pipeline(animals.list(resolver)).as_view())

    load_fixture(owners.store, Owner, os.path.join(FIXTURES, "owners.json"))
    load_fixture(animals.store, Animal, os.path.join(FIXTURES, "animals.json"))


def create_app():
    app = Flask("demo_app")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://")
    db.init_app(app)
    RestGen(app)
    with app.app_context():
        db.create_all()
        create_api(app)
    return app


if __name__ == "__main__":
    create_app().run(port=3000)
