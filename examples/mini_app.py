#!/usr/bin/env python
# run:
# $ FLASK_APP=mini_app flask run
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from restgen import RestGen, Generator, merge_fields

db = SQLAlchemy()


class User(db.Model):
    __tablename__ = "Users"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String)


def create_api(app):
    users = Generator(db, User, "user")
    # handles record updates: only the name can be changed
    users.handlers(merge=merge_fields("name")).register(app, "/users")
    db.session.add(User(name="kenneth"))
    db.session.commit()


def create_app():
    app = Flask("mini_app")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://")
    db.init_app(app)
    RestGen(app)
    with app.app_context():
        db.create_all()
        create_api(app)
    return app


app = create_app()

if __name__ == "__main__":
    app.run(port=3000)
