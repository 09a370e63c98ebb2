# -*- coding: utf-8 -*-
"""
Load json fixture files into the database
"""
import json
from typing import Any, Type
import restgen
from .store import Store


def load_fixture(store: Store, model: Type[Any], path: str, batch_size: int = 100) -> int:
    """
    Insert the objects of a json file, the file contains a list of
    attribute dictionaries, eg. [{"id": 1, "name": "Alfred"}, ...]

    :param store: Store
    :param model: model class
    :param path: json file path
    :param batch_size: number of instances inserted at once
    :return: number of inserted instances
    """
    with open(path, "rt") as fp:
        rows = json.load(fp)
    if not isinstance(rows, list):
        raise ValueError(f"Fixture {path} should contain a json list")
    restgen.log.info("Loading {} {} from {}".format(len(rows), model.__name__, path))
    return store.batch_insert((model(**row) for row in rows), batch_size=batch_size)
