# Configuration settings should be set in app.config
# The get_config function looks up the flask app config first, then the RestGen class attributes
# and finally the environment
import os
import logging
from flask import current_app
import restgen
from typing import Any, Optional


def get_config(option: str) -> Optional[Any]:
    """Retrieve a configuration parameter from the app
    :param option: configuration parameter
    :return: configuration value
    """
    try:
        return current_app.config[option]
    except (KeyError, RuntimeError):
        # KeyError: not configured, RuntimeError: no app context
        pass
    return getattr(restgen.RestGen, option, os.environ.get(option, None))


def is_debug() -> bool:
    """
    We use the loglevel to check whether we're running in debug mode
    :return: whether the app is in debug mode
    :rtype: Boolean
    """
    return restgen.log.getEffectiveLevel() < logging.INFO
