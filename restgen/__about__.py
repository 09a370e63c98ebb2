__version__ = "0.1.0"
__description__ = "restgen : generated Flask request handlers for SqlAlchemy models"
