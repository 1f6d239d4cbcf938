"""
Circle Portal: ORM package.

``db`` is the single Flask-SQLAlchemy handle shared by every model module,
service and test fixture.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
