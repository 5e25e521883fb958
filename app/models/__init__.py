"""
Lease Comp History
Model package.

``db`` is the single Flask-SQLAlchemy handle shared by every model module
and by the services (``db.session`` is the storage interface).
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
