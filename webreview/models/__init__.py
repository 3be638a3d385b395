"""
WebReview — SQLAlchemy models package.

Model modules import the shared ``db`` instance from here:

    from webreview.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
