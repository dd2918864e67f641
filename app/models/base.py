# Re-export the application's SQLAlchemy instance
from ..db import db

# Convenience exports
Model = db.Model
metadata = db.metadata
