from flask_sqlalchemy import SQLAlchemy

# Single SQLAlchemy instance shared by the app
db = SQLAlchemy()
