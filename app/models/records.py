import datetime as dt

from .base import db, Model


class Record(Model):
    """One document of the key-value store.

    ``table_name`` separates logical tables (pets, timezones) sharing the SQL
    table. ``version`` backs optimistic concurrency: every UPDATE is issued
    with ``WHERE version = <loaded>`` and a lost race raises ``StaleDataError``.
    """
    __tablename__ = "records"

    table_name = db.Column(db.String(64), primary_key=True)
    pk = db.Column(db.String(128), primary_key=True)
    sk = db.Column(db.String(128), primary_key=True)
    data = db.Column(db.JSON, nullable=False, default=dict)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=dt.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Record {self.table_name}:{self.pk}/{self.sk} v{self.version}>"
