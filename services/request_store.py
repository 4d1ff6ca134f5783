from sqlalchemy import select, update

from models import db


class RequestStore:
    """
    Persisted pending-request rows, at most one per subject.

    The subject key is a mapping of column -> value (``{"email": ...}``,
    ``{"user_id": ..., "purpose": ...}``). Writes replace, they never merge.
    """

    def __init__(self, model):
        self.model = model

    def upsert(self, key: dict, **payload):
        """Delete whatever the subject has pending, then insert the new row."""
        for stale in self.model.query.filter_by(**key).all():
            db.session.delete(stale)
        db.session.flush()
        row = self.model(**key, **payload)
        db.session.add(row)
        db.session.commit()
        return row

    def get(self, **key):
        return self.model.query.filter_by(**key).first()

    def update(self, row, **fields):
        for name, value in fields.items():
            setattr(row, name, value)
        db.session.commit()
        return row

    def decrement_attempts(self, row_id) -> int:
        """Atomic decrement; returns the value now stored."""
        model = self.model
        db.session.execute(
            update(model)
            .where(model.id == row_id, model.attempts_left > 0)
            .values(attempts_left=model.attempts_left - 1)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        left = db.session.execute(
            select(model.attempts_left).where(model.id == row_id)
        ).scalar_one_or_none()
        return left or 0

    def delete(self, row_id) -> None:
        self.model.query.filter_by(id=row_id).delete()
        db.session.commit()

    def purge_expired(self, now) -> int:
        count = self.model.query.filter(self.model.expires_at < now).delete()
        db.session.commit()
        return count
