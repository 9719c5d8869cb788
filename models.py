"""Database models for the site builder. Each site is stored as one JSON document."""

import json
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


class SiteDocument(db.Model):
    """The whole site state (profile, categories, entries, homepage, messages).

    Stored as a single JSON blob and always replaced wholesale.
    """
    __tablename__ = 'site_documents'

    id = db.Column(db.Integer, primary_key=True)
    document_json = db.Column(db.Text, nullable=False, default='{}')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    def get_document(self) -> dict:
        """Parse the stored JSON; raises ValueError if it is not a JSON object."""
        parsed = json.loads(self.document_json) if self.document_json else {}
        if not isinstance(parsed, dict):
            raise ValueError('Site document is not a JSON object')
        return parsed

    def set_document(self, document: dict):
        self.document_json = json.dumps(document, ensure_ascii=False)
        self.updated_at = datetime.utcnow()

    def __repr__(self):
        return f'<SiteDocument {self.id} updated={self.updated_at}>'
