import logging
from contextlib import contextmanager
from datetime import datetime

import firebase_admin
from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from django.conf import settings

from core.exceptions import DocumentNotFound, ScanLimitExceeded, StoreUnavailable

logger = logging.getLogger(__name__)

# Firestore rejects batches with more writes than this
BATCH_WRITE_LIMIT = 500


class BaseFirestoreService:
    """
    Thin document-store layer shared by every entity mixin.

    Queries are limited to a single equality filter; anything else (extra
    filters, ordering) is done by the caller in memory. Store failures surface
    as StoreUnavailable, never as an empty result.
    """

    def __init__(self):
        # Ensure app is initialized (it should be in settings.py)
        if not firebase_admin._apps:
            logger.debug("firebase_admin not initialized yet; client will be created on first use")
        self._db = None

    @property
    def db(self):
        if self._db is None:
            try:
                self._db = firestore.client()
            except ValueError as e:
                # Raised when firebase_admin.initialize_app() never ran
                raise StoreUnavailable("Firebase app is not initialized") from e
        return self._db

    @property
    def max_scan(self):
        return getattr(settings, 'CATALOG_MAX_SCAN', 5000)

    @contextmanager
    def _store_call(self, collection_name, doc_id=None):
        try:
            yield
        except google_exceptions.NotFound:
            raise DocumentNotFound(collection_name, doc_id)
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Firestore call on '{collection_name}' failed: {e}")
            raise StoreUnavailable(f"Document store unavailable ({collection_name})") from e

    def _materialize(self, collection_name, query):
        # Fetch one past the bound so an oversized collection is reported, not truncated
        docs = list(query.limit(self.max_scan + 1).stream())
        if len(docs) > self.max_scan:
            raise ScanLimitExceeded(collection_name, self.max_scan)
        return [{**doc.to_dict(), 'id': doc.id} for doc in docs]

    def get_collection(self, collection_name):
        with self._store_call(collection_name):
            return self._materialize(collection_name, self.db.collection(collection_name))

    def query_by_field(self, collection_name, field, value):
        """Equality match on exactly one field."""
        from google.cloud.firestore import FieldFilter
        with self._store_call(collection_name):
            query = self.db.collection(collection_name).where(filter=FieldFilter(field, '==', value))
            return self._materialize(collection_name, query)

    def get_first_by_field(self, collection_name, field, value):
        from google.cloud.firestore import FieldFilter
        with self._store_call(collection_name):
            query = self.db.collection(collection_name).where(filter=FieldFilter(field, '==', value))
            for doc in query.limit(1).stream():
                return {**doc.to_dict(), 'id': doc.id}
        return None

    def unique_slug(self, collection_name, slug, exclude_id=None, reserved=()):
        """
        `slug`, or `slug-<unix timestamp>` when another document already uses it.
        The check and the later write are not atomic.
        """
        candidate = slug
        existing = self.get_first_by_field(collection_name, 'slug', slug)
        if (existing and existing['id'] != exclude_id) or slug in reserved:
            candidate = f"{slug}-{int(datetime.now().timestamp())}"
        suffix = 2
        while candidate in reserved:
            candidate = f"{slug}-{int(datetime.now().timestamp())}-{suffix}"
            suffix += 1
        return candidate

    def get_document(self, collection_name, doc_id):
        with self._store_call(collection_name, doc_id):
            doc = self.db.collection(collection_name).document(doc_id).get()
        if doc.exists:
            return {**doc.to_dict(), 'id': doc.id}
        return None

    def create_document(self, collection_name, data, doc_id=None):
        payload = {**data, 'created_at': firestore.SERVER_TIMESTAMP}
        payload.pop('id', None)
        with self._store_call(collection_name, doc_id):
            if doc_id:
                self.db.collection(collection_name).document(doc_id).set(payload)
                return doc_id
            update_time, doc_ref = self.db.collection(collection_name).add(payload)
            return doc_ref.id

    def batch_create(self, collection_name, documents):
        """Create many documents with batched writes; returns their ids in order."""
        doc_ids = []
        with self._store_call(collection_name):
            for start in range(0, len(documents), BATCH_WRITE_LIMIT):
                batch = self.db.batch()
                for data in documents[start:start + BATCH_WRITE_LIMIT]:
                    doc_ref = self.db.collection(collection_name).document()
                    batch.set(doc_ref, {**data, 'created_at': firestore.SERVER_TIMESTAMP})
                    doc_ids.append(doc_ref.id)
                batch.commit()
        return doc_ids

    def update_document(self, collection_name, doc_id, data):
        payload = {**data, 'updated_at': firestore.SERVER_TIMESTAMP}
        payload.pop('id', None)
        with self._store_call(collection_name, doc_id):
            self.db.collection(collection_name).document(doc_id).update(payload)

    def increment_field(self, collection_name, doc_id, field, amount=1):
        """Atomic server-side add; does not touch updated_at."""
        with self._store_call(collection_name, doc_id):
            self.db.collection(collection_name).document(doc_id).update({
                field: firestore.Increment(amount)
            })

    def delete_document(self, collection_name, doc_id):
        with self._store_call(collection_name, doc_id):
            self.db.collection(collection_name).document(doc_id).delete()
