"""
In-memory stand-in for the Firestore client, for tests.

Only the surface used by core.services is covered: collections, document
references, single equality filters, limits, batched writes, merge updates,
SERVER_TIMESTAMP and Increment transforms. Every write runs under one lock,
so Increment behaves atomically like the real server transform.
"""
import copy
import itertools
import threading
import uuid
from datetime import datetime, timedelta, timezone

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from core.services import db


class FakeDocumentSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, client, collection_name, doc_id):
        self._client = client
        self._collection = collection_name
        self.id = doc_id

    def _store(self):
        return self._client._collections.setdefault(self._collection, {})

    def get(self):
        self._client._check_available()
        with self._client._lock:
            return FakeDocumentSnapshot(self, copy.deepcopy(self._store().get(self.id)))

    def set(self, data, merge=False):
        self._client._check_available()
        with self._client._lock:
            current = self._store().get(self.id) if merge else None
            base = dict(current or {})
            base.update(self._client._resolve(current or {}, data))
            self._store()[self.id] = base

    def update(self, data):
        self._client._check_available()
        with self._client._lock:
            current = self._store().get(self.id)
            if current is None:
                raise google_exceptions.NotFound(f"No document to update: {self._collection}/{self.id}")
            current.update(self._client._resolve(current, data))

    def delete(self):
        self._client._check_available()
        with self._client._lock:
            self._store().pop(self.id, None)


class FakeQuery:
    def __init__(self, client, collection_name, filters=(), limit_count=None):
        self._client = client
        self._collection = collection_name
        self._filters = tuple(filters)
        self._limit = limit_count

    def where(self, field_path=None, op_string=None, value=None, *, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        if op_string not in ('==', 'in'):
            raise NotImplementedError(f"Fake Firestore does not support '{op_string}' filters")
        return FakeQuery(self._client, self._collection, self._filters + ((field_path, op_string, value),), self._limit)

    def limit(self, count):
        return FakeQuery(self._client, self._collection, self._filters, count)

    def _matches(self, data):
        for field_path, op_string, value in self._filters:
            if op_string == '==' and data.get(field_path) != value:
                return False
            if op_string == 'in' and data.get(field_path) not in value:
                return False
        return True

    def stream(self):
        self._client._check_available()
        with self._client._lock:
            store = self._client._collections.get(self._collection, {})
            rows = [(doc_id, copy.deepcopy(data)) for doc_id, data in store.items() if self._matches(data)]
        if self._limit is not None:
            rows = rows[:self._limit]
        for doc_id, data in rows:
            yield FakeDocumentSnapshot(FakeDocumentReference(self._client, self._collection, doc_id), data)

    def get(self):
        return list(self.stream())


class FakeCollectionReference(FakeQuery):
    def __init__(self, client, collection_name):
        super().__init__(client, collection_name)
        self.id = collection_name

    def document(self, document_id=None):
        return FakeDocumentReference(self._client, self._collection, document_id or uuid.uuid4().hex[:20])

    def add(self, document_data):
        doc_ref = self.document()
        doc_ref.set(document_data)
        return self._client.now(), doc_ref


class FakeWriteBatch:
    def __init__(self, client):
        self._client = client
        self._writes = []

    def set(self, reference, document_data, merge=False):
        self._writes.append((reference, document_data, merge))

    def commit(self):
        self._client._check_available()
        with self._client._lock:
            for reference, document_data, merge in self._writes:
                reference.set(document_data, merge=merge)
        self._writes = []


class FakeFirestore:
    def __init__(self):
        self._collections = {}
        self._lock = threading.RLock()
        self._ticks = itertools.count(1)
        self._epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.unavailable = False

    def now(self):
        # Strictly increasing, so creation order is always recoverable from created_at
        return self._epoch + timedelta(seconds=next(self._ticks))

    def _check_available(self):
        if self.unavailable:
            raise google_exceptions.ServiceUnavailable("Fake Firestore is offline")

    def _resolve(self, current, data):
        resolved = {}
        for key, value in data.items():
            if value is firestore.SERVER_TIMESTAMP:
                resolved[key] = self.now()
            elif isinstance(value, firestore.Increment):
                resolved[key] = (current.get(key) or 0) + value.value
            else:
                resolved[key] = copy.deepcopy(value)
        return resolved

    def collection(self, collection_name):
        return FakeCollectionReference(self, collection_name)

    def batch(self):
        return FakeWriteBatch(self)

    def raw(self, collection_name, doc_id):
        """Stored document, bypassing the service layer."""
        return copy.deepcopy(self._collections.get(collection_name, {}).get(doc_id))


class FirestoreTestMixin:
    """Swaps the shared service's client for a FakeFirestore per test."""

    def setUp(self):
        super().setUp()
        self.store = FakeFirestore()
        self._original_client = db._db
        db._db = self.store
        self.db = db

    def tearDown(self):
        db._db = self._original_client
        super().tearDown()

    def sign_in(self, uid):
        session = self.client.session
        session['uid'] = uid
        session.save()

    def make_user(self, uid, is_admin=False, email=None):
        db.create_document('users', {
            'email': email or f'{uid}@example.com',
            'display_name': uid.title(),
            'is_admin': is_admin,
        }, doc_id=uid)
        return uid

    def make_category(self, name, is_active=True, prompt_count=0):
        from core.slugs import generate_slug
        return db.create_document('categories', {
            'name': name,
            'slug': generate_slug(name),
            'description': '',
            'is_active': is_active,
            'prompt_count': prompt_count,
            'created_by': 'system',
        })

    def make_blog_category(self, name, post_count=0):
        from core.slugs import generate_slug
        return db.create_document('blog_categories', {
            'name': name,
            'slug': generate_slug(name),
            'description': '',
            'color': None,
            'post_count': post_count,
        })

    def prompt_data(self, **overrides):
        data = {
            'title': 'Summarize a Meeting',
            'description': 'Turns raw notes into a crisp summary',
            'category': 'Marketing',
            'full_prompt': 'You are an assistant. Summarize the following notes...',
            'tags': 'summary, meetings',
        }
        data.update(overrides)
        return data

    def post_data(self, **overrides):
        data = {
            'title': 'Writing Better Prompts',
            'content': 'Clear instructions beat clever tricks. ' * 30,
            'category': 'guides',
            'tags': ['prompting'],
        }
        data.update(overrides)
        return data
