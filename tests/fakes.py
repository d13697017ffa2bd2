"""In-memory stand-in for the parts of the Firestore client FloHub uses."""
import copy
import itertools

_ids = itertools.count(1)

_MISSING = object()


def _lookup(data, path):
    value = data
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _matches(value, op, expected):
    if value is _MISSING:
        return False
    if op == "==":
        return value == expected
    if op == "array_contains":
        return isinstance(value, list) and expected in value
    if op == "in":
        return value in expected
    try:
        if op == ">":
            return value > expected
        if op == ">=":
            return value >= expected
        if op == "<":
            return value < expected
        if op == "<=":
            return value <= expected
    except TypeError:
        return False
    raise ValueError(f"unsupported operator {op}")


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, db, path):
        self._db = db
        self.path = path
        self.id = path[-1]

    @property
    def _parent(self):
        return self._db.docs.setdefault(self.path[:-1], {})

    def get(self):
        return FakeSnapshot(self, self._parent.get(self.id))

    def set(self, data, merge=False):
        if merge and self.id in self._parent:
            self._parent[self.id].update(copy.deepcopy(data))
        else:
            self._parent[self.id] = copy.deepcopy(data)

    def update(self, changes):
        if self.id not in self._parent:
            raise KeyError(f"No document to update: {'/'.join(self.path)}")
        self._parent[self.id].update(copy.deepcopy(changes))

    def delete(self):
        self._parent.pop(self.id, None)

    def collection(self, name):
        return FakeCollection(self._db, self.path + (name,))


class FakeQuery:
    def __init__(self, collection, filters=(), order=None, limit=None):
        self._collection = collection
        self._filters = tuple(filters)
        self._order = order
        self._limit = limit

    def where(self, field, op, value):
        return FakeQuery(self._collection, self._filters + ((field, op, value),), self._order, self._limit)

    def order_by(self, field, direction="ASCENDING"):
        return FakeQuery(self._collection, self._filters, (field, direction), self._limit)

    def limit(self, count):
        return FakeQuery(self._collection, self._filters, self._order, count)

    def stream(self):
        docs = []
        for doc_id, data in self._collection.items():
            if all(_matches(_lookup(data, f), op, v) for f, op, v in self._filters):
                docs.append((doc_id, data))

        if self._order:
            field, direction = self._order
            docs = [d for d in docs if _lookup(d[1], field) is not _MISSING]
            docs.sort(key=lambda d: _lookup(d[1], field), reverse=direction == "DESCENDING")

        if self._limit is not None:
            docs = docs[:self._limit]

        return iter([FakeSnapshot(self._collection.document(doc_id), data) for doc_id, data in docs])

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):
    def __init__(self, db, path):
        self._db = db
        self.path = path
        super().__init__(self)

    def items(self):
        return list(self._db.docs.get(self.path, {}).items())

    def document(self, doc_id=None):
        return FakeDocument(self._db, self.path + (doc_id or f"doc{next(_ids)}",))

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return None, ref


class FakeBatch:
    def __init__(self):
        self._ops = []

    def delete(self, ref):
        self._ops.append(ref.delete)

    def update(self, ref, changes):
        self._ops.append(lambda: ref.update(changes))

    def set(self, ref, data, merge=False):
        self._ops.append(lambda: ref.set(data, merge=merge))

    def commit(self):
        for op in self._ops:
            op()
        self._ops = []


class FakeFirestore:
    def __init__(self):
        # collection path tuple -> {doc id: data}
        self.docs = {}

    def collection(self, name):
        return FakeCollection(self, (name,))

    def batch(self):
        return FakeBatch()

    def all(self, *path):
        """Documents of a collection path as {id: data}."""
        return copy.deepcopy(self.docs.get(tuple(path), {}))
