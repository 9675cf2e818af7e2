"""Test doubles shared by the test modules."""

from datetime import datetime, timezone
from types import SimpleNamespace

from sqlalchemy.pool import StaticPool

from virtual_shop.db.session import Database

BASE_URL = 'https://o1-virtual-shop.s3.ap-south-1.amazonaws.com'


class FakeMinio:
    """Keeps objects in a dict; keys listed in ``fail_on`` raise on removal."""

    def __init__(self, fail_on=()):
        self.buckets = set()
        self.objects = {}
        self.removed = []
        self.fail_on = set(fail_on)

    def bucket_exists(self, bucket_name):
        return bucket_name in self.buckets

    def make_bucket(self, bucket_name):
        self.buckets.add(bucket_name)

    def put_object(self, bucket_name, object_name, data, length, content_type=None, metadata=None):
        self.objects[object_name] = {'data': data.read(), 'length': length, 'content_type': content_type, 'metadata': metadata, 'last_modified': datetime(2026, 1, 1, tzinfo=timezone.utc)}

    def remove_object(self, bucket_name, object_name):
        if object_name in self.fail_on:
            raise RuntimeError(f'cannot remove {object_name}')
        self.removed.append(object_name)
        self.objects.pop(object_name, None)

    def list_objects(self, bucket_name, prefix=None, recursive=False, start_after=None):
        for name in sorted(self.objects):
            if prefix and not name.startswith(prefix):
                continue
            if start_after and name <= start_after:
                continue
            stored = self.objects[name]
            yield SimpleNamespace(object_name=name, size=stored['length'], last_modified=stored['last_modified'])

    def remove_objects(self, bucket_name, delete_object_list):
        for obj in delete_object_list:
            if obj.name in self.fail_on:
                yield SimpleNamespace(name=obj.name, code='AccessDenied', message='Access Denied')
            else:
                self.removed.append(obj.name)
                self.objects.pop(obj.name, None)

    def copy_object(self, bucket_name, object_name, source, metadata=None):
        if source.object_name not in self.objects:
            raise RuntimeError(f'NoSuchKey: {source.object_name}')
        self.objects[object_name] = dict(self.objects[source.object_name], metadata=metadata)


def memory_database() -> Database:
    return Database('sqlite://', poolclass=StaticPool, connect_args={'check_same_thread': False})
