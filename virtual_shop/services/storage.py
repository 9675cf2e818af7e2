import io, logging
from concurrent.futures import ThreadPoolExecutor
from itertools import islice
from typing import Dict, Iterable, List, Optional, Tuple
from minio import Minio
from minio.commonconfig import CopySource
from minio.deleteobjects import DeleteObject
from virtual_shop.core.errors import ObjectStoreFailure

logger = logging.getLogger(__name__)

PUBLIC_READ = {'x-amz-acl': 'public-read'}

class ObjectStore:
    def __init__(self, client: Minio, bucket: str, max_workers: int = 8):
        self.client = client
        self.bucket = bucket
        self.max_workers = max_workers
        self._bucket_checked = False

    @classmethod
    def from_settings(cls, settings) -> 'ObjectStore':
        client = Minio(endpoint=settings.S3_ENDPOINT.replace('http://','').replace('https://',''), access_key=settings.S3_ACCESS_KEY, secret_key=settings.S3_SECRET_KEY, secure=settings.S3_SECURE, region=settings.S3_REGION)
        return cls(client, settings.S3_BUCKET)

    def ensure_bucket(self):
        if self._bucket_checked:
            return
        if not self.client.bucket_exists(bucket_name=self.bucket):
            self.client.make_bucket(bucket_name=self.bucket)
        self._bucket_checked = True

    def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            self.ensure_bucket()
            self.client.put_object(bucket_name=self.bucket, object_name=key, data=io.BytesIO(data), length=len(data), content_type=content_type, metadata=PUBLIC_READ)
        except Exception as exc:
            raise ObjectStoreFailure('Failed to upload file to object storage', details={'reason': str(exc)}) from exc
        logger.info('Stored object %s (%d bytes)', key, len(data))
        return key

    def delete(self, key: str) -> None:
        try:
            self.client.remove_object(bucket_name=self.bucket, object_name=key)
        except Exception as exc:
            raise ObjectStoreFailure('Failed to delete object from storage', details={'reason': str(exc)}) from exc
        logger.info('Deleted object %s', key)

    def delete_many(self, keys: Iterable[str]) -> List[str]:
        """Delete every key concurrently; returns the keys that could not be deleted.

        One failure never stops the others.
        """
        keys = [k for k in dict.fromkeys(keys) if k]
        if not keys:
            return []
        failed = []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(keys))) as pool:
            futures = {pool.submit(self.delete, k): k for k in keys}
            for fut, key in futures.items():
                try:
                    fut.result()
                except ObjectStoreFailure as exc:
                    logger.warning('Could not delete object %s: %s', key, exc.details)
                    failed.append(key)
        return failed

    def list(self, prefix: str = '', max_keys: int = 100, start_after: Optional[str] = None) -> Tuple[list, bool]:
        """Up to ``max_keys`` objects under ``prefix`` after ``start_after``, and whether more remain."""
        try:
            found = self.client.list_objects(bucket_name=self.bucket, prefix=prefix or None, recursive=True, start_after=start_after)
            objects = list(islice(found, max_keys + 1))
        except Exception as exc:
            raise ObjectStoreFailure('Failed to list S3 assets', details={'reason': str(exc)}) from exc
        return objects[:max_keys], len(objects) > max_keys

    def remove_many(self, keys: Iterable[str]) -> List[Dict[str, str]]:
        """Bulk delete in one request per 1000 keys; returns the per-key errors."""
        objects = [DeleteObject(k) for k in dict.fromkeys(keys) if k]
        try:
            errors = [{'key': e.name, 'error': e.message or e.code} for e in self.client.remove_objects(bucket_name=self.bucket, delete_object_list=objects)]
        except Exception as exc:
            raise ObjectStoreFailure('Failed to delete objects from storage', details={'reason': str(exc)}) from exc
        logger.info('Bulk delete of %d objects, %d failed', len(objects), len(errors))
        return errors

    def copy(self, key: str, target_key: str) -> str:
        try:
            self.client.copy_object(bucket_name=self.bucket, object_name=target_key, source=CopySource(self.bucket, key), metadata=PUBLIC_READ)
        except Exception as exc:
            raise ObjectStoreFailure('Failed to copy object', details={'reason': str(exc)}) from exc
        logger.info('Copied object %s to %s', key, target_key)
        return target_key
