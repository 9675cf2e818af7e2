from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session
from virtual_shop.api.deps import ctx, get_db, get_storage, get_urls, purge
from virtual_shop.db.repositories import PlacementImageRepository
from virtual_shop.schemas import PlacementImageCreate, PlacementImageRead, PlacementImageUpdate, SetActiveImage
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

router = APIRouter()

def _values(payload, defaults: bool):
    values = payload.model_dump(exclude_unset=True)
    if defaults:
        values.setdefault('anchor_position', None)
        values.setdefault('position', None)
    for k in ('anchor_position', 'position'):
        if k in values and values[k] is None: values[k] = {}
    return values

@router.get('')
def list_placement_images(placement_id: Optional[int] = None, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    images = [PlacementImageRead.model_validate(i, context=ctx(urls)) for i in PlacementImageRepository(db).list(placement_id)]
    return {'success': True, 'data': images, 'count': len(images)}

@router.post('', status_code=201)
def create_placement_image(payload: PlacementImageCreate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    image = PlacementImageRepository(db).create(_values(payload, defaults=True))
    return {'success': True, 'data': PlacementImageRead.model_validate(image, context=ctx(urls)), 'message': 'Placement image created successfully'}

@router.put('/set-active')
def set_active_placement_image(payload: SetActiveImage, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    image = PlacementImageRepository(db).set_active(payload.placement_id, payload.active_placement_image_id)
    return {'success': True, 'data': PlacementImageRead.model_validate(image, context=ctx(urls)), 'message': 'Active placement image updated successfully'}

@router.get('/{image_id}')
def get_placement_image(image_id: int, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    return {'success': True, 'data': PlacementImageRead.model_validate(PlacementImageRepository(db).get(image_id), context=ctx(urls))}

@router.put('/{image_id}')
def update_placement_image(image_id: int, payload: PlacementImageUpdate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    image = PlacementImageRepository(db).update(image_id, _values(payload, defaults=False))
    return {'success': True, 'data': PlacementImageRead.model_validate(image, context=ctx(urls)), 'message': 'Placement image updated successfully'}

@router.delete('/{image_id}')
def delete_placement_image(image_id: int, db: Session = Depends(get_db), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    summary, keys = PlacementImageRepository(db).delete(image_id)
    purge(storage, urls, keys)
    return {'success': True, 'data': summary, 'message': 'Placement image deleted successfully'}
