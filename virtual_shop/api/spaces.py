from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session
from virtual_shop.api.deps import ctx, get_db, get_storage, get_urls, purge
from virtual_shop.db.repositories import SpaceRepository
from virtual_shop.schemas import SpaceCreate, SpaceRead, SpaceUpdate
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

router = APIRouter()

@router.get('')
def list_spaces(scene_id: Optional[int] = None, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    spaces = [SpaceRead.model_validate(s, context=ctx(urls)) for s in SpaceRepository(db).list(scene_id)]
    return {'success': True, 'data': spaces, 'count': len(spaces)}

@router.post('', status_code=201)
def create_space(payload: SpaceCreate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    space = SpaceRepository(db).create(payload.model_dump(exclude_unset=True))
    return {'success': True, 'data': SpaceRead.model_validate(space, context=ctx(urls)), 'message': 'Space created successfully'}

@router.get('/{space_id}')
def get_space(space_id: int, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    """Space with its scene background, placements and placement images."""
    return {'success': True, 'data': SpaceRepository(db).get_tree(space_id, urls)}

@router.put('/{space_id}')
def update_space(space_id: int, payload: SpaceUpdate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    space = SpaceRepository(db).update(space_id, payload.model_dump(exclude_unset=True))
    return {'success': True, 'data': SpaceRead.model_validate(space, context=ctx(urls)), 'message': 'Space updated successfully'}

@router.delete('/{space_id}')
def delete_space(space_id: int, db: Session = Depends(get_db), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    summary, keys = SpaceRepository(db).delete(space_id)
    purge(storage, urls, keys)
    return {'success': True, 'data': summary, 'message': f'Space "{summary["name"]}" deleted successfully'}
