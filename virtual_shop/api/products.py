from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from virtual_shop.api.deps import ctx, get_db, get_storage, get_urls, purge
from virtual_shop.db.repositories import ProductRepository
from virtual_shop.schemas import ProductCreate, ProductRead, ProductUpdate
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

router = APIRouter()

@router.get('')
def list_products(db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    products = [ProductRead.model_validate(p, context=ctx(urls)) for p in ProductRepository(db).list()]
    return {'success': True, 'data': products, 'count': len(products)}

@router.get('/{product_id}')
def get_product(product_id: int, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    return {'success': True, 'data': ProductRead.model_validate(ProductRepository(db).get(product_id), context=ctx(urls))}

@router.post('', status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    obj = ProductRepository(db).create(payload.model_dump(exclude_unset=True))
    return {'success': True, 'data': ProductRead.model_validate(obj, context=ctx(urls)), 'message': 'Product created successfully'}

@router.put('/{product_id}')
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    obj = ProductRepository(db).update(product_id, payload.model_dump(exclude_unset=True))
    return {'success': True, 'data': ProductRead.model_validate(obj, context=ctx(urls)), 'message': 'Product updated successfully'}

@router.delete('/{product_id}')
def delete_product(product_id: int, db: Session = Depends(get_db), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    # placement images keep existing with product_id set to NULL
    summary, keys = ProductRepository(db).delete(product_id)
    purge(storage, urls, keys)
    return {'success': True, 'data': summary, 'message': f'Product "{summary["name"]}" deleted successfully'}
