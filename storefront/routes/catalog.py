from fastapi import APIRouter, Depends

from storefront.config import Settings
from storefront.constants.catalog import PRODUCT
from storefront.dependencies.state import get_settings

router = APIRouter()


@router.get("")
def get_product(config: Settings = Depends(get_settings)):
    return {
        **PRODUCT,
        "amount_inr": config.PRODUCT_AMOUNT_INR,
        "amount_usdt": config.amount_usdt,
    }
