from .marketplace import (
    create_admin,
    create_loyalty_product,
    create_optician,
    create_order,
    create_product,
    create_redemption,
    fund_account,
)

__all__ = [
    'create_admin',
    'create_loyalty_product',
    'create_optician',
    'create_order',
    'create_product',
    'create_redemption',
    'fund_account',
]
