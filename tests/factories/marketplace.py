# ===============================================================================
# TEST FACTORIES FOR THE MARKETPLACE
# ===============================================================================
import itertools
from decimal import Decimal

from apps.loyalty.models import Redemption, RedemptionItem
from apps.loyalty.services import PointsLedger
from apps.opticians.models import Optician
from apps.orders.models import Order, OrderItem
from apps.products.models import LoyaltyProduct, Product
from apps.users.models import User

_sequence = itertools.count(1)


def _next() -> int:
    return next(_sequence)


def create_admin(email: str | None = None) -> User:
    """Create a back-office administrator."""
    return User.objects.create_user(
        email=email or f"admin{_next()}@marketplace.test",
        password='testpass123',
        role=User.ROLE_ADMIN,
        is_staff=True,
    )


def create_optician(
    business_name: str = 'Optique Centrale',
    status: str = Optician.STATUS_APPROVED,
    email: str | None = None,
) -> Optician:
    """Create an optician shop and its user; approved by default."""
    user = User.objects.create_user(
        email=email or f"optician{_next()}@marketplace.test",
        password='testpass123',
        role=User.ROLE_OPTICIAN,
    )
    return Optician.objects.create(user=user, business_name=business_name, city='Lyon', status=status)


def create_product(
    name: str = 'Progressive Lens',
    stock_qty: int = 10,
    unit_price_cents: int = 10000,
    discount_pct: Decimal = Decimal('0.00'),
    loyalty_points_reward: int = 0,
    is_active: bool = True,
) -> Product:
    """Create a catalog product with sensible defaults."""
    return Product.objects.create(
        name=name,
        reference=f"REF-{_next():05d}",
        unit_price_cents=unit_price_cents,
        discount_pct=discount_pct,
        stock_qty=stock_qty,
        loyalty_points_reward=loyalty_points_reward,
        is_active=is_active,
    )


def create_loyalty_product(
    name: str = 'Cleaning Kit',
    points_cost: int = 50,
    product: Product | None = None,
    own_stock_qty: int = 0,
    is_active: bool = True,
) -> LoyaltyProduct:
    """Create a reward, optionally linked to a catalog product for its stock."""
    return LoyaltyProduct.objects.create(
        name=name,
        points_cost=points_cost,
        product=product,
        own_stock_qty=own_stock_qty,
        is_active=is_active,
    )


def create_order(optician: Optician, lines: list[tuple[Product, int]]) -> Order:
    """Create a PENDING order directly, bypassing submission checks."""
    order = Order.objects.create(optician=optician, created_by=optician.user)
    for product, quantity in lines:
        OrderItem.objects.create(
            order=order,
            product=product,
            quantity=quantity,
            product_name=product.name,
            product_reference=product.reference,
            unit_price_cents=product.unit_price_cents,
            discount_pct=product.discount_pct,
            sale_price_cents=product.sale_price_cents,
            line_total_cents=product.sale_price_cents * quantity,
        )
    return order


def create_redemption(optician: Optician, lines: list[tuple[LoyaltyProduct, int]]) -> Redemption:
    """Create a PENDING redemption directly, bypassing the advisory balance check."""
    total = sum(reward.points_cost * quantity for reward, quantity in lines)
    redemption = Redemption.objects.create(optician=optician, total_points=total)
    for reward, quantity in lines:
        RedemptionItem.objects.create(
            redemption=redemption,
            loyalty_product=reward,
            product_name=reward.name,
            quantity=quantity,
            points_cost=reward.points_cost,
            total_points=reward.points_cost * quantity,
        )
    return redemption


def fund_account(optician: Optician, points: int) -> int:
    """Credit points through the ledger so balance and history agree."""
    return PointsLedger.credit(optician, points, 'test_funding', reference_id='fixture').unwrap()
