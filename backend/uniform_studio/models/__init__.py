from .auth import User, ROLE_ADMIN, ROLE_SALES, ROLE_PRODUCTION, VALID_ROLES
from .orders import OrderSheet, Order, PostDeliveryOutcome
from .notifications import Notification

__all__ = [
    'User', 'ROLE_ADMIN', 'ROLE_SALES', 'ROLE_PRODUCTION', 'VALID_ROLES',
    'OrderSheet', 'Order', 'PostDeliveryOutcome',
    'Notification',
]
