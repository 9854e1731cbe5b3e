"""
Guard checks for the Freight Order API.

Functions here raise exceptions from `app.src.exceptions` when a check
fails, ensuring consistent error handling across the routes and the
order lifecycle.
"""

from sqlalchemy.orm.session import Session

from app.src.db import Customer, Order
from app.src import exceptions


def customerExists(session: Session, customerId: int) -> Customer:
    """
    Ensure the customer placing an order exists.

    Args:
        session (Session): Active SQLAlchemy session.
        customerId (int): Customer referenced by the order.

    Returns:
        Customer: The matching customer.

    Raises:
        exceptions.UnknownValue: If no customer has the given id.
    """
    customer = session.query(Customer).filter(Customer.id == customerId).first()
    if customer is None:
        raise exceptions.UnknownValue(Order.customer_id)
    return customer
