# barber_finder/deps.py

from fastapi import Depends

from barber_finder.auth import CUSTOMER, SHOP, get_current_user
from barber_finder.errors import PermissionDeniedError


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise PermissionDeniedError("Forbidden")


def current_shop(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, SHOP)
    return current_user


def current_customer(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, CUSTOMER)
    return current_user
