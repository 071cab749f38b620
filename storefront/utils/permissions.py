"""Authorization predicates. Handlers ask these instead of comparing roles inline."""

from storefront.domain.enums import Role


def can_manage_product(role: Role, is_owner: bool) -> bool:
    if role is Role.ADMIN:
        return True
    return role is Role.SELLER and is_owner


def can_create_product(role: Role) -> bool:
    return role in (Role.SELLER, Role.ADMIN)


def can_set_order_status(role: Role) -> bool:
    return role is Role.ADMIN


def can_view_order(role: Role, is_owner: bool) -> bool:
    return is_owner or role is Role.ADMIN


def can_cancel_order(role: Role, is_owner: bool) -> bool:
    return is_owner or role is Role.ADMIN


def can_manage_invoices(role: Role) -> bool:
    return role is Role.ADMIN
