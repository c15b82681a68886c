"""Errors raised by the storefront domain that are not plain validation failures."""


class DuplicateCartError(Exception):
    """More than one cart exists for a single owner. This is a data-integrity bug."""

    def __init__(self, owner_key: str, cart_ids: list[str]):
        self.owner_key = owner_key
        self.cart_ids = cart_ids
        super().__init__(f"Owner {owner_key} has {len(cart_ids)} carts: {', '.join(cart_ids)}")


class OrderNumberUnavailable(Exception):
    """No unused order number could be generated within the retry budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique order number after {attempts} attempts")
