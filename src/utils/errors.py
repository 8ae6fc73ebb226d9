class StorefrontError(Exception):
    """
    Base class for errors whose message is meant to be shown to the customer.
    """


class AuthError(StorefrontError):
    pass


class NotFoundError(StorefrontError):
    pass


class SlotUnavailableError(StorefrontError):
    """
    Raised when a repair appointment asks for a slot that is already taken.
    """
