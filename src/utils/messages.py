from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired once a user signed in (and the guest cart was merged), so screens
    showing user or cart data can refresh
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user asks to log out
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever a line is added, edited or removed, or the cart is emptied.

    Post it at App level when sending from outside CartScreen.
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired after checkout stored an order
    """

    bubble = True

    def __init__(self, order_id: str) -> None:
        super().__init__()
        self.order_id = order_id


class RequestSubmittedMessage(Message):
    """
    Fired when an RFQ, repair appointment or consultation is submitted or
    changes status, so request lists can reload
    """

    bubble = True

    def __init__(self, reference: str) -> None:
        super().__init__()
        self.reference = reference


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
