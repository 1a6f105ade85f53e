from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the cashier logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired when the cashier logged in, so the screen can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever a line item or the order discount changed.
    The sale screen re-renders the cart and the totals.
    """

    bubble = True


class OrderCreatedMessage(Message):
    """
    Fired when an order was persisted (confirmed or saved for later).
    Listened to by the orders screen.
    """

    bubble = True

    def __init__(self, order_id: int, order_number: str) -> None:
        super().__init__()
        self.order_id = order_id
        self.order_number = order_number


class PrinterStateChangedMessage(Message):
    """
    Fired by the app when the thermal printer connects, disconnects, or is
    found unsupported. Print buttons relabel themselves on it.
    """

    bubble = True

    def __init__(self, state: str) -> None:
        super().__init__()
        self.state = state


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
