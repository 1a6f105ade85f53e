from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import (
    CartChangedMessage,
    ModeSwitchedMessage,
    PrinterStateChangedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from utils.pure import format_money, generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal


class Sidebar(Container):
    """Cashier card, cart and printer status, and the mode menu."""

    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("Cashier", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Label("", id="label-cart-status")
        yield Label("", id="label-printer-status")
        yield Button("Forget printer", id="btn-forget-printer", disabled=True)
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode
        state = self.app.state

        if state.uid is not None:
            md_table_str = generate_markdown_table(
                None,
                [["Cashier ID", state.uid], ["Name", state.user_name or "-"]],
                ["l", "l"],
            )
            await self.query_one(Markdown).update(md_table_str)

            list_menu: ListView = self.query_one("#list-menu")
            await list_menu.clear()
            await list_menu.extend(
                ListItem(Label(title), id=f"list-menu-item-{mode}")
                for mode, title in self.app.CASHIER_MODES.items()
            )
            self.highlight_item(self.init_mode)

        self.refresh_status()

    def refresh_status(self) -> None:
        state = self.app.state
        cart_label = self.query_one("#label-cart-status", Label)
        if state.cart.is_empty:
            cart_label.update("Cart: empty")
        else:
            total = format_money(state.cart.compute_grand_total(), state.settings.currency)
            cart_label.update(f"Cart: {len(state.cart)} lines, {total}")

        printer = state.printer
        printer_label = self.query_one("#label-printer-status", Label)
        if not printer.is_supported:
            printer_label.update("Printer: unsupported")
        elif printer.connected:
            printer_label.update(f"Printer: {printer.device}")
        else:
            printer_label.update("Printer: not paired")
        self.query_one("#btn-forget-printer", Button).disabled = not printer.connected

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work
    async def handle_logout(self):
        caption = "Log out?"
        if not self.app.state.cart.is_empty:
            caption += " The current cart will be discarded."
        if not await self.app.push_screen_wait(
            DialogModal(caption, primary_text="Yes", secondary_text="No", tone="warning")
        ):
            return

        self.post_message(UserLogoutMessage())

    @on(Button.Pressed, "#btn-forget-printer")
    @work(exclusive=True, group="printer")
    async def handle_forget_printer(self):
        printer = self.app.state.printer
        if not printer.connected:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Forget {printer.device}? It will not reconnect on the next start.",
                primary_text="Forget",
                secondary_text="Keep",
                tone="warning",
            )
        ):
            return
        await self.app.state.receipts.forget_printer()
        self.notify("Printer forgotten.")

    def highlight_item(self, mode_str: str):
        for item in self.query_one("#list-menu").children:
            item.highlighted = item.id == f"list-menu-item-{mode_str}"


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Point of Sale",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """
        self.app.title = f"{self.app.state.settings.shop_name} POS"
        self.sub_title = header_sub_title
        for mode, screen_cls in self.app.MODES.items():
            if isinstance(self, screen_cls) and mode in self.app.CASHIER_MODES:
                self.sub_title = self.app.CASHIER_MODES[mode]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(UserLoginMessage)
    def handle_user_login(self):
        self.refresh()

    @on(CartChangedMessage)
    @on(PrinterStateChangedMessage)
    def handle_status_change(self) -> None:
        for sidebar in self.query(Sidebar):
            sidebar.refresh_status()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal(len(self.app.state.cart)))
