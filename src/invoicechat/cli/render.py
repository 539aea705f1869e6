"""CLI renderer for invoicechat."""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from invoicechat.core.models import InvoiceList, InvoiceRecord, StructuredResult
from invoicechat.core.transcript import Transcript

EMPTY_STATE_HINT = "Ask me about your invoices!"


def _money(value: float | None) -> str:
    return "-" if value is None else f"${value:,.2f}"


def _quantity(value: float | None) -> str:
    if value is None:
        return "-"
    return str(int(value)) if float(value).is_integer() else str(value)


class Renderer:
    """CLI renderer using Rich for terminal output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console()
        self._prompt_session: PromptSession[str] | None = None

    def info(self, message: str) -> None:
        """Render an info message."""
        self.console.print(message)

    def error(self, message: str) -> None:
        """Render an error message."""
        self.console.print(f"[bold red]Error:[/bold red] {message}")

    def welcome(self, url: str) -> None:
        self.console.print("[bold blue]Invoice Chat Assistant[/bold blue]")
        self.console.print(f"[dim]Endpoint:[/dim] [cyan]{url}[/cyan]")
        self.console.print(f"[dim]{EMPTY_STATE_HINT}[/dim]")

    def assistant_text(self, message: str) -> Text:
        text = Text()
        text.append("Assistant: ", style="bold yellow")
        text.append(message)
        return text

    def assistant_message(self, message: str) -> None:
        """Render a finished assistant message."""
        self.console.print(self.assistant_text(message))

    def structured_result(self, result: StructuredResult) -> None:
        """Render a delivered invoice result in the side panel."""
        if isinstance(result, InvoiceList):
            self.console.print(self.invoice_table(result))
            return
        self.console.print(self.invoice_card(result))

    def invoice_table(self, invoices: InvoiceList) -> Table:
        table = Table(title=f"Invoices ({len(invoices)})", title_style="bold")
        table.add_column("Invoice #")
        table.add_column("Date")
        table.add_column("Due")
        table.add_column("Customer")
        table.add_column("Total", justify="right")
        table.add_column("Balance", justify="right")
        for invoice in invoices:
            table.add_row(
                invoice.number,
                invoice.txn_date or "-",
                invoice.due_date or "-",
                invoice.customer_name,
                _money(invoice.total_amount),
                _money(invoice.balance),
            )
        return table

    def invoice_card(self, invoice: InvoiceRecord) -> Panel:
        header = Text()
        header.append("Invoice # ", style="bold")
        header.append(invoice.number)
        if invoice.id:
            header.append(f"  (Internal Id: {invoice.id})", style="dim")
        details = Text()
        details.append("Date: ", style="bold")
        details.append(invoice.txn_date or "-")
        if invoice.due_date:
            details.append("  Due: ", style="bold")
            details.append(invoice.due_date)
        details.append("\nCustomer: ", style="bold")
        details.append(invoice.customer_name)
        details.append("\nTotal: ", style="bold")
        details.append(_money(invoice.total_amount))
        if invoice.balance is not None:
            details.append("  Balance: ", style="bold")
            details.append(_money(invoice.balance))

        parts: list[Text | Table] = [header, details]
        if invoice.lines:
            lines = Table(show_edge=False, box=None, pad_edge=False)
            lines.add_column("Item")
            lines.add_column("Qty", justify="right")
            lines.add_column("Unit", justify="right")
            lines.add_column("Amount", justify="right")
            for line in invoice.lines:
                detail = line.sales_item
                lines.add_row(
                    line.label,
                    _quantity(detail.qty if detail else None),
                    _money(detail.unit_price if detail else None),
                    _money(line.amount),
                )
            parts.append(lines)
        return Panel(Group(*parts), title="Invoice", border_style="blue")

    async def get_user_input(self) -> str:
        """Prompt user for input without blocking the event loop."""
        if self._prompt_session is None:
            self._prompt_session = PromptSession()
        with patch_stdout(raw=True):
            return await self._prompt_session.prompt_async("You: ")


class TranscriptView:
    """Print assistant turns as they are revealed, animating the in-progress one."""

    def __init__(self, renderer: Renderer) -> None:
        self._renderer = renderer
        self._live: Live | None = None
        self._printed = 0

    def attach(self, transcript: Transcript) -> None:
        self._printed = len(transcript)
        transcript.subscribe(self.on_change)

    def on_change(self, transcript: Transcript) -> None:
        turns = transcript.turns
        while self._printed < len(turns):
            turn = turns[self._printed]
            if turn.role == "user":
                self._printed += 1
                continue
            if turn.in_progress:
                self._show_partial(turn.text)
                return
            self._finish(turn.text)
            self._printed += 1
        if len(turns) < self._printed:
            self._printed = len(turns)

    def _show_partial(self, text: str) -> None:
        renderable = self._renderer.assistant_text(text)
        if self._live is None:
            self._live = Live(renderable, console=self._renderer.console, auto_refresh=False, transient=True)
            self._live.start()
        self._live.update(renderable, refresh=True)

    def _finish(self, text: str) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None
        self._renderer.assistant_message(text)
