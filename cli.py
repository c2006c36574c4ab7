# cli.py
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, Prompt
from rich.table import Table

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from catalog.models import Category, SortOrder
from sdk.catalog_client import CatalogClient
from sdk.views import CLIENT_ERRORS, LISTING_ROUTE, CreationView, ListingView

console = Console()

CATEGORY_LABELS = {
    Category.MOST_VIEWED.value: "🔥 Most Viewed",
    Category.MOST_POPULAR.value: "⭐ Most Popular",
    Category.MOST_REVIEWED.value: "💬 Most Reviewed",
}
SORT_LABELS = {
    SortOrder.DESC.value: "⬇️ Newest First",
    SortOrder.ASC.value: "⬆️ Oldest First",
}

# Custom prompt style for prompt_toolkit
custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def _price(value: Any) -> str:
    if value is None:
        return "-"
    try:
        return f"${float(value):.2f}"
    except (TypeError, ValueError):
        return str(value)


def show_products(products: List[Dict[str, Any]], title: str = "🛒 Product Listing"):
    if not products:
        console.print("[italic yellow]No products found.[/italic yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("Name", style="bold", width=24)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Category", width=16)
    table.add_column("Views", justify="right", width=7)
    table.add_column("Reviews", justify="right", width=8)
    table.add_column("Added", style="dim", width=20)

    for p in products:
        table.add_row(
            str(p.get("name") or "N/A"),
            _price(p.get("price")),
            CATEGORY_LABELS.get(p.get("category"), str(p.get("category") or "N/A")),
            str(p.get("views", 0)),
            str(p.get("reviews", 0)),
            str(p.get("createdAt", ""))[:19].replace("T", " "),
        )
    console.print(table)


def show_filters(view: ListingView):
    max_price = view.max_price if str(view.max_price).strip() else "any"
    console.print(
        f"[bold]Category:[/bold] {CATEGORY_LABELS.get(view.category, view.category)}   "
        f"[bold]Sort:[/bold] {SORT_LABELS.get(view.sort, view.sort)}   "
        f"[bold]Max price:[/bold] {max_price}"
    )


def show_pagination(view: ListingView):
    prev_style = "cyan" if view.can_previous else "dim strike"
    next_style = "cyan" if view.can_next else "dim strike"
    console.print(
        f"[{prev_style}]⬅️ Previous[/{prev_style}]   "
        f"[bold]Page {view.page} of {view.total_pages}[/bold]   "
        f"[{next_style}]Next ➡️[/{next_style}]"
    )


def show_listing(view: ListingView):
    show_filters(view)
    if view.error:
        console.print(show_status(view.error, False))
    show_products(view.products)
    show_pagination(view)


def show_categorized(summary: Dict[str, Any]):
    for key, title in (("mostViewed", "🔥 Most Viewed"),
                       ("mostPopular", "⭐ Most Popular"),
                       ("mostReviewed", "💬 Most Reviewed")):
        show_products(summary.get(key, []), title=title)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🛍️ Product Catalog",
        "[bold blue]Listing & Catalog Management[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Spinner wrapper
# ---------------------------
def with_spinner(fn, *args, **kwargs):
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
    ) as progress:
        progress.add_task(description="Processing...", total=None)
        return fn(*args, **kwargs)


# ---------------------------
# Input helpers with autocomplete
# ---------------------------
def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_choice(message: str, labels: Dict[str, str], default: str) -> str:
    for key, label in labels.items():
        console.print(f"  [cyan]{key}[/cyan]  {label}")
    while True:
        value = prompt_with_autocomplete(message, completer=WordCompleter(list(labels)), default=default).strip()
        if value in labels:
            return value
        console.print(f"[red]Choose one of: {', '.join(labels)}[/red]")


# ---------------------------
# Creation screen
# ---------------------------
def add_product_screen(client: CatalogClient) -> Optional[str]:
    view = CreationView(client)
    console.print(Panel.fit("[bold]➕ Add New Product[/bold]", border_style="green"))

    view.change("name", prompt_with_autocomplete("📌 Product name"))
    view.change("price", Prompt.ask("💰 Price", default=""))
    view.change("category", ask_choice("📂 Category", CATEGORY_LABELS, view.draft["category"]))

    while True:
        if not Confirm.ask("✅ Add product? (no = 🔙 cancel)", default=True):
            return view.cancel()
        route = with_spinner(view.submit)
        if route == LISTING_ROUTE:
            console.print(show_status(f"Product '{view.draft['name']}' added", True))
            return route
        # the form keeps its values for another try
        console.print(show_status(view.error, False))


# ---------------------------
# Main menu
# ---------------------------
def menu(client: CatalogClient):
    view = ListingView(client)

    console.clear()
    console.print(create_header())
    try:
        with_spinner(client.health)
    except CLIENT_ERRORS as e:
        console.print(show_status(f"API unreachable at {client.base_url}: {e}", False))
    with_spinner(view.refresh)

    while True:
        show_listing(view)

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "🔄 Reload page", "5", "➡️ Next page"),
            ("2", "📂 Change category", "6", "⬅️ Previous page"),
            ("3", "↕️ Change sort order", "7", "➕ Add product"),
            ("4", "💰 Set max price", "8", "🏆 Top products"),
            ("", "", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 9)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            with_spinner(view.refresh)

        elif choice == "2":
            category = ask_choice("Category", CATEGORY_LABELS, view.category)
            with_spinner(view.update, category=category)

        elif choice == "3":
            sort = ask_choice("Sort", SORT_LABELS, view.sort)
            with_spinner(view.update, sort=sort)

        elif choice == "4":
            max_price = Prompt.ask("💰 Max price (blank for any)", default="").strip()
            with_spinner(view.update, max_price=max_price)

        elif choice == "5":
            if not with_spinner(view.next_page) and not view.can_next:
                console.print("[yellow]Already on the last page[/yellow]")

        elif choice == "6":
            if not with_spinner(view.previous_page) and not view.can_previous:
                console.print("[yellow]Already on the first page[/yellow]")

        elif choice == "7":
            if add_product_screen(client) == LISTING_ROUTE:
                with_spinner(view.refresh)

        elif choice == "8":
            try:
                show_categorized(with_spinner(client.categorized_products))
            except CLIENT_ERRORS:
                console.print(show_status("Failed to load top products. Try again.", False))

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Goodbye! 👋[/bold green]", title="Goodbye"))
                return

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu(CatalogClient())
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
