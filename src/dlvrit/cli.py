"""Typer CLI for the DLVRIT backend."""

import typer
from rich.console import Console

app = typer.Typer(name="dlvrit", help="DLVRIT backend: checkout, upload provisioning and email")
console = Console()


def format_amount(amount: int, currency: str) -> str:
    return f"{amount / 100:,.2f} {currency.upper()}"


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(None, help="Bind port (defaults to DLVRIT_PORT)"),
):
    """Start the DLVRIT API server."""
    import uvicorn
    from dlvrit.app import create_app
    from dlvrit.common.config import get_settings

    port = port or get_settings().port
    console.print(f"[bold green]Starting DLVRIT backend on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def quote(
    quantity: int = typer.Argument(..., help="Number of minutes"),
    unit_amount: int = typer.Option(None, help="Minor units per minute (defaults to DLVRIT_UNIT_AMOUNT)"),
    currency: str = typer.Option(None, help="Currency code (defaults to DLVRIT_CURRENCY)"),
):
    """Print the flat-rate price for a number of minutes."""
    from dlvrit.common.config import get_settings
    from dlvrit.common.exceptions import DlvritError
    from dlvrit.payments.pricing import quote as price_quote

    settings = get_settings()
    try:
        result = price_quote(
            quantity,
            unit_amount if unit_amount is not None else settings.unit_amount,
            currency or settings.currency,
        )
    except DlvritError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)

    console.print(
        f"{result.quantity} min x {format_amount(result.unit_amount, result.currency)} = "
        f"[bold]{format_amount(result.total, result.currency)}[/bold] ({result.total} minor units)"
    )


@app.command("portal-url")
def portal_url(
    project: str = typer.Argument(..., help="Project name"),
    email: str = typer.Argument(..., help="Customer email"),
    host: str = typer.Option(None, help="Portal host (defaults to DLVRIT_MASSIVE_PORTAL_URL)"),
):
    """Print the static-portal upload link for a project."""
    from dlvrit.common.config import get_settings
    from dlvrit.transfer.provisioner import StaticPortalProvisioner

    host = host or get_settings().massive_portal_url
    if not host:
        console.print("[bold red]No portal host configured[/bold red]")
        raise typer.Exit(1)
    console.print(StaticPortalProvisioner(host).build_url(email, project))


@app.command("validate-promo")
def validate_promo(
    code: str = typer.Argument(..., help="Promo code to check"),
    url: str = typer.Option("http://localhost:3000", help="Server URL"),
):
    """Check a promo code against a running server."""
    from dlvrit.client import CheckoutClient

    with CheckoutClient(url) as client:
        result = client.validate_promo_code(code)

    if result.error:
        console.print(f"[bold red]Error:[/bold red] {result.error}")
        raise typer.Exit(1)
    if not result.valid:
        console.print(f"[bold red]NOT VALID[/bold red] — {code}")
        raise typer.Exit(1)
    console.print(
        f"[bold green]VALID[/bold green] — percent_off={result.percent_off} amount_off={result.amount_off}"
    )


@app.command()
def health(
    url: str = typer.Option("http://localhost:3000", help="Server URL"),
):
    """Check DLVRIT server health."""
    from dlvrit.client import CheckoutClient

    with CheckoutClient(url, timeout=5) as client:
        data = client.health()

    if data.get("status") != "ok":
        console.print(f"[bold red]Error:[/bold red] {data.get('error', 'unhealthy')}")
        raise typer.Exit(1)
    console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")


if __name__ == "__main__":
    app()
