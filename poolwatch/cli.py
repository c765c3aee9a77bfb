import asyncio
import json
import logging

import typer

from poolwatch.config.settings import HOST, LOG_LEVEL, PORT
from poolwatch.services import build_services
from poolwatch.sources.evm.client import NoRpcEndpointsError
from poolwatch.utils.log_utils import setup_logging

log = logging.getLogger(__name__)

app = typer.Typer(help="PancakeSwap V3 pool discovery and price cache")


def _services():
    try:
        return build_services()
    except NoRpcEndpointsError as e:
        log.critical(f"❌ {e}")
        raise typer.Exit(code=1)


@app.callback()
def configure(log_level: str = typer.Option(LOG_LEVEL, help="Root log level")):
    setup_logging(log_level)


@app.command("serve")
def serve(
    host: str = typer.Option(HOST, help="Bind address"),
    port: int = typer.Option(PORT, help="Bind port"),
):
    """
    Run the HTTP API; pools are refreshed at startup and on a fixed interval.
    """
    import uvicorn
    from poolwatch.main import create_app

    uvicorn.run(create_app(_services()), host=host, port=port, log_config=None)


@app.command("refresh")
def refresh():
    """Run one discovery pass and print the resulting pools as JSON."""
    services = _services()
    summary = asyncio.run(services.refresher.refresh())
    typer.echo(json.dumps({
        "summary": summary.to_dict() if summary else None,
        "pools": [record.to_dict() for record in services.cache.records()],
    }, indent=2))


@app.command("pool")
def pool(address: str = typer.Argument(..., help="Pool contract address (0x...)")):
    """Decode a single pool live from the chain."""
    services = _services()
    record = asyncio.run(services.decoder.fetch(address))
    if record is None:
        log.error(f"Pool not found: {address}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(record.to_dict(), indent=2))


def main():
    app()


if __name__ == "__main__":
    main()
