"""
The ``send-tokens`` command.
"""
import logging
import sys
from typing import Optional

import typer

from send_tokens import __version__
from send_tokens.client import TokenSender
from send_tokens.exceptions import SendTokensError
from send_tokens.interaction import PromptConfig, TransferSummary
from send_tokens.models import TransferOptions

logger = logging.getLogger("send_tokens_cli")

app = typer.Typer(
    add_completion=False,
    help="Send ERC20 tokens from the command line.",
)


def should_use_color() -> bool:
    """Check if color output should be used"""
    return sys.stdout.isatty()


class ConsoleInteraction:
    """Terminal interaction using typer prompts and colored output."""

    def __init__(self, config: Optional[PromptConfig] = None, color: Optional[bool] = None,
                 interactive: Optional[bool] = None):
        self.config = config or PromptConfig()
        self.color = should_use_color() if color is None else color
        self._interactive = sys.stdin.isatty() if interactive is None else interactive

    @property
    def is_interactive(self) -> bool:
        return self._interactive

    def _style(self, text: str, fg: str) -> str:
        return typer.style(text, fg=fg, bold=True) if self.color else text

    def show_summary(self, summary: TransferSummary) -> None:
        typer.echo(f"Token: {self._style(summary.token, typer.colors.GREEN)}")
        typer.echo(
            f"{self._style(summary.sender, typer.colors.BLUE)} -> "
            f"{self._style(summary.display_amount, typer.colors.YELLOW)} "
            f"({summary.amount} base units) -> "
            f"{self._style(summary.to, typer.colors.BLUE)}"
        )
        if summary.log_id:
            typer.echo(f"Transfer id: {summary.log_id}")

    def show_pending(self, tx_id: str) -> None:
        typer.echo(f"Waiting for transaction {self._style(tx_id, typer.colors.GREEN)} to be mined...")

    def confirm(self, message: str) -> bool:
        if not self.is_interactive:
            return False
        return typer.confirm(message, default=False, prompt_suffix=self.config.delimiter)

    def prompt_secret(self, message: str) -> str:
        return typer.prompt(message, hide_input=True, prompt_suffix=self.config.delimiter)


def _version_callback(value: bool):
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.command()
def send(
    token: str = typer.Argument(..., help="Token contract address or ENS name"),
    to: str = typer.Argument(..., help="Recipient address or ENS name"),
    amount: str = typer.Argument(..., help="Amount to send, e.g. 1.5"),
    decimals: Optional[int] = typer.Option(
        None, "--decimals", "--base", "-d", "-b",
        help="Decimal places the amount is expressed in (e.g. 0 for base units). "
             "Defaults to the token's decimals()",
    ),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Sending wallet's private key"),
    key_file: Optional[str] = typer.Option(
        None, "--key-file", "-f", help="File containing the sending wallet's private key"
    ),
    keystore: Optional[str] = typer.Option(
        None, "--keystore", "-s", help="Sending wallet's V3 keystore file"
    ),
    password: Optional[str] = typer.Option(
        None, "--password", help="Keystore password (prompted for when omitted)"
    ),
    mnemonic: Optional[str] = typer.Option(
        None, "--mnemonic", "-m", help="Sending wallet's HD wallet phrase"
    ),
    mnemonic_index: int = typer.Option(
        0, "--mnemonic-index", help="Sending wallet's HD wallet account index"
    ),
    account: Optional[str] = typer.Option(
        None, "--account", "-a", help="Sending wallet's address (provider wallet)"
    ),
    confirmations: int = typer.Option(
        0, "--confirmations", "-c", help="Number of confirmations to wait for before returning"
    ),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Provider URI"),
    network: Optional[str] = typer.Option(None, "--network", "-n", help="Network name"),
    infura_key: Optional[str] = typer.Option(
        None, "--infura-key", envvar="INFURA_KEY", help="Infura project key for --network"
    ),
    gas_price: Optional[float] = typer.Option(
        None, "--gas-price", "-G", help="Explicit gas price, in gwei (e.g. 20)"
    ),
    log: Optional[str] = typer.Option(None, "--log", "-l", help="Append a JSON log to a file"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress the transfer summary"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable debug logging"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True,
        help="Show the version and exit",
    ),
):
    """
    Send AMOUNT of TOKEN to TO.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    interaction = ConsoleInteraction()

    def on_tx_id(tx_id: str) -> None:
        if not quiet:
            interaction.show_pending(tx_id)

    try:
        options = TransferOptions.parse(
            key=key,
            key_file=key_file,
            keystore_file=keystore,
            password=password,
            mnemonic=mnemonic,
            mnemonic_index=mnemonic_index,
            account=account,
            decimals=decimals,
            provider_uri=provider,
            network=network,
            infura_key=infura_key,
            gas_price=str(gas_price) if gas_price is not None else None,
            confirmations=confirmations,
            log=log,
            quiet=quiet,
            confirm=interaction.is_interactive and not yes,
            on_tx_id=on_tx_id,
        )
        receipt = TokenSender(interaction=interaction).send_tokens(token, to, amount, options)
    except SendTokensError as e:
        logger.debug("Transfer failed", exc_info=True)
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if receipt is None:
        typer.echo("Transfer cancelled.")
        return
    if not quiet:
        if receipt.mined:
            typer.echo(
                f"Mined in block {receipt.block_number} "
                f"(gas used: {receipt.gas_used}): {receipt.tx_hash}"
            )
        else:
            typer.echo(f"Submitted: {receipt.tx_hash}")


def main():
    app()


if __name__ == "__main__":
    main()
