"""
TokenSender - sends ERC20 tokens.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, Union

from .addresses import short_address, validate_address
from .credentials import EmptyCredential, AddressCredential, resolve_credential
from .credentials.sources import FileReader, read_text_file
from .exceptions import InsufficientBalance, LedgerClientError, NoSender
from .interaction import Interaction, NonInteractive, TransferSummary
from .ledger import LedgerClient, Web3LedgerClient
from .models import ResolvedTransfer, TransferOptions, TxReceipt
from .transfer_log import JsonLineLogger, make_log_id
from .units import Amount, gwei_to_wei, parse_amount, to_base_units

Options = Union[TransferOptions, Dict[str, Any], None]


class TokenSender:
    """
    Sends ERC20 tokens from one account to another.

    This sender handles:
    1. Validating addresses, amounts and options
    2. Resolving the sending account from a key, key file, keystore,
       mnemonic, explicit address or the provider's default account
    3. Converting the amount to base units using the token's decimals
    4. Submitting the transfer and waiting for confirmations
    5. Appending the result to a JSON-lines log
    """

    def __init__(
        self,
        ledger: Optional[LedgerClient] = None,
        interaction: Optional[Interaction] = None,
        read_file: FileReader = read_text_file,
        ledger_factory: Callable[[TransferOptions], LedgerClient] = Web3LedgerClient.from_options,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the TokenSender

        Args:
            ledger: Ledger client to use for every transfer; when omitted a
                new one is built per transfer with ``ledger_factory``
            interaction: Prompting and display; defaults to ``NonInteractive``
            read_file: Reader for key and keystore files
            ledger_factory: Builds a ledger client from transfer options
            logger: Optional logger instance to use for debug/info logging
        """
        self.ledger = ledger
        self.interaction = interaction or NonInteractive()
        self.read_file = read_file
        self.ledger_factory = ledger_factory
        self.logger = logger or logging.getLogger(__name__)

    def resolve(
        self,
        token: str,
        to: str,
        amount: Amount,
        options: TransferOptions,
        ledger: LedgerClient,
    ) -> ResolvedTransfer:
        """
        Validate and normalize a transfer without submitting it.

        Raises:
            InvalidAddress: If ``token`` or ``to`` is malformed
            InvalidAmount: If ``amount`` is malformed
            CredentialError: If the configured credential cannot be used
            NoSender: If no account to send from exists
        """
        token = validate_address(token)
        to = validate_address(to)
        parse_amount(amount)
        # decimals range is enforced by TransferOptions

        credential = resolve_credential(options, self.interaction, self.read_file)
        if isinstance(credential, EmptyCredential):
            default = ledger.get_default_account()
            if not default:
                raise NoSender()
            credential = AddressCredential(address=default, source="default")
            self.logger.debug("Using provider default account %s", short_address(default))

        decimals = options.decimals
        if decimals is None:
            decimals = self._token_decimals(ledger, token)

        return ResolvedTransfer(
            token=token,
            to=to,
            amount=int(to_base_units(amount, decimals)),
            decimals=decimals,
            credential=credential,
            gas_price=gwei_to_wei(options.gas_price) if options.gas_price is not None else None,
        )

    def _token_decimals(self, ledger: LedgerClient, token: str) -> int:
        try:
            return ledger.get_decimals(token)
        except LedgerClientError as e:
            # Amounts for tokens without decimals() are taken as base units
            self.logger.warning(
                "Could not read decimals of token %s, assuming 0: %s", token, e
            )
            return 0

    def send_tokens(
        self,
        token: str,
        to: str,
        amount: Amount,
        options: Options = None,
        **kwargs,
    ) -> Optional[TxReceipt]:
        """
        Send ``amount`` of ``token`` to ``to``.

        Args:
            token: Token contract address or ENS name
            to: Recipient address or ENS name
            amount: Human-readable amount, scaled by the token's decimals
                (or the ``decimals`` option)
            options: ``TransferOptions`` or a mapping of option names
            **kwargs: Additional option values

        Returns:
            The transaction receipt, or None if the user declined to proceed

        Raises:
            ValidationError: If an address, amount or option is invalid
            CredentialError: If the sending credential cannot be resolved
            NoSender: If there is no account to send from
            InsufficientBalance: If the sender holds fewer tokens than requested
            LedgerClientError: If the blockchain client fails
        """
        # Validation happens before any ledger call
        validate_address(token)
        validate_address(to)
        parse_amount(amount)
        options = TransferOptions.parse(options, **kwargs)

        ledger = self.ledger or self.ledger_factory(options)
        transfer = self.resolve(token, to, amount, options, ledger)
        log_id = make_log_id(
            time=int(time.time() * 1000),
            token=transfer.token,
            to=transfer.to,
            from_address=transfer.sender,
            amount=transfer.amount,
        )

        summary = TransferSummary(
            token=transfer.token,
            sender=transfer.sender,
            to=transfer.to,
            amount=transfer.amount,
            decimals=transfer.decimals,
            log_id=log_id,
        )
        if not options.quiet:
            self.interaction.show_summary(summary)
        if options.confirm:
            if not self.interaction.confirm(self.interaction.config.confirm_message):
                self.logger.info("Transfer declined by user")
                return None

        balance = ledger.get_balance(transfer.token, transfer.sender)
        if balance < transfer.amount:
            raise InsufficientBalance(balance, transfer.amount)

        credential = transfer.credential
        if credential.signs_locally:
            handle = ledger.transfer(transfer.token, transfer.to, transfer.amount,
                                     key=credential.key, gas_price=transfer.gas_price)
        else:
            handle = ledger.transfer(transfer.token, transfer.to, transfer.amount,
                                     sender=credential.address, gas_price=transfer.gas_price)

        tx_id = handle.tx_id
        self.logger.info("Submitted transfer of %s to %s: %s",
                         transfer.amount, short_address(transfer.to), tx_id)
        if options.on_tx_id is not None:
            options.on_tx_id(tx_id)

        receipt = handle.confirmed(options.confirmations)

        if options.log:
            # Already submitted, so the receipt is returned regardless
            try:
                JsonLineLogger(options.log, log_id).write({
                    "from": transfer.sender,
                    "amount": str(transfer.amount),
                    "token": transfer.token,
                    "to": transfer.to,
                    "txId": tx_id,
                    "gas": receipt.gas_used,
                    "block": receipt.block_number,
                })
            except OSError as e:
                self.logger.warning("Could not append transfer %s to log %s: %s", tx_id, options.log, e)
        return receipt


def send_tokens(
    token: str,
    to: str,
    amount: Amount,
    options: Options = None,
    ledger: Optional[LedgerClient] = None,
    interaction: Optional[Interaction] = None,
    **kwargs,
) -> Optional[TxReceipt]:
    """Send tokens with a one-off ``TokenSender``. See ``TokenSender.send_tokens``."""
    sender = TokenSender(ledger=ledger, interaction=interaction)
    return sender.send_tokens(token, to, amount, options, **kwargs)
