"""
Data models for send-tokens.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator, model_validator

from .credentials.types import Credential
from .exceptions import InvalidDecimals, InvalidOptions

MAX_DECIMALS = 256


class TransferOptions(BaseModel):
    """
    Configuration for a single token transfer.

    Credential sources are consulted in a fixed order: ``key``, ``key_file``,
    ``keystore``/``keystore_file``, ``mnemonic``, then ``account``/``from``.
    With none of them set the provider's default account is used.
    """
    key: Optional[str] = None
    key_file: Optional[str] = Field(None, validation_alias=AliasChoices("key_file", "keyFile"))
    keystore: Optional[Union[Dict[str, Any], str]] = None
    keystore_file: Optional[str] = Field(
        None, validation_alias=AliasChoices("keystore_file", "keystoreFile")
    )
    password: Optional[str] = None
    mnemonic: Optional[str] = None
    mnemonic_index: int = Field(
        0, ge=0, validation_alias=AliasChoices("mnemonic_index", "mnemonicIndex")
    )
    account: Optional[str] = None
    from_address: Optional[str] = Field(
        None, validation_alias=AliasChoices("from_address", "from")
    )

    decimals: Optional[int] = None

    provider_uri: Optional[str] = Field(
        None, validation_alias=AliasChoices("provider_uri", "providerURI", "provider")
    )
    network: Optional[str] = None
    infura_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("infura_key", "infuraKey")
    )
    gas_price: Optional[Decimal] = Field(
        None, ge=0, validation_alias=AliasChoices("gas_price", "gasPrice")
    )
    confirmations: int = Field(0, ge=0)

    log: Optional[str] = None
    quiet: bool = False
    confirm: bool = False
    on_tx_id: Optional[Callable[[str], Any]] = Field(
        None, validation_alias=AliasChoices("on_tx_id", "onTxId")
    )

    class Config:
        extra = "forbid"
        frozen = True

    @field_validator("decimals", mode="before")
    @classmethod
    def _reject_bool_decimals(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("decimals must be an integer")
        return value

    @field_validator("decimals")
    @classmethod
    def _check_decimals(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and not 0 <= value < MAX_DECIMALS:
            raise ValueError(f"decimals must be in [0, {MAX_DECIMALS})")
        return value

    @model_validator(mode="after")
    def _check_conflicts(self) -> "TransferOptions":
        if self.keystore is not None and self.keystore_file is not None:
            raise ValueError("keystore and keystore_file are mutually exclusive")
        if (
            self.account is not None
            and self.from_address is not None
            and self.account.lower() != self.from_address.lower()
        ):
            raise ValueError("account and from name different senders")
        return self

    @property
    def sender_address(self) -> Optional[str]:
        return self.account or self.from_address

    @classmethod
    def parse(cls, options: Union["TransferOptions", Dict[str, Any], None] = None,
              **kwargs) -> "TransferOptions":
        """
        Build options from a mapping and/or keyword arguments.

        Raises:
            InvalidDecimals: If the decimals override is out of range
            InvalidOptions: For any other rejected field or combination
        """
        if isinstance(options, cls) and not kwargs:
            return options
        data: Dict[str, Any] = {}
        if isinstance(options, cls):
            data.update(options.model_dump(exclude_unset=True))
        elif options:
            data.update(options)
        data.update(kwargs)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            for error in e.errors():
                if error["loc"] and error["loc"][0] == "decimals":
                    raise InvalidDecimals(data.get("decimals")) from e
            raise InvalidOptions(f"Invalid options: {e}") from e


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: Optional[int] = Field(None, alias="blockNumber")
    block_hash: Optional[str] = Field(None, alias="blockHash")
    status: Optional[int] = None
    gas_used: Optional[int] = Field(None, alias="gasUsed")
    from_address: Optional[str] = Field(None, alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @property
    def mined(self) -> bool:
        return self.block_number is not None

    @classmethod
    def pending(cls, tx_hash: str) -> "TxReceipt":
        """Receipt for a transaction that has not been mined yet."""
        return cls(transactionHash=tx_hash)


class LogRecord(BaseModel):
    """One line of the append-only transfer log."""
    from_address: str = Field(..., alias="from")
    amount: str
    token: str
    to: str
    tx_id: str = Field(..., alias="txId")
    gas: Optional[int] = None
    block: Optional[int] = None
    time: int
    id: str

    class Config:
        populate_by_name = True

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


@dataclass(frozen=True)
class ResolvedTransfer:
    """A transfer request after validation and normalization."""
    token: str
    to: str
    amount: int
    decimals: int
    credential: Credential
    gas_price: Optional[int] = None

    @property
    def sender(self) -> str:
        return self.credential.address
