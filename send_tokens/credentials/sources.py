"""
Credential sources, tried in a fixed order until one applies.
"""
import json
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union

from eth_account import Account
from eth_utils import ValidationError as EthValidationError

from ..addresses import checksum_or_name, is_literal_address, short_address
from ..exceptions import (
    DecryptionFailed, InvalidAddress, InvalidKey, InvalidMnemonic, MissingPassword
)
from ..interaction import Interaction
from .types import AddressCredential, Credential, KeyCredential

if TYPE_CHECKING:
    from ..models import TransferOptions

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
HD_PATH_TEMPLATE = "m/44'/60'/0'/0/{index}"

FileReader = Callable[[str], str]


def read_text_file(path: str) -> str:
    return Path(path).expanduser().read_text(encoding="utf-8")


def normalize_key(key: str) -> str:
    """
    Validate a raw private key and return it 0x-prefixed.

    Raises:
        InvalidKey: If the key is not 64 hex characters
    """
    if not isinstance(key, str):
        raise InvalidKey()
    key = key.strip()
    if not KEY_PATTERN.match(key):
        raise InvalidKey()
    return key if key.startswith("0x") else "0x" + key


class CredentialSource:
    """Base class for a single way of obtaining the sending account."""
    name = "none"

    def applies(self, options: "TransferOptions") -> bool:
        raise NotImplementedError

    def resolve(self, options: "TransferOptions") -> Credential:
        raise NotImplementedError


class KeySource(CredentialSource):
    name = "key"

    def applies(self, options: "TransferOptions") -> bool:
        return bool(options.key)

    def resolve(self, options: "TransferOptions") -> Credential:
        return KeyCredential.from_key(normalize_key(options.key), source=self.name)


class KeyFileSource(CredentialSource):
    name = "key_file"

    def __init__(self, read_file: FileReader = read_text_file):
        self.read_file = read_file

    def applies(self, options: "TransferOptions") -> bool:
        return bool(options.key_file)

    def resolve(self, options: "TransferOptions") -> Credential:
        try:
            text = self.read_file(options.key_file)
        except OSError as e:
            raise InvalidKey(f"Cannot read key file {options.key_file}: {e.strerror or e}") from e
        key = normalize_key(text)
        return KeyCredential.from_key(key, source=self.name)


class KeystoreSource(CredentialSource):
    """Decrypts a V3 keystore given inline or as a file path."""
    name = "keystore"

    def __init__(
        self,
        read_file: FileReader = read_text_file,
        interaction: Optional[Interaction] = None,
    ):
        self.read_file = read_file
        self.interaction = interaction

    def applies(self, options: "TransferOptions") -> bool:
        return options.keystore is not None or bool(options.keystore_file)

    def _read(self, path: str) -> str:
        try:
            return self.read_file(path)
        except OSError as e:
            raise DecryptionFailed(f"Cannot read keystore file {path}: {e.strerror or e}") from e

    def _load(self, options: "TransferOptions") -> Union[Dict[str, Any], str]:
        if options.keystore_file:
            return self._read(options.keystore_file)
        keystore = options.keystore
        if isinstance(keystore, str) and not keystore.lstrip().startswith("{"):
            # Not inline JSON, so a path
            return self._read(keystore)
        return keystore

    def _password(self, options: "TransferOptions") -> str:
        if options.password:
            return options.password
        if self.interaction is not None and self.interaction.is_interactive:
            config = self.interaction.config
            password = self.interaction.prompt_secret(config.password_message)
            if password:
                return password
        raise MissingPassword()

    def resolve(self, options: "TransferOptions") -> Credential:
        keystore = self._load(options)
        password = self._password(options)
        try:
            if isinstance(keystore, str):
                keystore = json.loads(keystore)
            key = Account.decrypt(keystore, password)
        except (ValueError, KeyError, TypeError) as e:
            # Wrong passwords surface as a MAC mismatch ValueError
            raise DecryptionFailed(f"Unable to decrypt keystore: {e}") from e
        return KeyCredential.from_key("0x" + bytes(key).hex(), source=self.name)


class MnemonicSource(CredentialSource):
    """Derives the key at m/44'/60'/0'/0/{index} from a BIP-39 phrase."""
    name = "mnemonic"

    def applies(self, options: "TransferOptions") -> bool:
        return bool(options.mnemonic and options.mnemonic.strip())

    def resolve(self, options: "TransferOptions") -> Credential:
        phrase = " ".join(options.mnemonic.split())
        path = HD_PATH_TEMPLATE.format(index=options.mnemonic_index)
        Account.enable_unaudited_hdwallet_features()
        try:
            account = Account.from_mnemonic(phrase, account_path=path)
        except (EthValidationError, ValueError) as e:
            raise InvalidMnemonic(f"Invalid mnemonic: {e}") from e
        logger.debug("Derived account %s at %s", short_address(account.address), path)
        return KeyCredential(key="0x" + bytes(account.key).hex(), address=account.address,
                             source=self.name)


class AccountSource(CredentialSource):
    """An explicit sender address; signing happens in the provider."""
    name = "account"

    def applies(self, options: "TransferOptions") -> bool:
        return bool(options.sender_address)

    def resolve(self, options: "TransferOptions") -> Credential:
        address = options.sender_address
        if not is_literal_address(address):
            raise InvalidAddress(address)
        return AddressCredential(address=checksum_or_name(address), source=self.name)
