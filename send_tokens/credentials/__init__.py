"""
Credential resolution for send-tokens.

A credential is either a private key with its derived address, a bare address
whose signing is left to the provider, or nothing at all.
"""
import logging
from typing import TYPE_CHECKING, List, Optional

from ..addresses import short_address
from ..interaction import Interaction
from .sources import (
    AccountSource, CredentialSource, FileReader, KeyFileSource, KeySource,
    KeystoreSource, MnemonicSource, normalize_key, read_text_file,
)
from .types import AddressCredential, Credential, EmptyCredential, KeyCredential

if TYPE_CHECKING:
    from ..models import TransferOptions

__all__ = [
    'Credential',
    'KeyCredential',
    'AddressCredential',
    'EmptyCredential',
    'CredentialSource',
    'default_sources',
    'resolve_credential',
    'normalize_key',
]

logger = logging.getLogger(__name__)


def default_sources(
    interaction: Optional[Interaction] = None,
    read_file: FileReader = read_text_file,
) -> List[CredentialSource]:
    """The credential sources in precedence order."""
    return [
        KeySource(),
        KeyFileSource(read_file),
        KeystoreSource(read_file, interaction),
        MnemonicSource(),
        AccountSource(),
    ]


def resolve_credential(
    options: "TransferOptions",
    interaction: Optional[Interaction] = None,
    read_file: FileReader = read_text_file,
    sources: Optional[List[CredentialSource]] = None,
) -> Credential:
    """
    Resolve the sending credential from transfer options.

    The first source that applies wins; later sources are not consulted even
    if they are also configured.

    Args:
        options: Transfer options
        interaction: Used to prompt for a missing keystore password
        read_file: Reader for key and keystore files
        sources: Override the default source chain

    Returns:
        The resolved credential, ``EmptyCredential`` if nothing is configured

    Raises:
        CredentialError: If the selected source fails
        InvalidAddress: If an explicit sender address is malformed
    """
    for source in sources if sources is not None else default_sources(interaction, read_file):
        if source.applies(options):
            credential = source.resolve(options)
            logger.debug("Resolved sender %s from %s",
                         short_address(credential.address), source.name)
            return credential
    return EmptyCredential()
