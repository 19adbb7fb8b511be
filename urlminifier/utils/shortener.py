"""Short code generation and custom alias validation

This module provides a pure, side-effect free generator for short codes derived
from a (long URL, owner) pair, and the syntax check applied to caller-requested
custom aliases.

Classes:
    CodeGenerator:
        Derive fixed-length Base62 short codes and validate custom aliases.

Example:
    >>> from urlminifier.utils.shortener import CodeGenerator
    >>> generator = CodeGenerator()
    >>> code = generator.derive_code('https://example.com', 'user-1')
    >>> len(code)
    7
    >>> generator.validate_alias('my-custom-url')
    'my-custom-url'
"""

import re
import hashlib

from beartype import beartype

from urlminifier.constants import Shortcode
from urlminifier.exceptions import InvalidAliasError


class CodeGenerator:
    """Derive deterministic short codes and validate custom aliases

    Methods:
        derive_code(long_url: str, owner_id: str, attempt: int = 0) -> str:
            Hash the URL and owner into a fixed-length code over the alphabet.

        validate_alias(alias: str) -> str:
            Return the alias if well-formed, raise InvalidAliasError otherwise.
    """

    @beartype
    def __init__(self, length: int = Shortcode.LENGTH, alphabet: str = Shortcode.ALPHABET):
        if length <= 0:
            raise ValueError(f'Code length must be a positive integer (given value: {length}).')
        if len(set(alphabet)) != len(alphabet) or len(alphabet) < 2:
            raise ValueError('Alphabet must contain at least two distinct, non-repeated symbols.')

        self.length = length
        self.alphabet = alphabet
        self.base = len(alphabet)
        self._alias_pattern = re.compile(Shortcode.ALIAS_PATTERN)

    @beartype
    def derive_code(self, long_url: str, owner_id: str, attempt: int = 0) -> str:
        """Derive a short code from a long URL and its owner.

        The same (long_url, owner_id, attempt) triple always yields the same code.
        Attempt 0 hashes `long_url + owner_id`; later attempts append `#<attempt>`
        to the hash input so a collision retry explores a new candidate.

        Args:
            long_url (str):
                The long URL being shortened.

            owner_id (str):
                Opaque identifier of the creating principal.

            attempt (int, optional):
                Zero-based collision retry index. Defaults to 0.

        Returns:
            str: A code of exactly `length` symbols from `alphabet`.

        Example:
            >>> generator = CodeGenerator()
            >>> generator.derive_code('https://example.com', 'user1') == generator.derive_code('https://example.com', 'user1')
            True
            >>> generator.derive_code('https://example.com', 'user1') != generator.derive_code('https://example.com', 'user1', attempt=1)
            True
        """
        if attempt < 0:
            raise ValueError(f'Attempt must be a non-negative integer (given value: {attempt}).')

        hasher = hashlib.sha256()
        hasher.update(long_url.encode('utf-8'))
        hasher.update(owner_id.encode('utf-8'))
        if attempt > 0:
            hasher.update(f'#{attempt}'.encode('utf-8'))
        digest = hasher.digest()

        # NOTE: codes are the first DIGEST_BYTES of the digest reduced modulo
        #       BASE^length, i.e. only the lowest `length` Base62 digits are kept.
        number = int.from_bytes(digest[: Shortcode.DIGEST_BYTES], 'big') % self.base**self.length

        # Base62 encoding:
        # 1- Encode the number into base62, least significant digit first
        # 2- Reverse the digits so the most significant one comes first (reversed())
        # 3- Join characters into a single string (''.join())
        # 4- Left-pad with the alphabet's zero symbol to a fixed length (rjust())
        # fmt: off
        return ''.join(reversed([self.alphabet[(number // self.base**i) % self.base] for i in range(self.length)])) \
                 .rjust(self.length, self.alphabet[0])
        # fmt: on

    @beartype
    def validate_alias(self, alias: str) -> str:
        """Validate the syntax of a custom alias

        Args:
            alias (str):
                Caller-requested short code.

        Returns:
            str: the unchanged alias.

        Raises:
            InvalidAliasError:
                If the alias is not 3-32 symbols of [0-9A-Za-z_-].
        """
        if not Shortcode.ALIAS_MIN_LENGTH <= len(alias) <= Shortcode.ALIAS_MAX_LENGTH:
            raise InvalidAliasError(
                f'Invalid alias {alias!r} (length must be between {Shortcode.ALIAS_MIN_LENGTH} and {Shortcode.ALIAS_MAX_LENGTH}).'
            )
        if self._alias_pattern.fullmatch(alias) is None:
            raise InvalidAliasError(f'Invalid alias {alias!r} (allowed characters: 0-9, A-Z, a-z, "_" and "-").')
        return alias
