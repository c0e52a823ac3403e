"""OAuth1 signature methods: HMAC-SHA1, RSA-SHA1 and PLAINTEXT."""

import base64
import binascii
import hashlib
import hmac
from abc import ABC, abstractmethod

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .encoding import percent_encode
from .exceptions import CryptoError


class SignatureMethod(ABC):
    """Computes and verifies signatures over a signature base string."""

    name: str

    @abstractmethod
    def calculate_signature(
        self,
        base_string: str,
        key_material: str,
        token_secret: str | None = None,
    ) -> str:
        """Sign a base string.

        Args:
            base_string: The signature base string.
            key_material: Consumer secret, or the encoded RSA private key.
            token_secret: Request or access token secret, if any.

        Returns:
            Base64-encoded signature.
        """

    @abstractmethod
    def verify_signature(
        self,
        base_string: str,
        key_material: str,
        token_secret: str | None,
        signature: str,
    ) -> bool:
        """Check a signature against a base string."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class HmacSha1(SignatureMethod):
    """HMAC-SHA1 keyed with ``consumer_secret&token_secret``."""

    name = "HMAC-SHA1"

    @staticmethod
    def signing_key(consumer_secret: str, token_secret: str | None = None) -> str:
        """Create the signing key (consumer_secret&token_secret).

        An absent token secret participates as an empty string.
        """
        return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"

    def calculate_signature(
        self,
        base_string: str,
        key_material: str,
        token_secret: str | None = None,
    ) -> str:
        signing_key = self.signing_key(key_material, token_secret)
        hashed = hmac.new(
            signing_key.encode("utf-8"),
            base_string.encode("utf-8"),
            hashlib.sha1,
        )
        return base64.b64encode(hashed.digest()).decode("utf-8")

    def verify_signature(
        self,
        base_string: str,
        key_material: str,
        token_secret: str | None,
        signature: str,
    ) -> bool:
        expected = self.calculate_signature(base_string, key_material, token_secret)
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


class PlainText(SignatureMethod):
    """PLAINTEXT: the signature is the signing key itself.

    Only safe over TLS.
    """

    name = "PLAINTEXT"

    def calculate_signature(
        self,
        base_string: str,
        key_material: str,
        token_secret: str | None = None,
    ) -> str:
        return HmacSha1.signing_key(key_material, token_secret)

    def verify_signature(
        self,
        base_string: str,
        key_material: str,
        token_secret: str | None,
        signature: str,
    ) -> bool:
        expected = self.calculate_signature(base_string, key_material, token_secret)
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


class RsaSha1(SignatureMethod):
    """RSA-SHA1 (PKCS#1 v1.5) using the ``cryptography`` library.

    Key material is either PEM text or base64-wrapped DER. Private keys may be
    PKCS#8 or PKCS#1; public keys SubjectPublicKeyInfo or PKCS#1. The token
    secret does not take part in RSA signatures.
    """

    name = "RSA-SHA1"

    @staticmethod
    def _is_pem(key_material: str) -> bool:
        return "-----BEGIN" in key_material

    @staticmethod
    def _decode_der(key_material: str) -> bytes:
        try:
            return base64.b64decode("".join(key_material.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise CryptoError(f"Key material is not valid base64: {e}") from e

    def load_private_key(self, key_material: str) -> rsa.RSAPrivateKey:
        """Load an RSA private key from PEM or base64 DER.

        Raises:
            CryptoError: If the key cannot be decoded or is not an RSA key.
        """
        if not isinstance(key_material, str) or not key_material.strip():
            raise CryptoError("RSA-SHA1 requires a private key")
        try:
            if self._is_pem(key_material):
                key = serialization.load_pem_private_key(
                    key_material.encode("utf-8"), password=None
                )
            else:
                key = serialization.load_der_private_key(
                    self._decode_der(key_material), password=None
                )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise CryptoError(f"Invalid RSA private key: {e}") from e

        if not isinstance(key, rsa.RSAPrivateKey):
            raise CryptoError(f"Expected an RSA private key, got {type(key).__name__}")
        return key

    def load_public_key(self, key_material: str) -> rsa.RSAPublicKey:
        """Load an RSA public key; a private key yields its public half.

        Raises:
            CryptoError: If the key cannot be decoded or is not an RSA key.
        """
        if not isinstance(key_material, str) or not key_material.strip():
            raise CryptoError("RSA-SHA1 verification requires a public key")
        if "PRIVATE KEY" in key_material:
            return self.load_private_key(key_material).public_key()
        try:
            if self._is_pem(key_material):
                key = serialization.load_pem_public_key(key_material.encode("utf-8"))
            else:
                der = self._decode_der(key_material)
                try:
                    key = serialization.load_der_public_key(der)
                except ValueError:
                    key = serialization.load_der_private_key(der, password=None).public_key()
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise CryptoError(f"Invalid RSA public key: {e}") from e

        if not isinstance(key, rsa.RSAPublicKey):
            raise CryptoError(f"Expected an RSA public key, got {type(key).__name__}")
        return key

    def calculate_signature(
        self,
        base_string: str,
        key_material: str,
        token_secret: str | None = None,
    ) -> str:
        private_key = self.load_private_key(key_material)
        try:
            signature = private_key.sign(
                base_string.encode("utf-8"),
                padding.PKCS1v15(),
                hashes.SHA1(),
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise CryptoError(f"RSA-SHA1 signing failed: {e}") from e
        return base64.b64encode(signature).decode("utf-8")

    def verify_signature(
        self,
        base_string: str,
        key_material: str,
        token_secret: str | None,
        signature: str,
    ) -> bool:
        public_key = self.load_public_key(key_material)
        try:
            signature_bytes = base64.b64decode(signature, validate=True)
        except (binascii.Error, ValueError):
            return False
        try:
            public_key.verify(
                signature_bytes,
                base_string.encode("utf-8"),
                padding.PKCS1v15(),
                hashes.SHA1(),
            )
        except InvalidSignature:
            return False
        except UnsupportedAlgorithm as e:
            raise CryptoError(f"RSA-SHA1 verification failed: {e}") from e
        return True


HMAC_SHA1 = HmacSha1()
RSA_SHA1 = RsaSha1()
PLAINTEXT = PlainText()

SIGNATURE_METHODS: dict[str, SignatureMethod] = {
    method.name: method for method in (HMAC_SHA1, RSA_SHA1, PLAINTEXT)
}


def get_signature_method(name: str | SignatureMethod) -> SignatureMethod:
    """Look up a signature method by its protocol name.

    Args:
        name: ``HMAC-SHA1``, ``RSA-SHA1`` or ``PLAINTEXT`` (case-insensitive),
            or an existing ``SignatureMethod`` which is returned as-is.

    Raises:
        CryptoError: If the method is not supported.
    """
    if isinstance(name, SignatureMethod):
        return name
    try:
        return SIGNATURE_METHODS[str(name).upper()]
    except KeyError:
        raise CryptoError(f"Unsupported signature method: {name}") from None
