"""Signing keys over heterogeneous key custodians."""

import abc
import hashlib
from typing import Protocol, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from ..exceptions import SigningBackendError
from ..models.algorithms import KeyAlgorithm, SignatureAlgorithm
from ..models.certificates import AuthorityReference


PrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]

RSA_PUBLIC_EXPONENT = 65537
RSA_MIN_KEY_SIZE = 1024

CURVES = {
    256: ec.SECP256R1,
    384: ec.SECP384R1,
    521: ec.SECP521R1,
}

HASHES = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}


def hash_for(algorithm: SignatureAlgorithm) -> hashes.HashAlgorithm:
    """cryptography hash instance for a generic signature identity."""
    return HASHES[algorithm.hash_name]()


class SigningKey(abc.ABC):
    """
    A key that can sign, wherever its material lives.

    identity() returns an opaque reference, never key material.
    """
    is_local = False

    @abc.abstractmethod
    def identity(self) -> str:
        """Opaque reference to the key."""

    @abc.abstractmethod
    def sign(self, data: bytes, algorithm: SignatureAlgorithm) -> bytes:
        """Sign data; raises SigningBackendError on custodian failure."""


class LocallyHeldKey(SigningKey):
    """Key generated and held in process memory for a single issuance."""
    is_local = True

    def __init__(self, private_key: PrivateKey):
        if isinstance(private_key, rsa.RSAPrivateKey):
            self.key_algorithm = KeyAlgorithm.RSA
        elif isinstance(private_key, ec.EllipticCurvePrivateKey):
            self.key_algorithm = KeyAlgorithm.ECDSA
        else:
            raise ValueError(f"Unsupported key type: {type(private_key).__name__}")
        self._private_key = private_key

    @classmethod
    def generate(cls, algorithm: KeyAlgorithm, key_size: int) -> "LocallyHeldKey":
        """
        Generate a new key pair.

        Args:
            algorithm: RSA or ECDSA
            key_size: Modulus size for RSA, curve size for ECDSA

        Returns:
            LocallyHeldKey wrapping the new private key
        """
        if algorithm == KeyAlgorithm.RSA:
            return cls(rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=key_size))
        if algorithm == KeyAlgorithm.ECDSA:
            if key_size not in CURVES:
                raise ValueError(f"No curve for ECDSA key size {key_size}")
            return cls(ec.generate_private_key(CURVES[key_size]()))
        raise ValueError(f"Cannot generate {algorithm.value} keys")

    @property
    def key_size(self) -> int:
        if isinstance(self._private_key, rsa.RSAPrivateKey):
            return self._private_key.key_size
        return self._private_key.curve.key_size

    def public_key(self):
        return self._private_key.public_key()

    def public_key_pem(self) -> str:
        return self.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode('utf-8')

    def private_key_pem(self) -> str:
        """PKCS#8 PEM of the private key, for return to the requester."""
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode('utf-8')

    def identity(self) -> str:
        der = self.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return f"local:sha256:{hashlib.sha256(der).hexdigest()}"

    def _check_algorithm(self, algorithm: SignatureAlgorithm):
        if algorithm == SignatureAlgorithm.SHA256_WITH_RSA_PSS:
            raise ValueError("RSA-PSS signatures are not supported")
        if algorithm.key_algorithm != self.key_algorithm:
            raise ValueError(
                f"{algorithm.value} cannot be produced by a {self.key_algorithm.value} key"
            )

    def sign(self, data: bytes, algorithm: SignatureAlgorithm) -> bytes:
        self._check_algorithm(algorithm)
        if self.key_algorithm == KeyAlgorithm.RSA:
            return self._private_key.sign(data, padding.PKCS1v15(), hash_for(algorithm))
        return self._private_key.sign(data, ec.ECDSA(hash_for(algorithm)))

    def sign_builder(
        self,
        builder: Union[x509.CertificateSigningRequestBuilder, x509.CertificateBuilder],
        algorithm: SignatureAlgorithm
    ):
        """Sign a CSR or certificate builder with this key."""
        self._check_algorithm(algorithm)
        return builder.sign(self._private_key, hash_for(algorithm))

    def __repr__(self) -> str:
        return f"LocallyHeldKey({self.key_algorithm.value}-{self.key_size}, {self.identity()})"


class CustodianClient(Protocol):
    """Network client for an external key custodian."""

    def sign(
        self,
        reference: AuthorityReference,
        data: bytes,
        algorithm: SignatureAlgorithm,
        timeout: float
    ) -> bytes:
        ...


class CustodianBackedKey(SigningKey):
    """
    Reference to key material held by an external custodian.

    Signing is delegated over the network and may block, fail transiently
    or require assuming a role. Raw key bytes never pass through here.
    """

    def __init__(self, reference: AuthorityReference, client: CustodianClient, timeout: float = 10.0):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.reference = reference
        self.timeout = timeout
        self._client = client

    def identity(self) -> str:
        return self.reference.authority_arn

    def sign(self, data: bytes, algorithm: SignatureAlgorithm) -> bytes:
        arn = self.reference.authority_arn
        # Client errors are rebuilt from the ARN and type only; they may echo payloads
        try:
            signature = self._client.sign(self.reference, data, algorithm, timeout=self.timeout)
        except SigningBackendError as e:
            raise SigningBackendError(
                f"Custodian {arn} failed to sign ({type(e).__name__})",
                retryable=e.retryable,
                cause_type=type(e).__name__,
            ) from None
        except (TimeoutError, ConnectionError) as e:
            raise SigningBackendError(
                f"Custodian {arn} unavailable ({type(e).__name__})",
                retryable=True,
                cause_type=type(e).__name__,
            ) from None
        except Exception as e:
            raise SigningBackendError(
                f"Custodian {arn} failed to sign ({type(e).__name__})",
                cause_type=type(e).__name__,
            ) from None

        if not signature:
            raise SigningBackendError(f"Custodian {arn} returned an empty signature")
        return signature

    def __repr__(self) -> str:
        return (
            f"CustodianBackedKey(authority_arn={self.reference.authority_arn!r}, "
            f"region={self.reference.region!r})"
        )
