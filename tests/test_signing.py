"""Tests for signature base strings and signing providers."""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from oauthkit.parameters import OAuthParameters
from oauthkit.problems import ProblemType
from oauthkit.result import Err, Ok
from oauthkit.signing import (
    HmacSha1SigningProvider,
    PlaintextSigningProvider,
    RsaSha1SigningProvider,
    SigningProviderRegistry,
    build_base_string,
    normalize_url,
)
from oauthkit.provider import InboundRequest

PHOTOS_BASE_STRING = (
    "GET&http%3A%2F%2Fphotos.example.net%2Fphotos&file%3Dvacation.jpg%26"
    "oauth_consumer_key%3Ddpf43f3p2l4k3l03%26oauth_nonce%3Dkllo9940pd9333jh%26"
    "oauth_signature_method%3DHMAC-SHA1%26oauth_timestamp%3D1191242096%26"
    "oauth_token%3Dnnch734d00sl2jdk%26oauth_version%3D1.0%26size%3Doriginal"
)


def photos_parameters() -> OAuthParameters:
    return OAuthParameters(
        realm="http://photos.example.net/",
        consumer_key="dpf43f3p2l4k3l03",
        token="nnch734d00sl2jdk",
        token_secret="pfkkdhi9sl3r4s00",
        signature_method="HMAC-SHA1",
        signature="ignored",
        timestamp="1191242096",
        nonce="kllo9940pd9333jh",
        version="1.0",
        additional_parameters={"file": ["vacation.jpg"], "size": ["original"]},
    )


class TestBaseString:
    """Tests for signature base string construction."""

    def test_photos_example(self):
        """Realm, signature and token secret are excluded; the query string is stripped."""
        base_string = build_base_string(
            "get", "http://photos.example.net/photos?file=vacation.jpg&size=original", photos_parameters()
        )
        assert base_string == PHOTOS_BASE_STRING

    @pytest.mark.parametrize("url, expected", [
        ("HTTP://Example.COM/Path", "http://example.com/Path"),
        ("http://example.com:80/r", "http://example.com/r"),
        ("https://example.com:443/r", "https://example.com/r"),
        ("http://example.com:8080/r?x=1#frag", "http://example.com:8080/r"),
        ("https://example.com", "https://example.com/"),
    ])
    def test_normalize_url(self, url, expected):
        assert normalize_url(url) == expected

    def test_relative_url_is_a_programmer_error(self):
        with pytest.raises(ValueError):
            normalize_url("/photos")


class TestHmacSha1:
    """Tests for HMAC-SHA1."""

    def test_vectors(self):
        provider = HmacSha1SigningProvider()
        assert provider.compute_signature("bs", "cs", None) == "egQqG5AJep5sJ7anhXju1unge2I="
        assert provider.compute_signature("bs", "cs", "ts") == "VZVjXceV7JgPq/dOTnNmEfO0Fv8="

    def test_photos_example(self):
        provider = HmacSha1SigningProvider()
        signature = provider.compute_signature(PHOTOS_BASE_STRING, "kd94hf93k423kf44", "pfkkdhi9sl3r4s00")
        assert signature == "tR3+Ty81lMeYAr/Fid0kMTYa/WM="

    def test_deterministic_and_sensitive(self):
        """Same inputs give the same signature; any changed character changes it."""
        provider = HmacSha1SigningProvider()
        first = provider.compute_signature(PHOTOS_BASE_STRING, "kd94hf93k423kf44", "pfkkdhi9sl3r4s00")
        assert first == provider.compute_signature(PHOTOS_BASE_STRING, "kd94hf93k423kf44", "pfkkdhi9sl3r4s00")

        parameters = photos_parameters()
        parameters.additional_parameters["size"] = ["originaL"]
        altered = build_base_string("GET", "http://photos.example.net/photos", parameters)
        assert provider.compute_signature(altered, "kd94hf93k423kf44", "pfkkdhi9sl3r4s00") != first
        altered_method = build_base_string("POST", "http://photos.example.net/photos", photos_parameters())
        assert provider.compute_signature(altered_method, "kd94hf93k423kf44", "pfkkdhi9sl3r4s00") != first

    def test_verify(self):
        provider = HmacSha1SigningProvider()
        assert provider.verify_signature("bs", "VZVjXceV7JgPq/dOTnNmEfO0Fv8=", "cs", "ts")
        assert not provider.verify_signature("bs", "VZVjXceV7JgPq/dOTnNmEfO0Fv8=", "cs", "other")


class TestPlaintext:
    """Tests for PLAINTEXT."""

    def test_signature_is_the_key(self):
        provider = PlaintextSigningProvider()
        assert provider.compute_signature("ignored", "kd94hf93k423kf44", "pfkkdhi9sl3r4s00") == (
            "kd94hf93k423kf44&pfkkdhi9sl3r4s00"
        )
        assert provider.compute_signature("ignored", "c&s", None) == "c%26s&"

    def test_refuses_insecure_requests(self):
        provider = PlaintextSigningProvider(require_secure_connection=True)
        insecure = InboundRequest(method="GET", url="http://example.com/")
        secure = InboundRequest(method="GET", url="https://example.com/")
        assert provider.check_request(insecure).problem == ProblemType.SIGNATURE_METHOD_REJECTED
        assert provider.check_request(secure) is None
        assert PlaintextSigningProvider(require_secure_connection=False).check_request(insecure) is None


class TestRsaSha1:
    """Tests for RSA-SHA1."""

    @pytest.fixture(scope="class")
    def private_key_pem(self):
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        return key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )

    def test_sign_and_verify(self, private_key_pem):
        signer = RsaSha1SigningProvider(private_key_pem=private_key_pem)
        signature = signer.compute_signature(PHOTOS_BASE_STRING, "", None)
        assert signer.verify_signature(PHOTOS_BASE_STRING, signature, "", None)
        assert not signer.verify_signature(PHOTOS_BASE_STRING + "x", signature, "", None)

    def test_verify_with_public_key_only(self, private_key_pem):
        signer = RsaSha1SigningProvider(private_key_pem=private_key_pem)
        public_pem = serialization.load_pem_private_key(private_key_pem, password=None).public_key().public_bytes(
            serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
        )
        verifier = RsaSha1SigningProvider(public_key_pem=public_pem)
        signature = signer.compute_signature("base", "", None)
        assert verifier.verify_signature("base", signature, "", None)
        assert not verifier.verify_signature("base", "%%%not-base64", "", None)
        with pytest.raises(ValueError):
            verifier.compute_signature("base", "", None)

    def test_requires_a_key(self):
        with pytest.raises(ValueError):
            RsaSha1SigningProvider()


class TestRegistry:
    """Tests for SigningProviderRegistry."""

    def test_default_methods(self):
        registry = SigningProviderRegistry.default()
        assert registry.signature_methods == ["HMAC-SHA1", "PLAINTEXT"]
        assert "HMAC-SHA1" in registry

    def test_resolve(self):
        registry = SigningProviderRegistry.default()
        assert isinstance(registry.resolve("HMAC-SHA1"), Ok)
        result = registry.resolve("FOO")
        assert isinstance(result, Err)
        assert result.problem.problem == ProblemType.SIGNATURE_METHOD_REJECTED
        assert isinstance(registry.resolve(None), Err)
