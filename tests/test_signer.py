"""
Tests for client-side request signing
"""

import base64
import hashlib

import pytest

from http_signature_auth.exceptions import ErrorCodes, KeyFormatError, SigningError, UnsupportedAlgorithmError
from http_signature_auth.params import parse_authorization_params, split_authorization
from http_signature_auth.signer import HeaderSigner, calculate_digest
from http_signature_auth.strategy import HttpSignatureStrategy
from http_signature_auth.types import AuthOutcome, SignatureRequest

from conftest import RSA_PASSPHRASE

DATE = 'Thu, 05 Jan 2012 21:31:40 GMT'


def parse_signed(signed):
    scheme, rest = split_authorization(signed['Authorization'])
    assert scheme == 'Signature'
    return parse_authorization_params(rest)


class TestCalculateDigest:
    """Test Digest header values"""

    def test_bytes_and_text(self):
        """Test text bodies are UTF-8 encoded"""
        expected = 'SHA-256=' + base64.b64encode(hashlib.sha256(b'{"hello": "world"}').digest()).decode()

        assert calculate_digest(b'{"hello": "world"}') == expected
        assert calculate_digest('{"hello": "world"}') == expected

    def test_empty_body(self):
        """Test no body hashes the empty string"""
        assert calculate_digest(None) == calculate_digest(b'')


class TestHeaderSigner:
    """Test the header signer"""

    def test_default_headers(self, rsa_key):
        """Test the default header list"""
        signer = HeaderSigner('some key', rsa_key)

        assert signer.headers == ['(request-target)', 'date']
        assert signer.algorithm == 'rsa-sha256'

    def test_adds_date(self, rsa_key):
        """Test a Date header is added when missing"""
        signed = HeaderSigner('some key', rsa_key).sign('GET', '/foo')

        assert signed['Date'].endswith('GMT')
        assert parse_signed(signed)['headers'] == '(request-target) date'

    def test_keeps_existing_date(self, rsa_key):
        """Test an existing Date header is left alone"""
        signed = HeaderSigner('some key', rsa_key).sign('GET', '/foo', {'date': DATE})

        assert signed['date'] == DATE
        assert 'Date' not in signed

    def test_does_not_modify_input(self, rsa_key):
        """Test the caller's headers are copied"""
        headers = {'date': DATE}
        HeaderSigner('some key', rsa_key).sign('GET', '/foo', headers)
        assert headers == {'date': DATE}

    def test_authorization_parameters(self, rsa_key, rsa_sign):
        """Test the rendered parameters and signature"""
        signer = HeaderSigner('some key', rsa_key, headers=['(request-target)', 'date', 'host'])
        signed = signer.sign('GET', '/foo', {'date': DATE, 'host': 'example.com'})
        params = parse_signed(signed)

        assert params['keyId'] == 'some key'
        assert params['algorithm'] == 'rsa-sha256'
        assert params['headers'] == '(request-target) date host'
        assert params['signature'] == rsa_sign(
            f'(request-target): get /foo\ndate: {DATE}\nhost: example.com'
        )

    def test_adds_digest(self, rsa_key):
        """Test a Digest header is added when digest is signed"""
        signer = HeaderSigner('some key', rsa_key, headers=['(request-target)', 'date', 'digest'])
        signed = signer.sign('POST', '/foo', {'date': DATE}, body='payload')

        assert signed['Digest'] == calculate_digest('payload')

    def test_missing_header(self, rsa_key):
        """Test signing a header the request does not carry"""
        signer = HeaderSigner('some key', rsa_key, headers=['(request-target)', 'date', 'host'])

        with pytest.raises(SigningError) as exc_info:
            signer.sign('GET', '/foo', {'date': DATE})

        assert exc_info.value.error_code == ErrorCodes.MISSING_HEADER
        assert exc_info.value.details == {'missing': ['host']}

    @pytest.mark.parametrize('key_id', ['', 'has"quote'])
    def test_invalid_key_id(self, rsa_key, key_id):
        """Test key ids that cannot be rendered"""
        with pytest.raises(SigningError):
            HeaderSigner(key_id, rsa_key)

    def test_invalid_header_names(self, rsa_key):
        """Test header names containing spaces"""
        with pytest.raises(SigningError):
            HeaderSigner('some key', rsa_key, headers=['(request-target) date'])

    def test_unknown_algorithm(self, rsa_key):
        """Test an unknown algorithm is rejected up front"""
        with pytest.raises(UnsupportedAlgorithmError):
            HeaderSigner('some key', rsa_key, algorithm='rsa-sha255')

    def test_encrypted_key(self, rsa_private_pem, rsa_sign):
        """Test signing with a passphrase-protected key"""
        signer = HeaderSigner('some key', rsa_private_pem, password=RSA_PASSPHRASE)
        signed = signer.sign('GET', '/foo', {'date': DATE})

        assert parse_signed(signed)['signature'] == rsa_sign(f'(request-target): get /foo\ndate: {DATE}')

    def test_wrong_password(self, rsa_private_pem):
        """Test a wrong passphrase"""
        with pytest.raises(KeyFormatError):
            HeaderSigner('some key', rsa_private_pem, password='wrong')


class TestSignThenVerify:
    """Test signed requests against the verification strategy"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize('key_fixture,public_fixture,algorithm', [
        ('rsa_key', 'rsa_public_pem', 'rsa-sha256'),
        ('rsa_key', 'rsa_public_pem', 'rsa-sha512'),
        ('ec_key', 'ec_public_pem', 'ecdsa-sha256'),
        ('ed25519_key', 'ed25519_public_pem', 'ed25519'),
    ])
    async def test_strategy_accepts_signed_request(self, request, key_fixture, public_fixture, algorithm):
        """Test the strategy authenticates what the signer produces"""
        private_key = request.getfixturevalue(key_fixture)
        public_pem = request.getfixturevalue(public_fixture)
        signer = HeaderSigner(
            'client-1',
            private_key,
            algorithm=algorithm,
            headers=['(request-target)', 'host', 'date', 'digest'],
        )
        signed = signer.sign('POST', '/things?x=1', {'Host': 'example.com'}, body=b'{}')

        strategy = HttpSignatureStrategy(lambda key_id: ({'id': key_id}, public_pem), headers=['host', 'digest'])
        result = await strategy.authenticate(SignatureRequest('POST', '/things?x=1', signed))

        assert result.outcome == AuthOutcome.SUCCESS
        assert result.user == {'id': 'client-1'}

    @pytest.mark.asyncio
    async def test_strategy_rejects_changed_header(self, rsa_key, rsa_public_pem):
        """Test a header changed after signing"""
        signer = HeaderSigner('client-1', rsa_key, headers=['(request-target)', 'date', 'host'])
        signed = signer.sign('GET', '/foo', {'Host': 'example.com'})
        signed['Host'] = 'evil.example.com'

        strategy = HttpSignatureStrategy(lambda key_id: (key_id, rsa_public_pem))
        result = await strategy.authenticate(SignatureRequest('GET', '/foo', signed))

        assert result.outcome == AuthOutcome.CHALLENGE
