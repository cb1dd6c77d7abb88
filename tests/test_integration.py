"""
Tests for requests integration
"""

import pytest
import requests

from http_signature_auth.exceptions import SigningError
from http_signature_auth.integration import HttpSignatureAuth, create_signing_session
from http_signature_auth.strategy import HttpSignatureStrategy
from http_signature_auth.types import AuthOutcome, SignatureRequest


def prepare(method, url, auth, **kwargs):
    return requests.Request(method, url, auth=auth, **kwargs).prepare()


def as_signature_request(prepared, path):
    return SignatureRequest(method=prepared.method, path=path, headers=dict(prepared.headers))


class TestHttpSignatureAuth:
    """Test the requests auth handler"""

    def test_sets_authorization_and_date(self, rsa_key):
        """Test prepared requests gain Date and Authorization headers"""
        prepared = prepare('GET', 'https://api.example.com/foo', HttpSignatureAuth('client-1', rsa_key))

        assert prepared.headers['Authorization'].startswith('Signature keyId="client-1",')
        assert 'Date' in prepared.headers

    def test_verifies_with_query_string(self, rsa_key, rsa_public_pem):
        """Test the signed request target includes the query string"""
        prepared = prepare(
            'GET',
            'https://api.example.com/foo/Bar',
            HttpSignatureAuth('client-1', rsa_key),
            params={'pet': 'dog'},
        )
        strategy = HttpSignatureStrategy(lambda key_id: (key_id, rsa_public_pem))

        result = strategy.authenticate_sync(as_signature_request(prepared, '/foo/Bar?pet=dog'))

        assert result.outcome == AuthOutcome.SUCCESS
        assert result.user == 'client-1'

    def test_signs_host_and_body_digest(self, rsa_key, rsa_public_pem):
        """Test Host comes from the URL and Digest from the body"""
        auth = HttpSignatureAuth('client-1', rsa_key, headers=['(request-target)', 'date', 'host', 'digest'])
        prepared = prepare('POST', 'https://api.example.com:8443/items', auth, json={'name': 'widget'})

        assert prepared.headers['Host'] == 'api.example.com:8443'
        assert prepared.headers['Digest'].startswith('SHA-256=')

        strategy = HttpSignatureStrategy(lambda key_id: (key_id, rsa_public_pem), headers=['host', 'digest'])
        result = strategy.authenticate_sync(as_signature_request(prepared, '/items'))

        assert result.outcome == AuthOutcome.SUCCESS

    def test_empty_path(self, rsa_key, rsa_public_pem):
        """Test a bare host URL signs "/" as the path"""
        prepared = prepare('GET', 'https://api.example.com', HttpSignatureAuth('client-1', rsa_key))
        strategy = HttpSignatureStrategy(lambda key_id: (key_id, rsa_public_pem))

        assert strategy.authenticate_sync(as_signature_request(prepared, '/')).is_success

    def test_missing_signed_header(self, rsa_key):
        """Test a signed header the request does not carry"""
        auth = HttpSignatureAuth('client-1', rsa_key, headers=['(request-target)', 'date', 'x-request-id'])

        with pytest.raises(SigningError):
            prepare('GET', 'https://api.example.com/foo', auth)


class TestCreateSigningSession:
    """Test session configuration"""

    def test_new_session(self, rsa_key):
        """Test a new session gets the auth handler"""
        session = create_signing_session('client-1', rsa_key)

        assert isinstance(session, requests.Session)
        assert isinstance(session.auth, HttpSignatureAuth)
        assert session.auth.signer.key_id == 'client-1'

    def test_existing_session(self, rsa_key, rsa_public_pem):
        """Test an existing session is configured in place and signs its requests"""
        session = requests.Session()
        session.headers['X-Client'] = 'tests'

        assert create_signing_session('client-1', rsa_key, session=session) is session

        prepared = session.prepare_request(requests.Request('DELETE', 'https://api.example.com/items/7'))
        strategy = HttpSignatureStrategy(lambda key_id: (key_id, rsa_public_pem))

        assert prepared.headers['X-Client'] == 'tests'
        assert strategy.authenticate_sync(as_signature_request(prepared, '/items/7')).is_success
