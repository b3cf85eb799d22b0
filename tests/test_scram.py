import base64
import hashlib
import hmac

import pytest

from pqkit.scram import ScramClient, ScramError

SALT = b"saltsalt"
ITERATIONS = 4096


def _fake_server_final(password, salt, iterations, auth_message, proof_b64):
    """Verify a client proof as a server would and return the server's final message."""
    salted = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)
    client_key_check = hmac.new(salted, b"Client Key", hashlib.sha256).digest()
    stored_key = hashlib.sha256(client_key_check).digest()
    signature = hmac.new(stored_key, auth_message, hashlib.sha256).digest()
    proof = base64.b64decode(proof_b64)
    recovered = bytes(a ^ b for a, b in zip(proof, signature))
    verified = hashlib.sha256(recovered).digest() == stored_key
    server_key = hmac.new(salted, b"Server Key", hashlib.sha256).digest()
    server_sig = hmac.new(server_key, auth_message, hashlib.sha256).digest()
    return verified, b"v=" + base64.b64encode(server_sig)


def _client(user="user"):
    password = "password"
    client = ScramClient(hashlib.sha256, user, password)
    client.set_nonce(b"clientnonce")
    return client


def _server_first():
    return b"r=clientnonceservernonce,s=" + base64.b64encode(SALT) + b",i=4096"


def test_first_message_format():
    client = _client()
    assert client.step(None) is False
    assert client.out() == b"n,,n=user,r=clientnonce"
    assert client.err() is None


def test_user_name_is_escaped():
    client = _client(user="a=b,c")
    client.step(None)
    assert client.out() == b"n,,n=a=3Db=2Cc,r=clientnonce"


def test_random_nonce_is_generated():
    password = "password"
    first = ScramClient(hashlib.sha256, "user", password)
    second = ScramClient(hashlib.sha256, "user", password)
    first.step(None)
    second.step(None)
    nonce_a = first.out().split(b",r=")[1]
    nonce_b = second.out().split(b",r=")[1]
    assert len(base64.b64decode(nonce_a)) == 16
    assert nonce_a != nonce_b


def test_full_conversation_succeeds():
    password = "password"
    client = _client()
    client.step(None)
    client_first_bare = client.out()[3:]
    server_first = _server_first()
    assert client.step(server_first) is False
    client_final = client.out()
    assert client_final.startswith(b"c=biws,r=clientnonceservernonce,p=")
    without_proof, proof = client_final.rsplit(b",p=", 1)
    auth_message = client_first_bare + b"," + server_first + b"," + without_proof
    verified, server_final = _fake_server_final(
        password, SALT, ITERATIONS, auth_message, proof
    )
    assert verified
    assert client.step(server_final) is True
    assert client.err() is None
    assert client.out() is None
    # After completion no further steps happen.
    assert client.step(b"anything") is False


def test_string_hash_name_matches_callable():
    password = "password"
    by_name = ScramClient("sha256", "user", password)
    by_callable = ScramClient(hashlib.sha256, "user", password)
    for client in (by_name, by_callable):
        client.set_nonce("clientnonce")
        client.step(None)
        client.step(_server_first())
    assert by_name.out() == by_callable.out()


def test_wrong_server_signature_fails():
    client = _client()
    client.step(None)
    client.step(_server_first())
    assert client.step(b"v=" + base64.b64encode(b"\x00" * 32)) is True
    assert isinstance(client.err(), ScramError)
    assert "server signature" in str(client.err())


@pytest.mark.parametrize(
    "server_first, fragment",
    [
        (b"r=clientnonce,s=c2FsdHNhbHQ=", "expected 3 fields"),
        (b"x=clientnonce,s=c2FsdHNhbHQ=,i=4096", "invalid SCRAM-SHA-256 nonce"),
        (b"r=clientnonce,s=abc,i=4096", "invalid SCRAM-SHA-256 salt"),
        (b"r=clientnonce,s=c2FsdHNhbHQ=,i=40", "iteration count"),
        (b"r=othernonce,s=c2FsdHNhbHQ=,i=4096", "not prefixed by client nonce"),
        (b"r=clientnonce,s=!!!!!!,i=4096", "cannot decode"),
        (b"r=clientnonce,s=c2FsdHNhbHQ=,i=abcd", "iteration count"),
    ],
)
def test_bad_server_first_message(server_first, fragment):
    client = _client()
    client.step(None)
    assert client.step(server_first) is True
    assert fragment in str(client.err())
    assert client.out() is None
    assert client.step(b"v=xyz") is False


def test_server_error_message():
    client = _client()
    client.step(None)
    client.step(_server_first())
    assert client.step(b"e=invalid-proof") is True
    assert "invalid-proof" in str(client.err())


def test_unsupported_final_message():
    client = _client()
    client.step(None)
    client.step(_server_first())
    assert client.step(b"x=1,y=2") is True
    assert "unsupported" in str(client.err())