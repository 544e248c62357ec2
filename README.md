# warpnet

Building blocks for a node of a decentralized social network. The package is
a library: it has no command-line entry point.

## Modules

- `warpnet.events`: dataclass models for the requests and responses exchanged
  between a user interface and a node (`Message`, `LoginEvent`,
  `GetTweetEvent`, `TweetsResponse`, `ErrorResponse` and the rest), plus the
  route path constants such as `PRIVATE_POST_LOGIN` and `PUBLIC_GET_TWEET`.
  Every model has `to_dict`, `from_dict`, `to_json` and `from_json`. Optional
  fields that are `None` are left out of the output; times are written in
  RFC 3339 form; unsigned counters and limits reject negative values.
- `warpnet.retrier`: `Retrier(min_interval, max_attempts, backoff, sleep)`
  with `Backoff.NONE`, `Backoff.ARITHMETICAL` (interval doubles) or
  `Backoff.EXPONENTIAL` (interval squares), plus a random jitter of up to half
  the minimum interval. `Retrier.run(func, cancel)` returns what `func`
  returns on its first success.
- `warpnet.security.hashing`: `convert_to_sha256(data)`; empty input comes
  back unchanged.
- `warpnet.security.weak_aes`: `encrypt_aes(plain_data, password)` and
  `decrypt_aes(ciphertext, password)`: AES-256-GCM with a SHA-256 key of the
  password and a fixed all-zero nonce. With `password=None` the key is derived
  from the current time and a fixed salt.
- `warpnet.security.keys`: `generate_key_from_seed(seed)` returns the same
  Ed25519 private key (from `cryptography`) for the same seed.
- `warpnet.security.psk`: `generate_psk(codebase, version, network,
  is_testnet)` returns a `PSK` (bytes whose `str()` is hex). On a test network
  it is the SHA-256 of the network name; otherwise it also covers a hash of
  the codebase directory (`get_codebase_hash(root)`), the major version and a
  fixed value from `generate_anchored_entropy()`.
- `warpnet.security.diffie_hellman`: `DiffieHellmanEncrypter` performs a
  2048-bit Diffie-Hellman exchange, derives an AES-256 key with HKDF-SHA256
  and a salt, and encrypts messages as `base64(ciphertext):base64(nonce)`.
  Reusing the nonce of the previous message raises `ReplayAttackError`.
- `warpnet.websocket`: `EncryptedUpgrader` runs the handshake and the
  encrypted request loop over any connection object with `recv()`, `send(str)`
  and `close()`. `on_message(callback)` sets the handler of decrypted
  requests; `set_new_salt(salt)` re-keys the session after the current answer.
- `warpnet.auth`: `validate_password(pw)` and `AuthService`, which logs the
  owner in, creates the owner and user records on first login, hands the
  identity to a node starter and waits for its answer.
- `warpnet.ws_handler`: `WSController`, which decodes each request `Message`,
  handles login and logout through an `AuthService`-like object and forwards
  everything else to a client node.
- `warpnet.metrics`: `MetricsClient(address, node_id, is_bootstrap,
  timeout).push_status_online()` sends a `node_online_status 1` gauge to a
  Prometheus push gateway and returns whether it was accepted.

## Examples

Hashing:

```python
from warpnet.security.hashing import convert_to_sha256

digest = convert_to_sha256(b"hello")
assert len(digest) == 32
assert convert_to_sha256(b"") == b""
```

Password based encryption:

```python
from warpnet.security.weak_aes import decrypt_aes, encrypt_aes

password = b"password"
sealed = encrypt_aes(b"Hello, this is a secret message.", password)
assert decrypt_aes(sealed, password) == b"Hello, this is a secret message."
```

Key exchange and encrypted messages:

```python
from warpnet.security.diffie_hellman import DiffieHellmanEncrypter

server, client = DiffieHellmanEncrypter(), DiffieHellmanEncrypter()
server.compute_shared_secret(client.public_key, b"2025-01-01")
client.compute_shared_secret(server.public_key, b"2025-01-01")
assert server.decrypt_message(client.encrypt_message(b"hi")) == b"hi"
```

Password rules used at login:

```python
from warpnet.auth import AuthError, validate_password

pw = "password"
try:
    validate_password(pw)
except AuthError as exc:
    print(exc)  # password must have at least one uppercase letter
```

Retrying:

```python
from warpnet.retrier import Backoff, Retrier

retrier = Retrier(min_interval=0.1, max_attempts=3, backoff=Backoff.ARITHMETICAL)
value = retrier.run(lambda: 42)
assert value == 42
```

Event models round-trip through JSON:

```python
from warpnet.events import GetTweetEvent

event = GetTweetEvent(tweet_id="tweet-1", user_id="user-1")
assert GetTweetEvent.from_json(event.to_json()) == event
```

## Wiring login

`AuthService(auth_repo, user_repo, interrupt, auth_ready, node_ready,
startup_timeout)` takes:

- `auth_repo` with `authenticate(username, password)`, `session_token()`,
  `get_owner()` and `set_owner(owner)`;
- `user_repo` with `create(user)` and `update(user_id, user)`;
- `interrupt`, a `threading.Event` set by `auth_logout()`;
- `auth_ready` and `node_ready`, queues: the identity is put on `auth_ready`
  and the node's auth info, carrying its node id, is awaited on `node_ready`
  for up to `startup_timeout` seconds (300 by default).

## What the package does not do

It does not run a peer-to-peer node, an HTTP server or a websocket server,
and does not serve a user interface. It stores nothing itself: owner and user
records live in the repositories you pass to `AuthService`, and forwarding of
requests is done by the client node object you pass to `WSController`.

## Errors

Failures are raised as exceptions: `AuthError` for rejected logins,
`ReplayAttackError` (a `ValueError`) when an encrypted message reuses a nonce,
`ConnectionClosed` when a websocket session is gone, `DeadlineReachedError`
when every retry failed, `StopTrying` raised by a retried function to end
retrying, and `concurrent.futures.CancelledError` when a retry is cancelled.