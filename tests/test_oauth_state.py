from qbuilder.services.auth.oauth_state import OAuthStateStore

REDIRECT = "http://localhost:5173/auth/callback"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_state_is_single_use():
    store = OAuthStateStore(ttl_seconds=60, clock=FakeClock())
    state = store.issue("google", REDIRECT)

    assert store.consume(state, "google", REDIRECT) is True
    assert store.consume(state, "google", REDIRECT) is False


def test_state_bound_to_provider_and_redirect():
    store = OAuthStateStore(ttl_seconds=60, clock=FakeClock())

    state = store.issue("google", REDIRECT)
    assert store.consume(state, "microsoft", REDIRECT) is False
    # a failed match still burns the nonce
    assert store.consume(state, "google", REDIRECT) is False

    state = store.issue("google", REDIRECT)
    assert store.consume(state, "google", "http://evil.test/cb") is False


def test_unknown_state_rejected():
    store = OAuthStateStore(ttl_seconds=60, clock=FakeClock())
    assert store.consume("made-up", "google", REDIRECT) is False


def test_state_expires():
    clock = FakeClock()
    store = OAuthStateStore(ttl_seconds=60, clock=clock)
    state = store.issue("apple", REDIRECT)

    clock.now += 61
    assert store.consume(state, "apple", REDIRECT) is False


def test_purge_expired():
    clock = FakeClock()
    store = OAuthStateStore(ttl_seconds=60, clock=clock)
    store.issue("google", REDIRECT)
    clock.now += 30
    store.issue("google", REDIRECT)

    clock.now += 40
    assert store.purge_expired() == 1
    assert len(store) == 1

    store.clear()
    assert len(store) == 0


def test_non_ascii_redirect_uri():
    store = OAuthStateStore(ttl_seconds=60, clock=FakeClock())
    hebrew = "https://app.example/כניסה"

    state = store.issue("google", hebrew)
    assert store.consume(state, "google", hebrew) is True

    state = store.issue("google", REDIRECT)
    assert store.consume(state, "google", hebrew) is False
