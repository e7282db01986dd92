import re

from destress.services.visitor_tracking import compute_fingerprint


def test_fingerprint_is_truncated_sha256_of_ip_and_user_agent():
    # sha256("1.2.3.4-UA1") = 8e652ac066e7a91e542912d9...
    assert compute_fingerprint("1.2.3.4", "UA1") == "8e652ac066e7a91e"


def test_fingerprint_is_deterministic():
    first = compute_fingerprint("10.0.0.1", "Mozilla/5.0 (X11; Linux x86_64)")
    second = compute_fingerprint("10.0.0.1", "Mozilla/5.0 (X11; Linux x86_64)")
    assert first == second
    assert re.fullmatch(r"[0-9a-f]{16}", first)


def test_fingerprint_accepts_empty_and_unknown_values():
    assert compute_fingerprint("", "") == "3973e022e93220f9"
    assert compute_fingerprint("unknown", "unknown") == "ab7cc282de9d6821"
    assert len(compute_fingerprint("ñandú", "日本語")) == 16


def test_fingerprint_changes_with_user_agent():
    assert compute_fingerprint("1.2.3.4", "UA1") != compute_fingerprint("1.2.3.4", "UA2")
