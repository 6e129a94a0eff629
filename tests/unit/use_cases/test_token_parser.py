import pytest

from src.app.use_cases.invoicing.token_parser import FneToken, parse_fne_token

BASE = "http://54.247.95.108/fr/verification"


class TestParseFneToken:
    def test_full_verification_url_is_kept(self):
        token = parse_fne_token("http://54.247.95.108/fr/verification/abc123", BASE)

        assert token == FneToken(url="http://54.247.95.108/fr/verification/abc123", value="abc123")

    def test_bare_token_is_appended_to_base(self):
        token = parse_fne_token("xyz789", BASE)

        assert token.url == f"{BASE}/xyz789"
        assert token.value == "xyz789"

    def test_base_url_trailing_slash_is_ignored(self):
        assert parse_fne_token("xyz789", BASE + "/").url == f"{BASE}/xyz789"

    def test_url_without_verification_segment_uses_last_segment(self):
        token = parse_fne_token("https://fne.example.ci/check/qr/ZZ42/", BASE)

        assert token.url == "https://fne.example.ci/check/qr/ZZ42/"
        assert token.value == "ZZ42"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_token(self, raw):
        assert parse_fne_token(raw, BASE) == FneToken(url="", value="")
