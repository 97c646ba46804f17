"""Unit tests for vault/service.py and vault/store.py -- owner-scoped secrets.

Owners are plain integers here; no users table is involved because the
service trusts the owner id it is given.
"""

from __future__ import annotations

import pytest

from core.errors import DecryptionError, NotFound
from vault.models import SecretEntry

ALICE = 1
BOB = 2


@pytest.fixture
def alice_mail(secret_service) -> SecretEntry:
    return secret_service.create(ALICE, "Mail", "a@x.com", "p@ss")


class TestCreate:
    def test_returns_plaintext(self, alice_mail):
        assert alice_mail.id > 0
        assert alice_mail.owner_id == ALICE
        assert alice_mail.service == "Mail"
        assert alice_mail.username == "a@x.com"
        assert alice_mail.password == "p@ss"
        assert alice_mail.created_at

    def test_stored_as_ciphertext(self, alice_mail, secret_store):
        raw = secret_store.get(ALICE, alice_mail.id)
        assert raw.password != "p@ss"
        assert "p@ss" not in raw.password


class TestReadScoping:
    def test_list_only_own_entries(self, secret_service, alice_mail):
        secret_service.create(BOB, "Bank", "bob", "b0b")
        assert [e.id for e in secret_service.list(ALICE)] == [alice_mail.id]
        assert [e.service for e in secret_service.list(BOB)] == ["Bank"]

    def test_other_owner_sees_nothing(self, secret_service, alice_mail):
        assert secret_service.list(BOB) == []

    def test_list_decrypts(self, secret_service, alice_mail):
        assert secret_service.list(ALICE)[0].password == "p@ss"

    def test_list_ordered_by_service(self, secret_service):
        for name in ["zeta", "Alpha", "mail"]:
            secret_service.create(ALICE, name, "u", "p")
        assert [e.service for e in secret_service.list(ALICE)] == ["Alpha", "mail", "zeta"]

    def test_get_foreign_is_not_found(self, secret_service, alice_mail):
        with pytest.raises(NotFound):
            secret_service.get(BOB, alice_mail.id)

    def test_get_missing_is_not_found(self, secret_service):
        with pytest.raises(NotFound):
            secret_service.get(ALICE, 12345)


class TestUpdate:
    def test_update_own(self, secret_service, alice_mail):
        updated = secret_service.update(ALICE, alice_mail.id, "Gmail", "alice@gmail.com", "n3w")
        assert updated.id == alice_mail.id
        assert (updated.service, updated.username, updated.password) == ("Gmail", "alice@gmail.com", "n3w")
        assert updated.owner_id == ALICE

    def test_update_reencrypts(self, secret_service, secret_store, alice_mail):
        before = secret_store.get(ALICE, alice_mail.id).password
        secret_service.update(ALICE, alice_mail.id, "Mail", "a@x.com", "p@ss")
        assert secret_store.get(ALICE, alice_mail.id).password != before

    def test_update_foreign_is_not_found_and_unchanged(self, secret_service, alice_mail):
        with pytest.raises(NotFound):
            secret_service.update(BOB, alice_mail.id, "Hacked", "bob", "pwned")
        assert secret_service.get(ALICE, alice_mail.id).service == "Mail"

    def test_update_missing_is_not_found(self, secret_service):
        with pytest.raises(NotFound):
            secret_service.update(ALICE, 999, "x", "y", "z")


class TestDelete:
    def test_delete_own(self, secret_service, alice_mail):
        secret_service.delete(ALICE, alice_mail.id)
        assert secret_service.list(ALICE) == []

    def test_delete_twice_is_not_found(self, secret_service, alice_mail):
        secret_service.delete(ALICE, alice_mail.id)
        with pytest.raises(NotFound):
            secret_service.delete(ALICE, alice_mail.id)

    def test_delete_foreign_is_not_found_and_kept(self, secret_service, alice_mail):
        with pytest.raises(NotFound):
            secret_service.delete(BOB, alice_mail.id)
        assert len(secret_service.list(ALICE)) == 1


class TestSearch:
    def test_case_insensitive_substring(self, secret_service):
        secret_service.create(ALICE, "Gmail", "alice", "pw")
        secret_service.create(ALICE, "Bank", "alice", "pw")
        results = secret_service.search_by_service(ALICE, "gma")
        assert [e.service for e in results] == ["Gmail"]
        assert results[0].password == "pw"

    def test_upper_case_query(self, secret_service):
        secret_service.create(ALICE, "gmail", "alice", "pw")
        assert len(secret_service.search_by_service(ALICE, "GMAIL")) == 1

    def test_no_match_is_empty(self, secret_service, alice_mail):
        assert secret_service.search_by_service(ALICE, "nothing") == []

    def test_other_owners_rows_excluded(self, secret_service):
        secret_service.create(BOB, "Gmail", "bob", "pw")
        assert secret_service.search_by_service(ALICE, "gma") == []

    def test_like_wildcards_are_literal(self, secret_service):
        secret_service.create(ALICE, "Gmail", "alice", "pw")
        assert secret_service.search_by_service(ALICE, "%") == []
        assert secret_service.search_by_service(ALICE, "G_ail") == []

    def test_percent_in_service_name_matches(self, secret_service):
        secret_service.create(ALICE, "100% Bank", "alice", "pw")
        assert [e.service for e in secret_service.search_by_service(ALICE, "0% b")] == ["100% Bank"]

    @pytest.mark.parametrize("query", ["Über", "über", "ÜBER", "ber"])
    def test_non_ascii_case_folding(self, secret_service, query):
        secret_service.create(ALICE, "Über", "alice", "pw")
        secret_service.create(ALICE, "Élan", "alice", "pw")
        assert [e.service for e in secret_service.search_by_service(ALICE, query)] == ["Über"]

    def test_casefold_matches_sharp_s(self, secret_service):
        secret_service.create(ALICE, "Straße Bank", "alice", "pw")
        assert len(secret_service.search_by_service(ALICE, "STRASSE")) == 1

    def test_results_ordered_by_folded_service(self, secret_service):
        for name in ["élan mail", "Mail", "ÉLAN Bank"]:
            secret_service.create(ALICE, name, "alice", "pw")
        assert [e.service for e in secret_service.search_by_service(ALICE, "ÉL")] == ["ÉLAN Bank", "élan mail"]


class TestCorruptRows:
    def test_corrupt_ciphertext_raises(self, secret_service, secret_store):
        secret_store.create(SecretEntry(owner_id=ALICE, service="Bad", username="u", password="%%%not-base64"))
        with pytest.raises(DecryptionError):
            secret_service.list(ALICE)

    def test_truncated_ciphertext_raises(self, secret_service, secret_store, alice_mail):
        raw = secret_store.get(ALICE, alice_mail.id).password
        secret_store.update(ALICE, alice_mail.id, "Mail", "a@x.com", raw[:30])
        with pytest.raises(DecryptionError):
            secret_service.get(ALICE, alice_mail.id)
